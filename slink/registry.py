"""Module that persists the remote host selected with `slink use`."""

import os
import tempfile
from typing import Optional

from slink.logger import log


class HostRegistry:
    """
    The single currently selected remote host, stored in a file.

    The file contains the host on a single line. It is replaced atomically so that a
    concurrent slink invocation never reads a partially written host.
    """

    def __init__(self, path: str):
        """Instantiate a registry backed by the file at the given path."""
        self._path = path

    @property
    def path(self) -> str:
        """Return the path of the file backing the registry."""
        return self._path

    def load(self) -> Optional[str]:
        """Return the selected host, or None if no host has been selected yet."""
        try:
            with open(self._path, "r") as f:
                host = f.read().strip()
        except FileNotFoundError:
            log.debug(f"no host file at {self._path}")
            return None

        return host or None

    def store(self, host: str) -> None:
        """Select the given host, replacing any previous selection."""
        directory = os.path.dirname(self._path)
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".hostname.")

        try:
            with os.fdopen(fd, "w") as f:
                f.write(f"{host}\n")

            os.replace(tmp_path, self._path)
        except BaseException:
            os.unlink(tmp_path)
            raise

        log.debug(f"selected host {host}")
