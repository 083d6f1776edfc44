"""Module with the operations that transfer files between mirrored paths."""

import contextlib
from enum import Enum
import shlex
from typing import List, Sequence

from slink.errors import SlinkError, SyncFailure
import slink.mirror as mirror
from .common import Context, Operation


class Direction(Enum):
    """Direction of a transfer."""

    # From the local machine to the remote
    UP = "up"

    # From the remote to the local machine
    DOWN = "down"


def _as_dir(path: str) -> str:
    """Add a trailing slash so that rsync transfers the contents of a directory."""
    return path if path.endswith("/") else path + "/"


class SyncOperation(Operation):
    """
    Synchronize the local working directory with its mirror on the remote.

    rsync only transfers files that have changed, and preserves the directory structure
    below the working directory. When syncing up, the mirror is created on the remote
    if it doesn't exist yet.
    """

    def __init__(self, direction: Direction, options: Sequence[str] = ()):
        """Instantiate the operation with the direction and extra rsync options."""
        self._direction = direction
        self._options = list(options)

    @property
    def direction(self) -> Direction:
        """Return the direction of the sync."""
        return self._direction

    def failure(self, exit_code: int) -> SlinkError:
        """Return the error describing a non-zero exit code of rsync."""
        return SyncFailure("rsync", exit_code)

    def _execute(self, stack: contextlib.ExitStack, context: Context) -> int:
        return self._call(stack, self._compose_rsync_command(context))

    def _compose_rsync_command(self, context: Context) -> List[str]:
        """Compose the rsync command that syncs the mirrored directories."""
        paths = context.mirror(context.cwd)
        session = context.session

        rsync_command = [
            "rsync",
            "--archive",
            "--compress",
            # Don't let the remote shell split paths with spaces
            "--protect-args",
            "-e",
            session.rsh(),
        ]

        if self._direction == Direction.UP:
            rsync_command.extend(
                [
                    "--rsync-path",
                    f"mkdir -p -- {shlex.quote(paths.remote)} && rsync",
                ]
            )

            source = _as_dir(paths.local)
            destination = session.remote(_as_dir(paths.remote))
        else:
            source = session.remote(_as_dir(paths.remote))
            destination = _as_dir(paths.local)

        rsync_command.extend(self._options)
        rsync_command.extend([source, destination])

        return rsync_command


class CopyOperation(Operation):
    """Copy a single file to or from its mirror on the remote."""

    def __init__(self, direction: Direction, path: str):
        """Instantiate the operation with the direction and the (local) file path."""
        self._direction = direction
        self._path = path

    def failure(self, exit_code: int) -> SlinkError:
        """Return the error describing a non-zero exit code of scp."""
        return SyncFailure("scp", exit_code)

    def _execute(self, stack: contextlib.ExitStack, context: Context) -> int:
        paths = context.mirror(mirror.normalize(self._path, context.cwd))
        session = context.session

        if self._direction == Direction.UP:
            command = session.scp_command(paths.local, session.remote(paths.remote))
        else:
            command = session.scp_command(session.remote(paths.remote), paths.local)

        return self._call(stack, command)
