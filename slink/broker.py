"""
Module that maintains one multiplexed SSH connection per remote host.

Authenticating a new SSH connection is slow, so slink starts an OpenSSH control master
for a host the first time it is needed and lets every later ssh, rsync and scp process
connect through its control socket. The master stays alive in the background until it
has been idle for the configured ControlPersist duration, which means that it is shared
by subsequent slink invocations as well.

The control socket is not owned by any single slink process. Its creation is guarded by
an inter-process lock file next to it, so that concurrent invocations for the same host
don't both start a master. The loser of that race simply finds a live socket once it
gets the lock and reuses it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import hashlib
import os
import shlex
import subprocess
import tempfile
from typing import List, Optional, Sequence

import fasteners

from slink.config import SSHConfig
from slink.errors import ConnectionError
from slink.logger import log, summarize


@dataclass
class SessionHandle:
    """
    Handle to the multiplexed connection of a host.

    The handle composes the command lines of the sub-operations so that they all go
    through the control socket of the host.
    """

    host: str
    control_path: str
    control_persist: str
    extra_options: List[str] = field(default_factory=list)

    def ssh_options(self) -> List[str]:
        """Return the ssh options that make a client use the control socket."""
        return [
            # Reuse the master if there is one, or quietly start a new one if it has
            # died since it was acquired.
            "-o",
            "ControlMaster=auto",
            "-o",
            f"ControlPath={self.control_path}",
            "-o",
            f"ControlPersist={self.control_persist}",
            # Disable SSH INFO messages like "connection closed"
            "-o",
            "LogLevel=error",
        ] + self.extra_options

    def ssh_command(
        self,
        remote_command: Optional[str] = None,
        tty: Optional[bool] = None,
        options: Sequence[str] = (),
    ) -> List[str]:
        """
        Compose an ssh command line for the host.

        A pseudo-terminal is forced if tty is True and disabled if it is False. If it is
        None then ssh decides for itself. Any additional options are placed before the
        host.
        """
        command = ["ssh"] + self.ssh_options() + list(options)

        if tty is True:
            command.append("-tt")
        elif tty is False:
            command.append("-T")

        command.append(self.host)

        if remote_command is not None:
            command.append(remote_command)

        return command

    def rsh(self) -> str:
        """Return the remote shell command for rsync's -e option."""
        return " ".join(map(shlex.quote, ["ssh"] + self.ssh_options()))

    def scp_command(self, source: str, destination: str) -> List[str]:
        """Compose an scp command line, with remote paths prefixed by remote()."""
        return ["scp"] + self.ssh_options() + [source, destination]

    def remote(self, path: str) -> str:
        """Return the host:path notation used by rsync and scp for a remote path."""
        return f"{self.host}:{path}"

    def remote_home(self) -> str:
        """Query the home directory of the login user on the remote."""
        proc = self._probe('printf "%s\\n" "$HOME"')

        output = proc.stdout.decode().strip()

        # Startup files of the remote shell may print output before the home directory
        lines = output.splitlines()
        home = lines[-1].strip() if lines else ""

        if proc.returncode != 0 or not home.startswith("/"):
            raise ConnectionError(
                f"failed to determine home directory on {self.host}: "
                f"{proc.stderr.decode().strip() or output}"
            )

        return home

    def directory_exists(self, path: str) -> bool:
        """Check if a directory exists on the remote."""
        proc = self._probe(f"test -d {shlex.quote(path)}")

        return proc.returncode == 0

    def _probe(self, remote_command: str) -> subprocess.CompletedProcess:
        """Run a short non-interactive command on the remote and capture its output."""
        command = self.ssh_command(remote_command, tty=False)

        log.debug(f"probing with {summarize(command)}")

        proc = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )

        # ssh exits with the remote command's exit code or 255 in case of failure
        if proc.returncode == 255:
            raise ConnectionError(
                f"ssh to {self.host} failed: {proc.stderr.decode().strip()}"
            )

        return proc


class ConnectionBroker:
    """Class that creates or reuses the control master of a host."""

    def __init__(self, config: SSHConfig):
        """Instantiate a broker that keeps its control sockets in the configured dir."""
        self._config = config

    def control_path(self, host: str) -> str:
        """
        Return the path of the control socket for a host.

        The host is hashed to keep the path short (unix socket paths are limited to
        about 100 bytes) and free of special characters, while still being unique for
        every distinct host string.
        """
        digest = hashlib.sha256(host.encode()).hexdigest()[:32]
        return os.path.join(self._config.control_dir, f"conn-{digest}.sock")

    def acquire(self, host: str) -> SessionHandle:
        """
        Return a handle to a live multiplexed connection to the host.

        A new control master is started if there is no live one yet. A failure to
        connect raises a ConnectionError with the error reported by ssh. It is not
        retried, since ssh has its own logic for that (ConnectionAttempts).
        """
        self._check_host(host)

        os.makedirs(self._config.control_dir, mode=0o700, exist_ok=True)

        control_path = self.control_path(host)

        with fasteners.InterProcessLock(f"{control_path}.lock"):
            if self._is_alive(host, control_path):
                log.debug(f"reusing control master for {host} at {control_path}")
            else:
                self._start_master(host, control_path)

        return SessionHandle(
            host=host,
            control_path=control_path,
            control_persist=self._config.control_persist,
            extra_options=list(self._config.options),
        )

    @staticmethod
    def _check_host(host: str) -> None:
        """Reject host strings that ssh would misinterpret."""
        if not host:
            raise ConnectionError("empty host")

        if host.startswith("-"):
            raise ConnectionError(f"invalid host {host!r} (looks like an option)")

        if any(c.isspace() or not c.isprintable() for c in host):
            raise ConnectionError(
                f"invalid host {host!r} (contains whitespace or control characters)"
            )

    def _is_alive(self, host: str, control_path: str) -> bool:
        """Check if a control master is listening on the control socket."""
        if not os.path.exists(control_path):
            return False

        command = (
            ["ssh", "-o", f"ControlPath={control_path}"]
            + self._config.options
            + ["-O", "check", host]
        )

        proc = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

        return proc.returncode == 0

    def _start_master(self, host: str, control_path: str) -> None:
        """Start a control master in the background and wait until it's connected."""
        # A socket file left behind by a master that was killed would make ssh refuse
        # to create a new one.
        if os.path.lexists(control_path):
            log.debug(f"removing stale control socket {control_path}")
            os.unlink(control_path)

        command = (
            [
                "ssh",
                "-o",
                "ControlMaster=yes",
                "-o",
                f"ControlPath={control_path}",
                "-o",
                f"ControlPersist={self._config.control_persist}",
                "-o",
                "LogLevel=error",
            ]
            + self._config.options
            + ["-f", "-N", host]
        )

        log.debug(f"starting control master with {summarize(command)}")

        # The backgrounded master inherits stderr, so it is written to a file rather
        # than a pipe that would not be closed until the master exits.
        with tempfile.TemporaryFile() as stderr:
            try:
                # stdin is inherited so that ssh can ask for passwords and passphrases
                proc = subprocess.run(command, stdout=subprocess.DEVNULL, stderr=stderr)
            except OSError as e:
                raise ConnectionError(f"failed to start ssh: {e}")

            if proc.returncode != 0:
                stderr.seek(0)
                message = stderr.read().decode(errors="replace").strip()

                raise ConnectionError(
                    f"failed to connect to {host}: {message or 'ssh failed'}"
                )
