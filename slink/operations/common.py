"""Shared functionality between the sub-operations that run over a session."""

from __future__ import annotations

from abc import ABC
import contextlib
from dataclasses import dataclass
from enum import Enum
import signal
import subprocess
import sys
from typing import Any, Callable, List, Optional

from slink.broker import SessionHandle
from slink.errors import ConnectionError, RemoteExecutionFailure, SlinkError
from slink.logger import log, summarize
import slink.mirror
from slink.mirror import MirrorPath


class WorkdirKind(Enum):
    """Where a remote shell or command starts."""

    # In the mirror of the local working directory
    MIRRORED = "mirrored"

    # In the login directory, because the mirror does not exist on the remote
    LOGIN = "login"


@dataclass(frozen=True)
class RemoteWorkdir:
    """The remote working directory for a shell or command."""

    kind: WorkdirKind
    mirror: MirrorPath

    @property
    def path(self) -> Optional[str]:
        """Return the directory to change to, or None for the login directory."""
        if self.kind == WorkdirKind.MIRRORED:
            return self.mirror.remote
        else:
            return None


@dataclass
class Context:
    """Everything a sub-operation needs to know about the session it runs in."""

    session: SessionHandle
    cwd: str
    local_home: str

    # Only resolved for operations that mirror paths
    remote_home: Optional[str] = None
    workdir: Optional[RemoteWorkdir] = None

    def mirror(self, local_path: str) -> MirrorPath:
        """Mirror an absolute and normalized local path onto the remote."""
        assert self.remote_home is not None, "remote home has not been resolved"

        return slink.mirror.mirror(local_path, self.local_home, self.remote_home)


class Operation(ABC):
    """Base class for sub-operations that run as a subordinate process."""

    # Whether the operation mirrors local paths onto the remote
    needs_mirror: bool = True

    # Whether the operation runs in the mirror of the local working directory
    needs_workdir: bool = False

    def execute(self, context: Context) -> int:
        """Run the operation and clean up properly in case of errors."""
        with contextlib.ExitStack() as stack:
            return self._execute(stack, context)

        # https://github.com/python/mypy/issues/7726
        assert False, "unreachable"

    def _execute(self, stack: contextlib.ExitStack, context: Context) -> int:
        """Run the actual operation and return its exit code."""
        raise NotImplementedError()

    def failure(self, exit_code: int) -> SlinkError:
        """Return the error describing a non-zero exit code of the operation."""
        # ssh exits with the remote command's exit code or 255 in case of failure
        if exit_code == 255:
            return ConnectionError("connection to the remote host failed")
        else:
            return RemoteExecutionFailure(exit_code)

    @classmethod
    def _call(cls, stack: contextlib.ExitStack, command: List[str]) -> int:
        """
        Run a subordinate process in the foreground and wait for it to exit.

        Ctrl-C is left to the subordinate process, which receives it from the terminal
        as well. ssh forwards it to the remote process, which terminates the operation.
        An operation that fails after Ctrl-C counts as interrupted, since ssh exits
        with 255 when it is killed by the signal.
        """
        log.debug(f"running {summarize(command)}")

        interrupted = False

        def on_interrupt(signum: int, frame: Any) -> None:
            nonlocal interrupted
            interrupted = True

        # A handler rather than SIG_IGN, since ignored signals are inherited across exec
        previous_handler = signal.signal(signal.SIGINT, on_interrupt)
        stack.callback(signal.signal, signal.SIGINT, previous_handler)

        try:
            proc = subprocess.Popen(command)
        except OSError as e:
            raise RuntimeError(f"failed to start {command[0]}: {e}")

        stack.callback(cls._ignore_process_error(proc.terminate))

        proc.wait()

        if interrupted and proc.returncode != 0:
            log.debug(f"{command[0]} exited with {proc.returncode} after interrupt")
            return 128 + signal.SIGINT
        elif proc.returncode >= 0:
            return proc.returncode
        else:
            # Killed by a signal
            # https://www.tldp.org/LDP/abs/html/exitcodes.html
            return 128 - proc.returncode

    @staticmethod
    def _is_tty() -> bool:
        """Check if slink is being executed in an interactive terminal."""
        # stderr is not considered because it's not used for primary I/O
        # For example, 2>/dev/null should not affect TTY status
        return sys.stdout.isatty() and sys.stdin.isatty()

    @staticmethod
    def _ignore_process_error(call: Callable[[], Any]) -> Callable[[], None]:
        """
        Workaround for race condition in Popen.terminate/Popen.kill.

        https://bugs.python.org/issue40550
        """

        def wrapper() -> None:
            with contextlib.suppress(ProcessLookupError):
                call()

        return wrapper
