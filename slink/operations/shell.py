"""Module with the operations that run a shell or command on the remote."""

import contextlib
import shlex

from .common import Context, Operation

# Replaces the wrapping shell with a login shell of the remote user
LOGIN_SHELL = 'exec "$SHELL" -l'


def _in_workdir(context: Context, remote_command: str) -> str:
    """Prefix the command with a cd to the remote working directory, if it exists."""
    assert context.workdir is not None, "remote working directory has not been resolved"

    path = context.workdir.path

    if path is None:
        return remote_command
    else:
        return f"cd -- {shlex.quote(path)} && {remote_command}"


class ShellOperation(Operation):
    """Open an interactive shell in the mirror of the local working directory."""

    needs_workdir = True

    def _execute(self, stack: contextlib.ExitStack, context: Context) -> int:
        command = context.session.ssh_command(
            _in_workdir(context, LOGIN_SHELL), tty=self._is_tty()
        )

        return self._call(stack, command)


class CommandOperation(Operation):
    """Run a command in the mirror of the local working directory."""

    needs_workdir = True

    def __init__(self, command: str):
        """Instantiate the operation with the command, which is passed to the shell."""
        self._command = command

    @property
    def command(self) -> str:
        """Return the command that is run on the remote."""
        return self._command

    def _execute(self, stack: contextlib.ExitStack, context: Context) -> int:
        # A pseudo-terminal is allocated in a terminal so that interactive programs work
        command = context.session.ssh_command(
            _in_workdir(context, self._command), tty=self._is_tty()
        )

        return self._call(stack, command)
