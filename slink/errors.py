"""
Module defining the errors that slink reports to the user.

Every error carries the exit code that the slink process should exit with. Errors are
never retried by slink itself: re-running the command is always safe because acquiring
a session for a host is idempotent.
"""

import slink.constants as constants


class SlinkError(Exception):
    """Base class for all errors reported by slink."""

    exit_code: int = constants.SLINK_ERROR_CODE

    def __init__(self, message: str) -> None:
        """Instantiate the error with a human-readable message."""
        super().__init__(message)

        self.message = message


class NoHostSelected(SlinkError):
    """Raised when a command needs a remote host but none has been selected."""

    exit_code = constants.NO_HOST_SELECTED_CODE

    def __init__(self) -> None:
        """Instantiate the error with instructions for selecting a host."""
        super().__init__("no remote host selected (run `slink use <hostname>` first)")


class ConnectionError(SlinkError):
    """Raised when the SSH transport to a host could not be established or died."""

    exit_code = constants.CONNECTION_ERROR_CODE


class PathResolutionError(SlinkError):
    """Raised when a path that should be absolute and normalized is not."""


class RemoteExecutionFailure(SlinkError):
    """
    Raised when a remote shell or command exited with a non-zero status.

    This is not a failure of slink itself. The status is simply passed on as the exit
    code of the slink process.
    """

    def __init__(self, exit_code: int) -> None:
        """Instantiate the error with the exit code of the remote process."""
        super().__init__(f"remote process exited with status {exit_code}")

        self.exit_code = exit_code


class SyncFailure(SlinkError):
    """Raised when the external sync or copy tool reported a failure."""

    def __init__(self, tool: str, exit_code: int) -> None:
        """Instantiate the error with the name and exit code of the failing tool."""
        super().__init__(f"{tool} failed with status {exit_code}")

        self.tool = tool
        self.exit_code = exit_code
