"""
Modules that run the sub-operations of slink over a multiplexed session.

Each command that needs the remote maps to an Operation subclass. The SessionRunner
resolves the selected host, acquires a session for it, resolves the mirrored paths and
then executes the operation as a subordinate ssh, rsync or scp process.
"""

from .common import Context, Operation, RemoteWorkdir, WorkdirKind
from .forward import ForwardOperation
from .runner import SessionRunner, State
from .shell import CommandOperation, ShellOperation
from .transfer import CopyOperation, Direction, SyncOperation

__all__ = [
    "Context",
    "Operation",
    "RemoteWorkdir",
    "WorkdirKind",
    "ForwardOperation",
    "SessionRunner",
    "State",
    "CommandOperation",
    "ShellOperation",
    "CopyOperation",
    "Direction",
    "SyncOperation",
]
