"""
Module that drives a single slink operation from start to finish.

Every operation that touches the remote goes through the same sequence of states:

    IDLE -> RESOLVING_HOST -> ACQUIRING_SESSION -> RESOLVING_PATH -> EXECUTING

and ends in either SUCCEEDED or FAILED. Path resolution is skipped for operations that
don't mirror paths, like port forwarding.

A shell or command is started in the mirror of the local working directory if it
exists on the remote. If it doesn't, it is started in the login directory instead. This
is decided up front with a separate check, so that a missing directory can never be
confused with a failing connection.
"""

from __future__ import annotations

import contextlib
from enum import auto, Enum
import os
from typing import Optional

from slink.broker import ConnectionBroker
from slink.config import Config
from slink.errors import NoHostSelected
from slink.logger import log
import slink.mirror as mirror
from slink.registry import HostRegistry
from .common import Context, Operation, RemoteWorkdir, WorkdirKind


class State(Enum):
    """States of a session runner."""

    IDLE = auto()
    RESOLVING_HOST = auto()
    ACQUIRING_SESSION = auto()
    RESOLVING_PATH = auto()
    EXECUTING = auto()

    # Terminal states
    SUCCEEDED = auto()
    FAILED = auto()


def working_dir() -> str:
    """
    Return the local working directory.

    Like a shell, this prefers $PWD over the physical path from os.getcwd() if both
    refer to the same directory, so that a directory reached through a symbolic link is
    mirrored as the user sees it.
    """
    cwd = os.getcwd()
    pwd = os.environ.get("PWD")

    if pwd and os.path.isabs(pwd):
        with contextlib.suppress(OSError):
            if os.path.samefile(pwd, cwd):
                return mirror.normalize(pwd, "/")

    return mirror.normalize(cwd, "/")


def home_dir() -> str:
    """Return the local home directory."""
    return mirror.normalize(os.path.expanduser("~"), "/")


class SessionRunner:
    """Class that runs an operation over the session with the selected host."""

    def __init__(
        self,
        config: Config,
        registry: HostRegistry,
        broker: ConnectionBroker,
        cwd: Optional[str] = None,
        local_home: Optional[str] = None,
    ):
        """
        Initialize the runner.

        The working directory and home directory default to those of the process.
        """
        self._config = config
        self._registry = registry
        self._broker = broker

        self._cwd = cwd or working_dir()
        self._local_home = local_home or home_dir()

        self.state = State.IDLE

    def run(self, operation: Operation) -> int:
        """
        Run the operation and return its exit code.

        A non-zero exit code of the operation is raised as the error described by the
        operation, which carries the exit code.
        """
        try:
            exit_code = self._run(operation)
        except BaseException:
            self._transition(State.FAILED)
            raise

        if exit_code != 0:
            self._transition(State.FAILED)
            raise operation.failure(exit_code)

        self._transition(State.SUCCEEDED)

        return exit_code

    def _run(self, operation: Operation) -> int:
        self._transition(State.RESOLVING_HOST)

        host = self._registry.load()

        if host is None:
            raise NoHostSelected()

        self._transition(State.ACQUIRING_SESSION)

        session = self._broker.acquire(host)
        context = Context(session=session, cwd=self._cwd, local_home=self._local_home)

        if operation.needs_mirror:
            self._transition(State.RESOLVING_PATH)

            context.remote_home = self._config.remote.home or session.remote_home()

            if operation.needs_workdir:
                context.workdir = self._resolve_workdir(context)

        self._transition(State.EXECUTING)

        return operation.execute(context)

    @staticmethod
    def _resolve_workdir(context: Context) -> RemoteWorkdir:
        """Find out if the mirror of the working directory exists on the remote."""
        paths = context.mirror(context.cwd)

        if context.session.directory_exists(paths.remote):
            return RemoteWorkdir(WorkdirKind.MIRRORED, paths)
        else:
            log.info(f"{paths.remote} does not exist, using login directory instead")
            return RemoteWorkdir(WorkdirKind.LOGIN, paths)

    def _transition(self, state: State) -> None:
        log.debug(f"{self.state.name} -> {state.name}")
        self.state = state
