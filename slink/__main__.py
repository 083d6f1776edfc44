"""
Module implementing the command-line interface and invoking the main logic of slink.

slink treats a single remote machine as a mirror of the local file system. Commands
like `slink go` and `slink run` open a shell or run a command in the remote directory
that mirrors the local working directory, and `slink sync` synchronizes the two. All of
them share one multiplexed SSH connection per host, so only the first command pays the
cost of connecting and authenticating.
"""

import os
import signal
import sys
from typing import List, NoReturn, Optional

from slink.broker import ConnectionBroker
from slink.config import Config
import slink.constants as constants
from slink.errors import NoHostSelected, RemoteExecutionFailure, SlinkError
import slink.logger as logger
from slink.logger import log
import slink.operations as operations
from slink.registry import HostRegistry
from .args import Arguments


def main(arguments: Optional[List[str]] = None) -> NoReturn:
    """
    Run the slink command specified by the given arguments.

    Defaults to parsing command-line arguments from sys.argv if none are specified.
    """
    # Parse command-line arguments.
    args = Arguments.parse(arguments)

    # Configure debug logging.
    logger.configure(args.debug)

    config = Config.load(os.path.expanduser(args.config))
    registry = HostRegistry(config.host_file)

    try:
        exit_code = _dispatch(args, config, registry)
    except KeyboardInterrupt:
        exit_code = 128 + signal.SIGINT
    except RemoteExecutionFailure as e:
        # Not a failure of slink itself, the exit code simply passes through
        log.debug(e.message)
        exit_code = e.exit_code
    except SlinkError as e:
        log.error(e.message)
        exit_code = e.exit_code
    except Exception as e:
        log.error(f"failed to run command: {e}")
        exit_code = constants.SLINK_ERROR_CODE

    # Exit with either the exit code of the remote command or sync tool, one of the
    # special exit codes for slink errors, or SLINK_ERROR_CODE for other failures.
    sys.exit(exit_code)


def _dispatch(args: Arguments, config: Config, registry: HostRegistry) -> int:
    """Run the command and return its exit code."""
    if args.action == "use":
        registry.store(args.host)
        return 0

    if args.action == "current":
        host = registry.load()

        if host is None:
            raise NoHostSelected()

        print(host)
        return 0

    runner = operations.SessionRunner(config, registry, ConnectionBroker(config.ssh))

    return runner.run(_operation(args, config))


def _operation(args: Arguments, config: Config) -> operations.Operation:
    """Create the operation for a command that runs over a session."""
    if args.action == "go":
        return operations.ShellOperation()
    elif args.action == "run":
        return operations.CommandOperation(args.remote_command)
    elif args.action == "sync":
        return operations.SyncOperation(
            operations.Direction(args.direction), config.sync.options
        )
    elif args.action == "upload":
        return operations.CopyOperation(operations.Direction.UP, args.path)
    elif args.action == "download":
        return operations.CopyOperation(operations.Direction.DOWN, args.path)
    elif args.action == "forward":
        return operations.ForwardOperation(args.ports)
    else:
        raise ValueError(f"unknown command {args.action}")


if __name__ == "__main__":
    main()
