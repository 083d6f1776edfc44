"""Module defining the command-line arguments and providing a parser for them."""

from __future__ import annotations

import argparse
from typing import List, Optional

from slink.config import Config
from slink.constants import VERSION


class Arguments(argparse.Namespace):
    """Parsed command-line arguments."""

    action: str

    # use
    host: str

    # run
    command: List[str]

    # sync
    direction: str

    # upload, download
    path: str

    # forward
    ports: List[int]

    config: str
    debug: bool

    @property
    def remote_command(self) -> str:
        """
        Return the command for `slink run` as a single string for the remote shell.

        A command that was passed as a single (quoted) argument is passed on unmodified.
        """
        if len(self.command) == 1:
            return self.command[0]
        else:
            return " ".join(self.command)

    @classmethod
    def parse(cls, args: Optional[List[str]] = None) -> Arguments:
        """
        Parse command-line arguments from the given list of strings.

        Defaults to sys.argv if none are specified.
        """
        parser = cls._get_parser()
        parsed = parser.parse_args(args, namespace=cls())

        if parsed.action == "run":
            # Allow separating the command from slink's own arguments with --
            if parsed.command[:1] == ["--"]:
                parsed.command = parsed.command[1:]

            if not parsed.command:
                parser.error("run: a command to execute is required")

        return parsed

    @classmethod
    def _get_parser(cls) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="slink",
            description="Interact with a remote machine that mirrors the local one.",
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {VERSION}",
            help="show the program version",
        )

        # Path to (optional) config file
        parser.add_argument(
            "--config",
            type=str,
            help=f"path to config file (default is {Config.default_path()})",
            default=Config.default_path(),
        )

        # Enable debug output for development
        parser.add_argument(
            "--debug", action="store_true", help="enable debug information"
        )

        subparsers = parser.add_subparsers(dest="action", metavar="command")
        subparsers.required = True

        use = subparsers.add_parser(
            "use", help="update which remote machine slink uses"
        )
        use.add_argument("host", type=str, help="the hostname of the remote machine")

        subparsers.add_parser("current", help="show the remote machine slink uses")

        subparsers.add_parser("go", help="open a shell in the mirror of this directory")

        run = subparsers.add_parser(
            "run", help="run a command in the mirror of this directory"
        )
        run.add_argument(
            "command",
            type=str,
            nargs=argparse.REMAINDER,
            help="command to run on the remote machine",
        )

        sync = subparsers.add_parser(
            "sync", help="sync this directory to or from the remote"
        )
        sync.add_argument(
            "direction",
            choices=["up", "down"],
            help="up to the remote machine or down from it",
        )

        upload = subparsers.add_parser("upload", help="upload a file to the remote")
        upload.add_argument("path", type=str, help="path to local file")

        download = subparsers.add_parser(
            "download", help="download a file from the remote"
        )
        download.add_argument("path", type=str, help="path to remote file")

        forward = subparsers.add_parser(
            "forward", help="forward local ports to the remote"
        )
        forward.add_argument(
            "ports",
            type=cls._parse_port,
            nargs="+",
            help="ports to forward to the same port on the remote",
        )

        return parser

    @staticmethod
    def _parse_port(arg: str) -> int:
        try:
            val = int(arg)
            assert 0 < val < 65536
            return val
        except (ValueError, AssertionError):
            raise argparse.ArgumentTypeError("expected port number between 1 and 65535")
