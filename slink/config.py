"""Module for configuration variables with defaults that are overridable by a file."""

from __future__ import annotations

from configparser import ConfigParser, SectionProxy
from dataclasses import dataclass, field
import os
import shlex
from typing import List, Optional

import slink.constants as constants
from slink.logger import log


def config_dir() -> str:
    """Return the directory holding the config file and the selected host."""
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return os.path.join(base, constants.APP_NAME)


def cache_dir() -> str:
    """Return the directory holding the SSH control sockets."""
    base = os.environ.get("XDG_CACHE_HOME") or os.path.expanduser("~/.cache")
    return os.path.join(base, constants.APP_NAME)


@dataclass
class SSHConfig:
    """Configuration variables related to the multiplexed SSH connection."""

    control_dir: str = field(default_factory=cache_dir)
    control_persist: str = constants.DEFAULT_CONTROL_PERSIST

    # Additional options passed to every ssh invocation, e.g. ["-p", "2222"]
    options: List[str] = field(default_factory=list)

    @staticmethod
    def load(section: SectionProxy) -> SSHConfig:
        """Load overridden variables from a section within a config file."""
        config = SSHConfig()

        config.control_dir = os.path.expanduser(
            section.get("control_dir", fallback=config.control_dir)
        )
        config.control_persist = section.get(
            "control_persist", fallback=config.control_persist
        )
        config.options = shlex.split(section.get("options", fallback=""))

        return config


@dataclass
class SyncConfig:
    """Configuration variables related to directory synchronization."""

    # Additional options passed to rsync, e.g. ["--exclude", ".git"]
    options: List[str] = field(default_factory=list)

    @staticmethod
    def load(section: SectionProxy) -> SyncConfig:
        """Load overridden variables from a section within a config file."""
        config = SyncConfig()

        config.options = shlex.split(section.get("options", fallback=""))

        return config


@dataclass
class RemoteConfig:
    """Configuration variables describing the remote machine."""

    # Home directory on the remote, queried over SSH if not specified
    home: Optional[str] = None

    @staticmethod
    def load(section: SectionProxy) -> RemoteConfig:
        """Load overridden variables from a section within a config file."""
        config = RemoteConfig()

        config.home = section.get("home", fallback=config.home) or None

        return config


@dataclass
class Config:
    """Configuration variables."""

    ssh: SSHConfig = field(default_factory=SSHConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)

    host_file: str = field(
        default_factory=lambda: os.path.join(config_dir(), constants.HOST_FILE_NAME)
    )

    @staticmethod
    def default_path() -> str:
        """Return the path of the config file that is used if none is specified."""
        return os.path.join(config_dir(), constants.CONFIG_FILE_NAME)

    @staticmethod
    def load(filename: str) -> Config:
        """Load overridden configuration variables from a config file."""
        parser = ConfigParser()

        config = Config()

        try:
            with open(filename, "r") as f:
                parser.read_string(f.read(), filename)

            ssh = SSHConfig.load(parser["ssh"]) if "ssh" in parser else config.ssh
            sync = SyncConfig.load(parser["sync"]) if "sync" in parser else config.sync
            remote = (
                RemoteConfig.load(parser["remote"])
                if "remote" in parser
                else config.remote
            )

            # Only applied once every section is valid, so the file is used as a whole
            config.ssh, config.sync, config.remote = ssh, sync, remote
        except FileNotFoundError:
            log.info(f"no config file at {filename}")
        except Exception as e:
            # An unreadable config file is not considered a fatal error since we can
            # fall back to defaults.
            log.error(f"failed to read config file {filename}: {e}")
        else:
            log.info(f"loaded config: {config}")

        return config
