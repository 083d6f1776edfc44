"""
Module that maps local paths onto the remote paths that mirror them.

slink treats the remote machine as a mirror of the local file system. A local path
inside the local home directory is mirrored relative to the remote home directory, and
any other path is mirrored verbatim from the root:

    /home/me/src/project  ->  <remote home>/src/project
    /opt/data             ->  /opt/data

Paths are compared segment by segment, so /home/me2 is not considered to be inside
/home/me. Symbolic links are not resolved; the mapping works on the paths as given.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import posixpath
from typing import List

from slink.errors import PathResolutionError


class MirrorRule(Enum):
    """The rule that produced a mirrored path."""

    HOME_RELATIVE = "home-relative"
    ROOT_RELATIVE = "root-relative"


@dataclass(frozen=True)
class MirrorPath:
    """A local path together with the remote path that mirrors it."""

    local: str
    remote: str
    rule: MirrorRule


def normalize(path: str, cwd: str) -> str:
    """Make a user supplied path absolute relative to cwd and normalize it lexically."""
    if not posixpath.isabs(path):
        path = posixpath.join(cwd, path)

    normalized = posixpath.normpath(path)

    # POSIX allows an initial double slash to have a special meaning, but we don't
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")

    return normalized


def _check_normalized(name: str, path: str) -> None:
    if not posixpath.isabs(path):
        raise PathResolutionError(f"{name} is not an absolute path: {path!r}")

    if normalize(path, "/") != path:
        raise PathResolutionError(f"{name} is not a normalized path: {path!r}")


def _segments(path: str) -> List[str]:
    return [segment for segment in path.split("/") if segment]


def mirror(local_path: str, local_home: str, remote_home: str) -> MirrorPath:
    """
    Determine the remote path that mirrors the local path.

    Both local paths must be absolute and normalized, and the remote home must be
    absolute. A PathResolutionError is raised otherwise.
    """
    _check_normalized("local path", local_path)
    _check_normalized("local home", local_home)

    if not posixpath.isabs(remote_home):
        raise PathResolutionError(
            f"remote home is not an absolute path: {remote_home!r}"
        )

    path_segments = _segments(local_path)
    home_segments = _segments(local_home)

    if path_segments[: len(home_segments)] == home_segments:
        suffix = path_segments[len(home_segments) :]
        remote = posixpath.normpath(posixpath.join(remote_home, *suffix))

        return MirrorPath(local_path, remote, MirrorRule.HOME_RELATIVE)
    else:
        return MirrorPath(local_path, local_path, MirrorRule.ROOT_RELATIVE)


def resolve(local_path: str, local_home: str, remote_home: str) -> str:
    """Return the remote path that mirrors the local path."""
    return mirror(local_path, local_home, remote_home).remote
