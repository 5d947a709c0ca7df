"""
Submodule URL remediation.

Submodule URLs recorded in a superproject are usually relative to the
superproject's remote. When that remote is a non-bare repository (a working
tree with a .git directory), the URLs resolve against the wrong location and
have to be rewritten to `<origin path>/<submodule path>`.

Whether a remote is bare can only be observed when it is reachable as a
local path. Otherwise the answer is a default taken from the shape of the
URL:

    ends with "/.git"   -> non-bare
    anything else       -> bare

Resolution is reported as an explicit OriginResolution so callers and tests
can tell "bare", "non-bare" and "nothing safe to infer" apart without
inspecting logs.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol
from urllib.parse import unquote, urlparse

from gitdriver.constants import DEFAULT_REMOTE_NAME, DOT_GIT, NON_BARE_SUFFIX
from gitdriver.git.exceptions import GitException
from gitdriver.git.models import IndexEntry

logger = logging.getLogger(__name__)

# RFC 3986 scheme, e.g. "https", "ssh", "git+ssh"
_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


class SubmoduleHost(Protocol):
    """The repository operations the remediator relies on."""

    def get_remote_url(self, name: str, git_dir: Optional[str] = None) -> Optional[str]: ...

    def set_remote_url(self, name: str, url: str, git_dir: Optional[str] = None) -> None: ...

    def set_submodule_url(self, name: str, url: str) -> None: ...

    def get_submodules(self, tree_ish: str) -> List[IndexEntry]: ...

    def is_bare_repository(self, git_dir: Optional[str] = None) -> bool: ...

    def has_repository(self, git_dir: str = DOT_GIT) -> bool: ...


class OriginState(Enum):
    BARE = "bare"
    NON_BARE = "non-bare"
    UNRESOLVABLE = "unresolvable"


@dataclass(frozen=True)
class OriginResolution:
    state: OriginState
    url: Optional[str] = None
    path: Optional[str] = None
    inspected: bool = False


@dataclass
class RemediationResult:
    resolution: OriginResolution
    rewritten: List[str] = field(default_factory=list)
    error: Optional[str] = None


def split_origin_url(url: str):
    """
    Parse a remote URL the way a strict URI parser would.

    Returns:
        A urllib ParseResult, or None when the URL is not a URI at all
        (e.g. the SCP-like shorthand user@host:path)
    """
    if not url or not url.strip():
        return None

    head, sep, _ = url.partition(":")
    if sep and "/" not in head and not _SCHEME.match(head):
        # "user@host:repo" has something that is neither a scheme nor a path
        return None
    if any(c.isspace() for c in url):
        return None

    try:
        return urlparse(url)
    except ValueError:
        return None


def is_local(parsed) -> bool:
    """A URI without scheme, or a file URI without host, names a local path."""
    if not parsed.scheme:
        return True
    return parsed.scheme.lower() == "file" and not parsed.netloc


class SubmoduleUrlRemediator:
    """
    Rewrites submodule URLs of a superproject whose origin is non-bare.

    Args:
        git: The repository the superproject lives in (a GitClient)
        listener: Logger receiving progress lines
    """

    def __init__(self, git: SubmoduleHost, listener: Optional[logging.Logger] = None):
        self.git = git
        self.listener = listener or logger

    def resolve_origin(self, remote: str = DEFAULT_REMOTE_NAME) -> OriginResolution:
        """Decide whether the superproject's `remote` is bare."""
        try:
            url = self.git.get_remote_url(remote)
        except GitException as e:
            self.listener.warning(f"Could not determine remote.{remote}.url: {e}")
            return OriginResolution(OriginState.UNRESOLVABLE)

        if not url:
            self.listener.debug(f"remote.{remote}.url is not set")
            return OriginResolution(OriginState.UNRESOLVABLE)

        bare = True
        stripped = url
        if stripped.endswith(NON_BARE_SUFFIX):
            stripped = stripped[: -len(NON_BARE_SUFFIX)]
            bare = False

        parsed = split_origin_url(stripped)
        if parsed is None:
            self.listener.debug(f"Cannot parse {url} as a URI, leaving submodule URLs")
            return OriginResolution(OriginState.UNRESOLVABLE, url=url)

        path = unquote(parsed.path)
        inspected = False

        if is_local(parsed):
            for candidate in (path, os.path.join(path, DOT_GIT)):
                try:
                    bare = self.git.is_bare_repository(candidate)
                    inspected = True
                    break
                except GitException as e:
                    self.listener.debug(
                        f"Exception occurred while detecting repository type by path {candidate}: {e}"
                    )

        state = OriginState.BARE if bare else OriginState.NON_BARE
        return OriginResolution(state, url=url, path=path, inspected=inspected)

    def remediate(self, remote: str = DEFAULT_REMOTE_NAME) -> RemediationResult:
        """
        Rewrite submodule URLs when the origin of `remote` is non-bare.

        Nothing here raises: a failure while listing or rewriting submodules
        is logged and reported in the result's `error`.
        """
        resolution = self.resolve_origin(remote)
        result = RemediationResult(resolution)

        if resolution.state is not OriginState.NON_BARE:
            self.listener.debug(
                f"Origin of {remote} is {resolution.state.value}, "
                "keeping configured submodule URLs"
            )
            return result

        try:
            for submodule in self.git.get_submodules("HEAD"):
                url = os.path.join(resolution.path, submodule.file)
                self.git.set_submodule_url(submodule.file, url)

                sub_git_dir = os.path.join(submodule.file, DOT_GIT)
                # materialized only after `submodule update`
                if self.git.has_repository(sub_git_dir) and self.git.get_remote_url(
                    DEFAULT_REMOTE_NAME, sub_git_dir
                ):
                    self.git.set_remote_url(DEFAULT_REMOTE_NAME, url, sub_git_dir)

                self.listener.info(f"Submodule {submodule.file} now points to {url}")
                result.rewritten.append(submodule.file)
        except GitException as e:
            # e.g. HEAD does not exist yet
            self.listener.warning(f"Could not fix submodule URLs: {e}")
            result.error = str(e)

        return result
