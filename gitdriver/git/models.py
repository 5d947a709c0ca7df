"""
Value objects exchanged with the orchestrator.

Everything here is immutable and compared by field. Objects are built fresh
from command output or GitPython queries on every call.
"""

import re
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from gitdriver.constants import (
    BranchListMode,
    GIT_AUTHOR_EMAIL_ENV_VAR,
    GIT_AUTHOR_NAME_ENV_VAR,
    GIT_COMMITTER_EMAIL_ENV_VAR,
    GIT_COMMITTER_NAME_ENV_VAR,
    SUBMODULE_MODE,
)
from gitdriver.git.exceptions import GitException

_HEX_SHA = re.compile(r"^(?:[0-9a-f]{40}|[0-9a-f]{64})$")

_REF_PREFIXES = ("refs/heads/", "refs/remotes/")

__all__ = [
    "BranchListMode",
    "ObjectId",
    "Branch",
    "Tag",
    "IndexEntry",
    "RemoteConfig",
    "Revision",
    "PersonIdent",
    "CommitIdentity",
    "MergeOptions",
]


@dataclass(frozen=True)
class ObjectId:
    """A full commit/tree/blob hash (SHA-1 or SHA-256)."""

    hexsha: str

    def __post_init__(self):
        if not _HEX_SHA.match(self.hexsha):
            raise GitException(f"Invalid object id: '{self.hexsha}'")

    @classmethod
    def from_string(cls, text: str) -> "ObjectId":
        return cls(text.strip().lower())

    @property
    def name(self) -> str:
        return self.hexsha

    def __str__(self) -> str:
        return self.hexsha


@dataclass(frozen=True)
class Branch:
    name: str
    object_id: ObjectId

    @classmethod
    def from_ref_name(cls, ref_name: str, object_id: ObjectId) -> "Branch":
        """Build a branch from a full ref name such as refs/remotes/origin/main."""
        for prefix in _REF_PREFIXES:
            if ref_name.startswith(prefix):
                ref_name = ref_name[len(prefix) :]
                break
        return cls(ref_name, object_id)


@dataclass(frozen=True)
class Tag:
    name: str
    object_id: ObjectId


@dataclass(frozen=True)
class IndexEntry:
    """One line of `git ls-tree` output."""

    mode: str
    type: str
    object: str
    file: str

    @property
    def is_submodule(self) -> bool:
        return self.mode == SUBMODULE_MODE


@dataclass(frozen=True)
class RemoteConfig:
    """
    A named remote with its fetch URLs and refspecs.

    Only the first URL and the first refspec are used by the git layer.
    """

    name: str
    urls: Tuple[str, ...] = ()
    fetch_refspecs: Tuple[str, ...] = ()

    @property
    def url(self) -> Optional[str]:
        return self.urls[0] if self.urls else None

    @property
    def fetch_refspec(self) -> Optional[str]:
        return self.fetch_refspecs[0] if self.fetch_refspecs else None


@dataclass(frozen=True)
class Revision:
    """A commit handed over by the orchestrator, with the branches pointing at it."""

    sha1: Optional[ObjectId] = None
    branches: Tuple[Branch, ...] = ()

    @property
    def sha1_string(self) -> Optional[str]:
        return self.sha1.name if self.sha1 is not None else None


@dataclass(frozen=True)
class PersonIdent:
    name: str
    email: str

    @classmethod
    def from_values(
        cls, name: Optional[str], email: Optional[str]
    ) -> Optional["PersonIdent"]:
        """Return an identity, or None when either value is missing or blank."""
        if not name or not name.strip() or not email or not email.strip():
            return None
        return cls(name, email)


@dataclass(frozen=True)
class CommitIdentity:
    """Author and committer of a commit; a None side uses GitPython's defaults."""

    author: Optional[PersonIdent] = None
    committer: Optional[PersonIdent] = None

    @classmethod
    def from_environment(cls, env: Optional[Mapping[str, str]]) -> "CommitIdentity":
        if not env:
            return cls()
        return cls(
            author=PersonIdent.from_values(
                env.get(GIT_AUTHOR_NAME_ENV_VAR), env.get(GIT_AUTHOR_EMAIL_ENV_VAR)
            ),
            committer=PersonIdent.from_values(
                env.get(GIT_COMMITTER_NAME_ENV_VAR),
                env.get(GIT_COMMITTER_EMAIL_ENV_VAR),
            ),
        )


@dataclass(frozen=True)
class MergeOptions:
    """Optional merge with another branch, possibly from another remote, before a build."""

    merge_remote: Optional[RemoteConfig] = None
    merge_target: Optional[str] = field(default=None)

    def do_merge(self) -> bool:
        return self.merge_target is not None

    @property
    def remote_branch_name(self) -> str:
        if self.merge_remote is None:
            raise GitException("No merge remote configured")
        return f"{self.merge_remote.name}/{self.merge_target}"
