"""
Git operations for gitdriver.

This package drives repositories on behalf of a build orchestrator.

Architecture:
    - runner:     runs the git executable, captures its output
    - parsers:    pure functions turning git output into typed values
    - guard:      repository detection and preconditions
    - backends:   command-line and GitPython strategies for the same operations
    - client:     GitClient, the single entry point, routing per operation
    - submodules: rewrites submodule URLs when the superproject origin is non-bare

Every failure is raised as a GitException (or one of its subclasses).
"""

from .client import GitClient, normalize_tag_name
from .exceptions import (
    AmbiguousResultError,
    CommandFailedError,
    GitException,
    InvalidRepositoryStateError,
    RepositoryPermissionError,
)
from .models import (
    Branch,
    BranchListMode,
    CommitIdentity,
    IndexEntry,
    MergeOptions,
    ObjectId,
    PersonIdent,
    RemoteConfig,
    Revision,
    Tag,
)
from .submodules import (
    OriginResolution,
    OriginState,
    RemediationResult,
    SubmoduleUrlRemediator,
)

__all__ = [
    "GitClient",
    "normalize_tag_name",
    "GitException",
    "AmbiguousResultError",
    "CommandFailedError",
    "InvalidRepositoryStateError",
    "RepositoryPermissionError",
    "Branch",
    "BranchListMode",
    "CommitIdentity",
    "IndexEntry",
    "MergeOptions",
    "ObjectId",
    "PersonIdent",
    "RemoteConfig",
    "Revision",
    "Tag",
    "OriginResolution",
    "OriginState",
    "RemediationResult",
    "SubmoduleUrlRemediator",
]
