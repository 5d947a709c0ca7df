"""
The two strategies that carry out repository operations.

CommandLineBackend runs the git executable and parses its text output.
EmbeddedBackend drives an opened GitPython Repo in-process, for operations
where structured results or identity objects are needed. GitClient picks one
per operation from its routing table.
"""

import logging
from typing import Callable, Dict, List, Optional, Protocol

from git import Actor, Head, RemoteReference, Repo
from git.exc import GitError, ODBError

from gitdriver.constants import (
    BranchListMode,
    GIT_AUTHOR_EMAIL_ENV_VAR,
    GIT_AUTHOR_NAME_ENV_VAR,
    GIT_COMMITTER_EMAIL_ENV_VAR,
    GIT_COMMITTER_NAME_ENV_VAR,
)
from gitdriver.git.exceptions import CommandFailedError, GitException
from gitdriver.git.models import (
    Branch,
    CommitIdentity,
    ObjectId,
    PersonIdent,
)
from gitdriver.git.parsers import first_line, parse_branch_names

logger = logging.getLogger(__name__)

LaunchCommand = Callable[..., str]


class GitBackend(Protocol):
    """Operations both backends can perform."""

    def list_branches(self, mode: BranchListMode) -> List[Branch]: ...

    def create_branch(self, name: str) -> None: ...

    def delete_branch(self, name: str) -> None: ...

    def checkout(self, commitish: str, branch: Optional[str] = None) -> None: ...

    def add(self, file_pattern: str) -> None: ...

    def commit(self, message: str, identity: CommitIdentity) -> None: ...

    def is_commit_in_repo(self, sha1: str) -> bool: ...

    def resolve_commit(self, rev: str) -> Optional[ObjectId]: ...

    def get_tags(self) -> Dict[str, ObjectId]: ...

    def current_branch(self) -> Optional[str]: ...


def _identity_env(identity: CommitIdentity) -> Dict[str, str]:
    env = {}
    if identity.author is not None:
        env[GIT_AUTHOR_NAME_ENV_VAR] = identity.author.name
        env[GIT_AUTHOR_EMAIL_ENV_VAR] = identity.author.email
    if identity.committer is not None:
        env[GIT_COMMITTER_NAME_ENV_VAR] = identity.committer.name
        env[GIT_COMMITTER_EMAIL_ENV_VAR] = identity.committer.email
    return env


class CommandLineBackend:
    """Backend running git sub-commands through the client's launcher."""

    def __init__(self, launch_command: LaunchCommand):
        self._launch = launch_command

    def list_branches(self, mode: BranchListMode) -> List[Branch]:
        flag = "-r" if mode is BranchListMode.REMOTE else "-a"
        branches = []
        for name in parse_branch_names(self._launch("branch", flag)):
            object_id = self.resolve_commit(name)
            if object_id is None:
                continue
            if name.startswith("remotes/"):
                name = name[len("remotes/") :]
            branches.append(Branch(name, object_id))
        return branches

    def create_branch(self, name: str) -> None:
        try:
            self._launch("branch", name)
        except GitException as e:
            raise GitException(f"Could not create branch {name}", e)

    def delete_branch(self, name: str) -> None:
        try:
            self._launch("branch", "-d", name)
        except GitException as e:
            raise GitException(f"Could not delete branch {name}", e)

    def checkout(self, commitish: str, branch: Optional[str] = None) -> None:
        try:
            self._launch("checkout", "-f", commitish)
            if branch is not None:
                self._launch("checkout", "-f", "-B", branch, commitish)
        except GitException as e:
            raise GitException(
                f"Could not checkout {branch} with start point {commitish}", e
            )

    def add(self, file_pattern: str) -> None:
        try:
            self._launch("add", file_pattern)
        except GitException as e:
            raise GitException(f"Could not add {file_pattern}", e)

    def commit(self, message: str, identity: CommitIdentity) -> None:
        try:
            self._launch("commit", "-m", message, env=_identity_env(identity))
        except GitException as e:
            raise GitException(f"Cannot commit changes: {message}", e)

    def is_commit_in_repo(self, sha1: str) -> bool:
        return self.resolve_commit(sha1) is not None

    def resolve_commit(self, rev: str) -> Optional[ObjectId]:
        try:
            output = self._launch("rev-parse", "--verify", "-q", f"{rev}^{{commit}}")
        except CommandFailedError:
            return None
        line = first_line(output)
        return ObjectId.from_string(line) if line else None

    def get_tags(self) -> Dict[str, ObjectId]:
        output = self._launch(
            "for-each-ref",
            "--format=%(refname:strip=2)%09%(objectname)%09%(*objectname)",
            "refs/tags",
        )
        tags = {}
        for line in output.splitlines():
            if not line.strip():
                continue
            name, objectname, peeled = (line.split("\t") + ["", ""])[:3]
            tags[name] = ObjectId.from_string(peeled or objectname)
        return tags

    def current_branch(self) -> Optional[str]:
        try:
            output = self._launch("symbolic-ref", "--short", "-q", "HEAD")
        except CommandFailedError:
            return None
        return first_line(output)


def _actor(person: Optional[PersonIdent]) -> Optional[Actor]:
    if person is None:
        return None
    return Actor(person.name, person.email)


class EmbeddedBackend:
    """
    Backend driving an opened GitPython repository.

    Args:
        repo: The bound repository handle
        launch_command: Used for the forced detached checkout that precedes
            branch creation in `checkout`
    """

    def __init__(self, repo: Repo, launch_command: LaunchCommand):
        self.repo = repo
        self._launch = launch_command

    def list_branches(self, mode: BranchListMode) -> List[Branch]:
        branches = []
        for ref in self.repo.references:
            if isinstance(ref, RemoteReference):
                if ref.remote_head == "HEAD":
                    continue
            elif not (isinstance(ref, Head) and mode is BranchListMode.ALL):
                continue
            try:
                object_id = ObjectId(ref.commit.hexsha)
            except (ValueError, GitError) as e:
                logger.debug(f"Skipping unresolvable ref {ref.path}: {e}")
                continue
            branches.append(Branch.from_ref_name(ref.path, object_id))
        return branches

    def create_branch(self, name: str) -> None:
        try:
            self.repo.create_head(name)
        except (GitError, OSError, ValueError) as e:
            raise GitException(f"Could not create branch {name}", e)

    def delete_branch(self, name: str) -> None:
        try:
            self.repo.delete_head(name)
        except (GitError, OSError, ValueError) as e:
            raise GitException(f"Could not delete branch {name}", e)

    def checkout(self, commitish: str, branch: Optional[str] = None) -> None:
        try:
            # Detach first so an existing branch named `branch` can be replaced.
            self._launch("checkout", "-f", commitish)
            if branch is None:
                return

            head = self.repo.create_head(branch, commitish, force=True)
            head.checkout(force=True)
        except (GitException, GitError, OSError, ValueError) as e:
            raise GitException(
                f"Could not checkout {branch} with start point {commitish}", e
            )

    def add(self, file_pattern: str) -> None:
        try:
            self.repo.index.add([file_pattern])
        except (GitError, OSError, ValueError) as e:
            raise GitException(f"Could not add {file_pattern}", e)

    def commit(self, message: str, identity: CommitIdentity) -> None:
        try:
            self.repo.index.commit(
                message,
                author=_actor(identity.author),
                committer=_actor(identity.committer),
            )
        except (GitError, OSError, ValueError) as e:
            raise GitException(f"Cannot commit changes: {message}", e)

    def is_commit_in_repo(self, sha1: str) -> bool:
        return self.resolve_commit(sha1) is not None

    def resolve_commit(self, rev: str) -> Optional[ObjectId]:
        try:
            return ObjectId(self.repo.commit(rev).hexsha)
        except (ODBError, ValueError):
            return None

    def get_tags(self) -> Dict[str, ObjectId]:
        tags = {}
        for tag in self.repo.tags:
            try:
                tags[tag.name] = ObjectId(tag.commit.hexsha)
            except ValueError:
                # tags on trees or blobs have no commit
                logger.debug(f"Tag {tag.name} does not point to a commit")
        return tags

    def current_branch(self) -> Optional[str]:
        if self.repo.head.is_detached:
            return None
        return self.repo.active_branch.name
