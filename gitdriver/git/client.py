"""
Repository operations for a single working tree.

GitClient is the entry point used by the orchestrator. Each operation either
runs the git executable and parses its output, or goes through the GitPython
repository bound to the working tree. The choice is made per operation by
the ROUTING table below:

- structured results or identity objects needed -> embedded (GitPython)
- no reliable library equivalent                -> command line

Usage:
    git = GitClient(Path("/var/ci/workspace/job"), environment=build_env)
    git.clone(RemoteConfig("origin", ("https://example.org/repo.git",)))
    git.checkout_branch("main", "origin/main")
    git.setup_submodule_urls("origin")
"""

import io
import logging
import shutil
from pathlib import Path
from typing import IO, Dict, List, Mapping, Optional, Set, Union

from git import Repo
from git.exc import GitError

from gitdriver.config import get_default_remote_name, get_git_executable
from gitdriver.constants import BranchListMode, DOT_GIT
from gitdriver.git.backends import CommandLineBackend, EmbeddedBackend, GitBackend
from gitdriver.git.exceptions import CommandFailedError, GitException
from gitdriver.git.guard import RepositoryGuard
from gitdriver.git.models import (
    Branch,
    CommitIdentity,
    IndexEntry,
    ObjectId,
    RemoteConfig,
    Revision,
    Tag,
)
from gitdriver.git.parsers import (
    first_line,
    parse_branch_names,
    parse_lines,
    parse_ls_tree,
    parse_remotes,
    parse_rev_list,
    parse_tag_names,
)
from gitdriver.git.runner import ProcessRunner
from gitdriver.git.submodules import RemediationResult, SubmoduleUrlRemediator

logger = logging.getLogger(__name__)

EMBEDDED = "embedded"
CLI = "cli"


def normalize_tag_name(tag_name: str) -> str:
    """Tags are addressed with spaces replaced by underscores."""
    return tag_name.replace(" ", "_")


class GitClient:
    """
    Drives git for one working tree.

    Args:
        workspace: Root of the working tree (existing or to be created)
        git_exe: git executable; defaults to the configured one
        environment: Variables passed to every git process; also the source
            of commit identities
        listener: Logger receiving human-readable progress lines
        runner: Process runner, replaceable in tests
        routing: Per-client overrides of ROUTING, e.g. {"list_branches": "cli"}
    """

    # backend operation -> backend
    ROUTING: Dict[str, str] = {
        # Ref objects give names and ids in one query
        "list_branches": EMBEDDED,
        "create_branch": EMBEDDED,
        "delete_branch": EMBEDDED,
        # branch replacement after a forced detached checkout
        "checkout": EMBEDDED,
        "add": EMBEDDED,
        # explicit author/committer objects
        "commit": EMBEDDED,
        # answered by `rev-parse --verify`, no bound repository needed
        "is_commit_in_repo": CLI,
        "resolve_commit": EMBEDDED,
        # peeled tag targets
        "get_tags": EMBEDDED,
        # answered by `symbolic-ref`, no bound repository needed
        "current_branch": CLI,
    }

    def __init__(
        self,
        workspace: Union[str, Path],
        git_exe: Optional[str] = None,
        environment: Optional[Mapping[str, str]] = None,
        listener: Optional[logging.Logger] = None,
        runner: Optional[ProcessRunner] = None,
        routing: Optional[Mapping[str, str]] = None,
    ):
        self.workspace = Path(workspace)
        self.git_exe = git_exe or get_git_executable()
        self.environment = dict(environment or {})
        self.listener = listener or logging.getLogger("gitdriver")
        self.runner = runner or ProcessRunner()
        self.routing = {**self.ROUTING, **(routing or {})}
        unknown = set(self.routing.values()) - {EMBEDDED, CLI}
        if unknown:
            raise GitException(f"Unknown backend in routing: {', '.join(sorted(unknown))}")

        self.guard = RepositoryGuard(self.workspace, self.launch_command)
        self.command_line = CommandLineBackend(self.launch_command)
        self.repo: Optional[Repo] = None
        self.embedded: Optional[EmbeddedBackend] = None

        if self.has_repository():
            try:
                self._bind(Repo(str(self.workspace)))
            except GitError as e:
                logger.warning(f"Could not open repository at {self.workspace}: {e}")

    # -- plumbing --------------------------------------------------------

    def _bind(self, repo: Repo) -> None:
        self.repo = repo
        self.embedded = EmbeddedBackend(repo, self.launch_command)

    def backend(self, operation: str) -> GitBackend:
        """
        Return the backend routed for `operation`.

        Embedded operations require a bound repository.
        """
        if self.routing.get(operation, CLI) == EMBEDDED:
            self.verify_repository()
            return self.embedded
        return self.command_line

    def launch_command(self, *args: str, env: Optional[Mapping[str, str]] = None) -> str:
        """
        Run `git <args>` in the workspace.

        Returns:
            Captured standard output

        Raises:
            CommandFailedError: If git exits with a non-zero status
        """
        return self.launch_command_in(self.workspace, *args, env=env)

    def launch_command_in(
        self, work_dir: Path, *args: str, env: Optional[Mapping[str, str]] = None
    ) -> str:
        command = [self.git_exe, *args]
        full_env = dict(self.environment)
        if env:
            full_env.update(env)

        out = io.StringIO()
        err = io.StringIO()
        status = self.runner.launch(command, work_dir, full_env, stdout=out, stderr=err)

        result = out.getvalue()
        if status != 0:
            raise CommandFailedError(command, status, result + err.getvalue())
        return result

    # -- repository state ------------------------------------------------

    def has_repository(self, git_dir: str = DOT_GIT) -> bool:
        return self.guard.has_repository(git_dir)

    def verify_repository(self) -> Repo:
        return self.guard.verify(self.repo)

    def has_git_modules(self, tree_ish: Optional[str] = None) -> bool:
        """Whether .gitmodules exists and, given `tree_ish`, it has submodules."""
        if not self.guard.has_git_modules():
            return False
        if tree_ish is None:
            return True
        return len(self.get_submodules(tree_ish)) > 0

    def is_bare_repository(self, git_dir: Optional[str] = None) -> bool:
        return self.guard.is_bare(git_dir)

    def init(self) -> None:
        if self.has_repository():
            raise GitException(
                f"You cannot init an existing repository twice: {self.workspace}"
            )
        self.workspace.mkdir(parents=True, exist_ok=True)
        try:
            self._bind(Repo.init(str(self.workspace)))
        except GitError as e:
            raise GitException(f"Could not init repository at {self.workspace}", e)

    def clone(self, remote: RemoteConfig) -> None:
        """
        Start from scratch and clone the whole repository.

        Cloning into an existing directory is not allowed, so the workspace is
        deleted entirely first.
        """
        self.listener.info(f"Cloning repository {remote.name}")
        try:
            if self.workspace.exists():
                shutil.rmtree(self.workspace)
        except OSError as e:
            self.listener.error(f"Failed to clean up workspace {self.workspace}: {e}")
            raise GitException(f"Could not delete workspace {self.workspace}", e)

        self.repo = None
        self.embedded = None
        source = remote.url
        if source is None:
            raise GitException(f"Remote {remote.name} has no URL")

        try:
            repo = Repo.clone_from(
                source,
                str(self.workspace),
                origin=remote.name,
                env=self.environment or None,
            )
        except (GitError, OSError) as e:
            raise GitException(f"Could not clone {source}", e)

        self._bind(repo)
        self.listener.info(f"Cloned {source} into {self.workspace}")

    # -- fetch / reset / merge -------------------------------------------

    def fetch(self, repository: Optional[str] = None, refspec: Optional[str] = None) -> None:
        self.listener.info(
            "Fetching upstream changes" + (f" from {repository}" if repository else "")
        )
        args = ["fetch", "-t"]
        if repository is not None:
            args.append(repository)
            # a refspec only means something together with a repository
            if refspec is not None:
                args.append(refspec)
        self.launch_command(*args)

    def fetch_remote(self, remote: RemoteConfig) -> None:
        self.fetch(remote.url, remote.fetch_refspec)

    def prune(self, remote: RemoteConfig) -> None:
        self.launch_command("remote", "prune", remote.name)

    def reset(self, hard: bool = False) -> None:
        self.listener.info(
            "Resetting workspace (git reset --hard)" if hard else "Resetting workspace"
        )
        args = ["reset"]
        if hard:
            args.append("--hard")
        self.launch_command(*args)

    def clean(self) -> None:
        """Hard reset, then remove untracked and ignored files with `git clean -dfx`."""
        self.verify_repository()
        self.reset(hard=True)
        self.listener.info("Cleaning workspace (git clean -dfx)")
        self.launch_command("clean", "-dfx")

    def merge(self, rev_spec: str) -> None:
        try:
            self.launch_command("merge", rev_spec)
        except GitException as e:
            raise GitException(f"Could not merge {rev_spec}", e)

    def push(self, remote: RemoteConfig, refspec: Optional[str] = None) -> None:
        if remote.url is None:
            raise GitException(f"Remote {remote.name} has no URL")
        args = ["push", remote.url]
        if refspec is not None:
            args.append(refspec)
        # success is judged by the exit status only, the output has too many formats
        self.launch_command(*args)

    # -- revisions -------------------------------------------------------

    def rev_parse(self, rev_name: str) -> Optional[ObjectId]:
        line = first_line(self.launch_command("rev-parse", rev_name))
        return ObjectId.from_string(line) if line else None

    def describe(self, commitish: str) -> Optional[str]:
        return first_line(self.launch_command("describe", "--tags", commitish))

    def merge_base(self, id1: ObjectId, id2: ObjectId) -> Optional[ObjectId]:
        """
        Best common ancestor of two commits.

        Returns None when git finds none (or fails to compute it).
        """
        try:
            result = self.launch_command("merge-base", id1.name, id2.name)
        except GitException as e:
            logger.debug(f"No merge base for {id1} and {id2}: {e}")
            return None

        lines = [line for line in result.splitlines() if line.strip()]
        if not lines:
            return None
        try:
            return ObjectId.from_string(lines[0])
        except GitException as e:
            raise GitException("Error parsing merge base", e)

    def rev_list(self, *args: str) -> List[ObjectId]:
        return parse_rev_list(self.launch_command("rev-list", *args))

    def rev_list_all(self) -> List[ObjectId]:
        return self.rev_list("--all")

    def rev_list_branch(self, branch_id: str) -> List[ObjectId]:
        return self.rev_list(branch_id)

    def is_commit_in_repo(self, sha1: str) -> bool:
        return self.backend("is_commit_in_repo").is_commit_in_repo(sha1)

    # -- log / show ------------------------------------------------------

    def changelog(self, rev_from: str, rev_to: str, out: IO[str]) -> None:
        """Write the raw log of rev_from..rev_to, with changed paths, to `out`."""
        self._whatchanged(rev_from, rev_to, out, "--no-abbrev", "-M", "--pretty=raw")

    def _whatchanged(self, rev_from: str, rev_to: str, out: IO[str], *extra_args: str) -> None:
        rev_spec = f"{rev_from}..{rev_to}"
        command = [self.git_exe, "log", "--raw", "--no-merges", *extra_args, rev_spec]
        err = io.StringIO()
        try:
            status = self.runner.launch(
                command, self.workspace, self.environment, stdout=out, stderr=err
            )
        except GitException as e:
            raise GitException("Error performing git log", e)
        if status != 0:
            raise CommandFailedError(command, status, err.getvalue())

    def show_revision(self, revision: Revision) -> List[str]:
        """Show a revision in raw format, as lines, the way a changelog entry looks."""
        rev_name = revision.sha1_string
        if rev_name is None:
            return []
        return parse_lines(
            self.launch_command("show", "--no-abbrev", "--format=raw", "-M", "--raw", rev_name)
        )

    def get_all_log_entries(self, branch: str) -> str:
        return self.launch_command("log", "--all", "--pretty=format:'%H#%ct'", branch)

    # -- branches --------------------------------------------------------

    def get_branches(self) -> List[Branch]:
        return self._log_branches(self.backend("list_branches").list_branches(BranchListMode.ALL))

    def get_remote_branches(self) -> List[Branch]:
        return self._log_branches(
            self.backend("list_branches").list_branches(BranchListMode.REMOTE)
        )

    def _log_branches(self, branches: List[Branch]) -> List[Branch]:
        for branch in branches:
            self.listener.info(f"Seen branch in repository {branch.name}")
        return branches

    def get_branches_containing(self, revspec: str) -> List[Branch]:
        """Branches containing `revspec`; the containment query is only available from git."""
        names = parse_branch_names(self.launch_command("branch", "-a", "--contains", revspec))
        branches = []
        for name in names:
            object_id = self.rev_parse(name)
            if object_id is not None:
                branches.append(Branch(name, object_id))
        return branches

    def branch(self, name: str) -> None:
        self.backend("create_branch").create_branch(name)

    def delete_branch(self, name: str) -> None:
        self.backend("delete_branch").delete_branch(name)

    def current_branch(self) -> Optional[str]:
        """Name of the checked-out branch, None when HEAD is detached."""
        return self.backend("current_branch").current_branch()

    def checkout(self, commitish: str) -> None:
        self.checkout_branch(None, commitish)

    def checkout_branch(self, branch: Optional[str], commitish: str) -> None:
        """
        Force-checkout `commitish`, then create (or replace) `branch` there and switch to it.
        """
        self.backend("checkout").checkout(commitish, branch)

    # -- staging / commits -----------------------------------------------

    def add(self, file_pattern: str) -> None:
        self.backend("add").add(file_pattern)

    def commit(self, message: str, identity: Optional[CommitIdentity] = None) -> None:
        if identity is None:
            identity = CommitIdentity.from_environment(self.environment)
        self.backend("commit").commit(message, identity)

    def commit_file(self, path: Union[str, Path]) -> None:
        """Commit with the message read from `path`."""
        path = Path(path).absolute()
        try:
            self.launch_command("commit", "-F", str(path))
        except GitException as e:
            raise GitException(f"Cannot commit {path}", e)

    # -- tags ------------------------------------------------------------

    def tag(self, tag_name: str, comment: str) -> None:
        tag_name = normalize_tag_name(tag_name)
        try:
            self.launch_command("tag", "-a", "-f", "-m", comment, tag_name)
        except GitException as e:
            raise GitException(f"Could not apply tag {tag_name}", e)

    def tag_exists(self, tag_name: str) -> bool:
        tag_name = normalize_tag_name(tag_name)
        return self.launch_command("tag", "-l", tag_name).strip() == tag_name

    def delete_tag(self, tag_name: str) -> None:
        tag_name = normalize_tag_name(tag_name)
        try:
            self.launch_command("tag", "-d", tag_name)
        except GitException as e:
            raise GitException(f"Could not delete tag {tag_name}", e)

    def get_tag_names(self, tag_pattern: str) -> Set[str]:
        try:
            return parse_tag_names(self.launch_command("tag", "-l", tag_pattern))
        except GitException as e:
            raise GitException("Error retrieving tag names", e)

    def get_tags_on_commit(self, rev_name: str) -> List[Tag]:
        backend = self.backend("get_tags")
        commit = backend.resolve_commit(rev_name)
        if commit is None:
            return []
        return [
            Tag(name, object_id)
            for name, object_id in backend.get_tags().items()
            if object_id == commit
        ]

    # -- trees / submodules ----------------------------------------------

    def ls_tree(self, tree_ish: str, recursive: bool = False) -> List[IndexEntry]:
        args = ["ls-tree"]
        if recursive:
            args.append("-r")
        args.append(tree_ish)
        return parse_ls_tree(self.launch_command(*args))

    def get_submodules(self, tree_ish: str) -> List[IndexEntry]:
        return [entry for entry in self.ls_tree(tree_ish, recursive=True) if entry.is_submodule]

    def submodule_init(self) -> None:
        self.launch_command("submodule", "init")

    def submodule_sync(self) -> None:
        self.launch_command("submodule", "sync")

    def submodule_update(self, recursive: bool = False) -> None:
        args = ["submodule", "update"]
        if recursive:
            args.extend(["--init", "--recursive"])
        self.launch_command(*args)

    def submodule_clean(self, recursive: bool = False) -> None:
        args = ["submodule", "foreach"]
        if recursive:
            args.append("--recursive")
        args.append("git clean -fdx")
        self.launch_command(*args)

    def get_submodule_url(self, name: str) -> Optional[str]:
        return first_line(self.launch_command("config", "--get", f"submodule.{name}.url"))

    def set_submodule_url(self, name: str, url: str) -> None:
        self.launch_command("config", f"submodule.{name}.url", url)

    # -- remotes ---------------------------------------------------------

    def _git_dir_args(self, git_dir: Optional[str]) -> List[str]:
        return [f"--git-dir={git_dir}"] if git_dir else []

    def get_remote_url(self, name: str, git_dir: Optional[str] = None) -> Optional[str]:
        """
        Get a remote's URL, from the workspace repository or the one at `git_dir`.

        Raises:
            CommandFailedError: If the remote has no URL configured
        """
        output = self.launch_command(
            *self._git_dir_args(git_dir), "config", "--get", f"remote.{name}.url"
        )
        return first_line(output)

    def set_remote_url(self, name: str, url: str, git_dir: Optional[str] = None) -> None:
        self.launch_command(*self._git_dir_args(git_dir), "config", f"remote.{name}.url", url)

    def get_remotes(self) -> List[str]:
        return parse_remotes(self.launch_command("remote"))

    def get_default_remote(self, preferred: Optional[str] = None) -> str:
        """
        Get the remote to use.

        Returns:
            `preferred` if configured, otherwise the first listed remote
        """
        if preferred is None:
            preferred = get_default_remote_name()
        remotes = self.get_remotes()
        if preferred in remotes:
            return preferred
        if remotes:
            return remotes[0]
        raise GitException("No remotes found!")

    def setup_submodule_urls_for_revision(
        self, revision: Revision, listener: Optional[logging.Logger] = None
    ) -> RemediationResult:
        """Set up submodule URLs for the remote the revision's first branch comes from."""
        branch_name = revision.branches[0].name if revision.branches else None

        if branch_name and "/" in branch_name:
            remote_part = branch_name.split("/", 1)[0]
            if not remote_part:
                raise GitException(f"no remote from branch name ({branch_name})")
            remote = self.get_default_remote(remote_part)
        else:
            remote = self.get_default_remote()

        return self.setup_submodule_urls(remote, listener)

    def setup_submodule_urls(
        self, remote: str, listener: Optional[logging.Logger] = None
    ) -> RemediationResult:
        """
        Make submodule URLs correspond to `remote`.

        New submodules and changed submodule origins are picked up first,
        then URLs are rewritten when the superproject remote is non-bare.
        """
        self.submodule_init()
        self.submodule_sync()
        remediator = SubmoduleUrlRemediator(self, listener or self.listener)
        return remediator.remediate(remote)
