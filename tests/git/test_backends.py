"""Tests for the command-line and embedded backends."""

from unittest.mock import MagicMock

import pytest

from gitdriver.git import GitClient
from gitdriver.git.backends import CommandLineBackend, EmbeddedBackend
from gitdriver.git.client import CLI, EMBEDDED
from gitdriver.git.exceptions import CommandFailedError, GitException
from gitdriver.git.models import (
    Branch,
    BranchListMode,
    CommitIdentity,
    ObjectId,
    PersonIdent,
)

from ..git_helpers import FakeRunner

SHA_A = "a" * 40
SHA_B = "b" * 40
SHA_C = "c" * 40


def _verify(rev):
    return ("rev-parse", "--verify", "-q", f"{rev}^{{commit}}")


@pytest.fixture
def make_client(workspace, git_env):
    def _make(outputs=None, routing=None):
        runner = FakeRunner(outputs)
        client = GitClient(
            workspace, git_exe="git", environment=git_env, runner=runner, routing=routing
        )
        return client, runner

    return _make


@pytest.fixture
def command_line(make_client):
    def _make(outputs=None):
        git, runner = make_client(outputs)
        return CommandLineBackend(git.launch_command), runner

    return _make


@pytest.mark.short
class TestCommandLineBackend:
    def test_list_all_branches(self, command_line):
        backend, runner = command_line(
            {
                ("branch", "-a"): (
                    0,
                    "* main\n  remotes/origin/HEAD -> origin/main\n  remotes/origin/main\n",
                ),
                _verify("main"): (0, f"{SHA_A}\n"),
                _verify("remotes/origin/main"): (0, f"{SHA_B}\n"),
            }
        )
        assert backend.list_branches(BranchListMode.ALL) == [
            Branch("main", ObjectId(SHA_A)),
            Branch("origin/main", ObjectId(SHA_B)),
        ]

    def test_list_remote_branches(self, command_line):
        backend, runner = command_line(
            {
                ("branch", "-r"): (0, "  origin/main\n"),
                _verify("origin/main"): (0, f"{SHA_B}\n"),
            }
        )
        assert backend.list_branches(BranchListMode.REMOTE) == [
            Branch("origin/main", ObjectId(SHA_B))
        ]
        assert runner.calls[0] == ["branch", "-r"]

    def test_unresolvable_branch_is_skipped(self, command_line):
        backend, _ = command_line(
            {
                ("branch", "-a"): (0, "  broken\n  main\n"),
                _verify("broken"): (1, ""),
                _verify("main"): (0, f"{SHA_A}\n"),
            }
        )
        assert backend.list_branches(BranchListMode.ALL) == [Branch("main", ObjectId(SHA_A))]

    def test_checkout_detached(self, command_line):
        backend, runner = command_line()
        backend.checkout(SHA_A)
        assert runner.calls == [["checkout", "-f", SHA_A]]

    def test_checkout_branch(self, command_line):
        backend, runner = command_line()
        backend.checkout("origin/main", "main")
        assert runner.calls == [
            ["checkout", "-f", "origin/main"],
            ["checkout", "-f", "-B", "main", "origin/main"],
        ]

    def test_checkout_failure(self, command_line):
        backend, _ = command_line({("checkout", "-f", "nope"): (1, "")})
        with pytest.raises(GitException, match="Could not checkout main with start point nope"):
            backend.checkout("nope", "main")

    def test_get_tags_uses_peeled_target(self, command_line):
        backend, _ = command_line(
            {
                (
                    "for-each-ref",
                    "--format=%(refname:strip=2)%09%(objectname)%09%(*objectname)",
                    "refs/tags",
                ): (0, f"light\t{SHA_A}\t\nannotated\t{SHA_C}\t{SHA_B}\n"),
            }
        )
        assert backend.get_tags() == {
            "light": ObjectId(SHA_A),
            "annotated": ObjectId(SHA_B),
        }

    def test_current_branch(self, command_line):
        backend, _ = command_line({("symbolic-ref", "--short", "-q", "HEAD"): (0, "main\n")})
        assert backend.current_branch() == "main"

    def test_current_branch_detached(self, command_line):
        backend, _ = command_line({("symbolic-ref", "--short", "-q", "HEAD"): (1, "")})
        assert backend.current_branch() is None

    def test_is_commit_in_repo(self, command_line):
        backend, _ = command_line({_verify(SHA_A): (0, f"{SHA_A}\n"), _verify(SHA_B): (1, "")})
        assert backend.is_commit_in_repo(SHA_A)
        assert not backend.is_commit_in_repo(SHA_B)

    def test_commit_passes_identity(self, command_line):
        backend, runner = command_line()
        backend.commit(
            "Record build",
            CommitIdentity(author=PersonIdent("Ada", "ada@example.org")),
        )
        assert runner.calls == [["commit", "-m", "Record build"]]
        assert runner.envs[0]["GIT_AUTHOR_NAME"] == "Ada"
        assert runner.envs[0]["GIT_COMMITTER_NAME"] == "Build Bot"

    def test_branch_create_and_delete_failures(self, command_line):
        backend, _ = command_line({("branch", "topic"): (128, ""), ("branch", "-d", "gone"): (1, "")})
        with pytest.raises(GitException, match="Could not create branch topic"):
            backend.create_branch("topic")
        with pytest.raises(GitException, match="Could not delete branch gone"):
            backend.delete_branch("gone")


@pytest.mark.short
class TestRouting:
    def test_command_line_operations_need_no_repository(self, make_client):
        git, runner = make_client(
            {
                ("symbolic-ref", "--short", "-q", "HEAD"): (0, "main\n"),
                _verify(SHA_A): (0, f"{SHA_A}\n"),
            }
        )
        assert git.ROUTING["current_branch"] == CLI
        assert git.current_branch() == "main"
        assert git.is_commit_in_repo(SHA_A)
        assert git.backend("current_branch") is git.command_line

    def test_override_routes_to_command_line(self, make_client):
        git, runner = make_client(
            {
                ("branch", "-a"): (0, "* main\n"),
                _verify("main"): (0, f"{SHA_A}\n"),
            },
            routing={"list_branches": CLI},
        )
        assert git.get_branches() == [Branch("main", ObjectId(SHA_A))]
        assert git.ROUTING["list_branches"] == EMBEDDED

    def test_unknown_backend(self, workspace):
        with pytest.raises(GitException, match="Unknown backend in routing: jgit"):
            GitClient(workspace, git_exe="git", runner=FakeRunner(), routing={"commit": "jgit"})


@pytest.mark.short
class TestEmbeddedCheckout:
    def test_failed_detach_names_branch_and_start_point(self):
        repo = MagicMock()
        launch = MagicMock(side_effect=CommandFailedError(["git", "checkout"], 1, "error"))
        backend = EmbeddedBackend(repo, launch)

        with pytest.raises(GitException, match="Could not checkout feature with start point nope") as excinfo:
            backend.checkout("nope", "feature")

        assert isinstance(excinfo.value.cause, CommandFailedError)
        repo.create_head.assert_not_called()

    def test_detached_checkout_does_not_touch_heads(self):
        repo = MagicMock()
        launch = MagicMock(return_value="")
        EmbeddedBackend(repo, launch).checkout(SHA_A)

        launch.assert_called_once_with("checkout", "-f", SHA_A)
        repo.create_head.assert_not_called()

    def test_branch_replaced_at_start_point(self):
        repo = MagicMock()
        EmbeddedBackend(repo, MagicMock(return_value="")).checkout("origin/main", "main")

        repo.create_head.assert_called_once_with("main", "origin/main", force=True)
        repo.create_head.return_value.checkout.assert_called_once_with(force=True)
