"""Tests for the git value objects."""

import pytest

from gitdriver.git.exceptions import GitException
from gitdriver.git.models import (
    Branch,
    CommitIdentity,
    MergeOptions,
    ObjectId,
    PersonIdent,
    RemoteConfig,
    Revision,
)

SHA = "0123456789abcdef0123456789abcdef01234567"


@pytest.mark.short
class TestObjectId:
    def test_from_string_trims_and_lowercases(self):
        assert ObjectId.from_string(f" {SHA.upper()}\n") == ObjectId(SHA)

    def test_sha256_ids_are_accepted(self):
        assert ObjectId("f" * 64).name == "f" * 64

    @pytest.mark.parametrize("value", ["", "abc123", "g" * 40, "a" * 41])
    def test_invalid(self, value):
        with pytest.raises(GitException, match="Invalid object id"):
            ObjectId.from_string(value)

    def test_str(self):
        assert str(ObjectId(SHA)) == SHA


@pytest.mark.short
class TestBranch:
    def test_from_ref_name_strips_prefixes(self):
        oid = ObjectId(SHA)
        assert Branch.from_ref_name("refs/heads/main", oid).name == "main"
        assert Branch.from_ref_name("refs/remotes/origin/main", oid).name == "origin/main"
        assert Branch.from_ref_name("other/name", oid).name == "other/name"


@pytest.mark.short
class TestRemoteConfig:
    def test_only_first_url_and_refspec_are_used(self):
        remote = RemoteConfig(
            "origin",
            ("https://example.org/a.git", "https://mirror.example.org/a.git"),
            ("+refs/heads/*:refs/remotes/origin/*", "+refs/tags/*:refs/tags/*"),
        )
        assert remote.url == "https://example.org/a.git"
        assert remote.fetch_refspec == "+refs/heads/*:refs/remotes/origin/*"

    def test_empty(self):
        remote = RemoteConfig("origin")
        assert remote.url is None
        assert remote.fetch_refspec is None


@pytest.mark.short
class TestCommitIdentity:
    def test_from_environment(self):
        identity = CommitIdentity.from_environment(
            {
                "GIT_AUTHOR_NAME": "Ada",
                "GIT_AUTHOR_EMAIL": "ada@example.org",
                "GIT_COMMITTER_NAME": "CI",
                "GIT_COMMITTER_EMAIL": "ci@example.org",
            }
        )
        assert identity.author == PersonIdent("Ada", "ada@example.org")
        assert identity.committer == PersonIdent("CI", "ci@example.org")

    def test_blank_field_leaves_side_absent(self):
        identity = CommitIdentity.from_environment(
            {
                "GIT_AUTHOR_NAME": "Ada",
                "GIT_AUTHOR_EMAIL": "  ",
                "GIT_COMMITTER_NAME": "CI",
            }
        )
        assert identity.author is None
        assert identity.committer is None

    def test_no_environment(self):
        assert CommitIdentity.from_environment(None) == CommitIdentity()


@pytest.mark.short
class TestMergeOptions:
    def test_do_merge_requires_target(self):
        assert not MergeOptions().do_merge()
        assert MergeOptions(merge_target="main").do_merge()

    def test_remote_branch_name(self):
        options = MergeOptions(RemoteConfig("upstream"), "release")
        assert options.remote_branch_name == "upstream/release"

    def test_remote_branch_name_without_remote(self):
        with pytest.raises(GitException):
            MergeOptions(merge_target="main").remote_branch_name

    def test_equality_and_hash_by_field(self):
        a = MergeOptions(RemoteConfig("origin", ("u",)), "main")
        b = MergeOptions(RemoteConfig("origin", ("u",)), "main")
        assert a == b
        assert hash(a) == hash(b)
        assert a != MergeOptions(RemoteConfig("origin", ("u",)), "dev")


@pytest.mark.short
def test_revision_sha1_string():
    assert Revision().sha1_string is None
    assert Revision(ObjectId(SHA)).sha1_string == SHA
