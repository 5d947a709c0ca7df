import io

import pytest
import logging

from pathlib import Path

from .git_helpers import GitRepoFactory, git_test_environment


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("gitdriver")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream  # Yield the stream to the test function

    # Cleanup after the test
    logger.removeHandler(handler)
    log_stream.close()


# git fixtures


@pytest.fixture
def git_env() -> dict:
    """Environment passed to git: fixed identities, file transport allowed for submodules."""
    return git_test_environment()


@pytest.fixture
def repo_factory(tmp_path, git_env) -> GitRepoFactory:
    """Fixture building throwaway repositories under tmp_path."""
    return GitRepoFactory(tmp_path, git_env)


@pytest.fixture
def workspace(tmp_path) -> Path:
    """An empty directory to use as working tree."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path
