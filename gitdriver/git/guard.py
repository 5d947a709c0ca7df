"""Repository detection and preconditions for state-mutating operations."""

import logging
import os
from pathlib import Path
from typing import Callable, Optional

from git import Repo

from gitdriver.constants import DOT_GIT, GIT_MODULES
from gitdriver.git.exceptions import (
    GitException,
    InvalidRepositoryStateError,
    RepositoryPermissionError,
)
from gitdriver.git.parsers import first_line

logger = logging.getLogger(__name__)


class RepositoryGuard:
    """
    Answers whether a repository exists under a workspace and whether it is bare.

    Args:
        workspace: The working tree root
        launch_command: Callable running `git <args>` in the workspace and
            returning its standard output
    """

    def __init__(self, workspace: Path, launch_command: Callable[..., str]):
        self.workspace = Path(workspace)
        self._launch_command = launch_command

    def _exists(self, relative: str) -> bool:
        path = self.workspace / relative
        try:
            os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except PermissionError as e:
            raise RepositoryPermissionError(str(path), e)
        except OSError as e:
            raise GitException(f"Couldn't check for {path}", e)
        return True

    def has_repository(self, git_dir: str = DOT_GIT) -> bool:
        """Check for repository metadata at `git_dir`, relative to the workspace."""
        return self._exists(git_dir)

    def has_git_modules(self) -> bool:
        return self._exists(GIT_MODULES)

    def verify(self, repo: Optional[Repo]) -> Repo:
        """
        Ensure a repository is detected and an embedded handle is bound.

        Returns:
            The bound repository handle

        Raises:
            InvalidRepositoryStateError: If either condition does not hold
        """
        if repo is None or not self.has_repository():
            raise InvalidRepositoryStateError(str(self.workspace))
        return repo

    def is_bare(self, git_dir: Optional[str] = None) -> bool:
        """
        Ask git whether a repository is bare.

        Args:
            git_dir: Metadata directory of the repository to query; the
                workspace repository when omitted

        Raises:
            GitException: If git cannot answer, e.g. `git_dir` is not a repository
        """
        if git_dir:
            output = self._launch_command(
                f"--git-dir={git_dir}", "rev-parse", "--is-bare-repository"
            )
        else:
            output = self._launch_command("rev-parse", "--is-bare-repository")

        return first_line(output) != "false"
