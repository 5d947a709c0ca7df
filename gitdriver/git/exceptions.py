"""
Exception classes for the git module.

Every failure surfaced by the git layer is a GitException; the subclasses
only narrow down what went wrong.
"""

from typing import Optional, Sequence


class GitException(Exception):
    """Base exception for all git-related errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class RepositoryPermissionError(GitException):
    """Raised when the repository location cannot be inspected due to permissions."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        super().__init__(
            f"Security error when trying to check for git repository at {path}. "
            "Are you sure you have correct permissions?",
            cause,
        )


class InvalidRepositoryStateError(GitException):
    """Raised when an operation needs a repository that is missing or not opened."""

    def __init__(self, workspace: str):
        self.workspace = workspace
        super().__init__(
            f"Invalid repository state: no git repository is open at {workspace}"
        )


class CommandFailedError(GitException):
    """Raised when a git command exits with a non-zero status."""

    def __init__(self, command: Sequence[str], status: int, output: str):
        self.command = list(command)
        self.status = status
        self.output = output
        super().__init__(
            f'Command "{" ".join(self.command)}" returned status code {status}: {output}'
        )


class AmbiguousResultError(GitException):
    """Raised when a single-line result has more than one line."""

    def __init__(self, output: str):
        self.output = output
        super().__init__("Result has multiple lines")
