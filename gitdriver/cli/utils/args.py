import os
import sys
from functools import wraps
from pathlib import Path

import click

from gitdriver.git import GitClient, GitException

from .logging import logger


def workdir_option(cmd):
    """Add the --workdir/-C option shared by every repository command."""
    return click.option(
        "--workdir",
        "-C",
        type=click.Path(file_okay=False, path_type=Path),
        default=Path.cwd,
        envvar="GITDRIVER_WORKDIR",
        show_default="current directory",
        help="Working tree to operate on.",
    )(cmd)


def make_client(workdir: Path) -> GitClient:
    """A client for `workdir` that passes the current environment to git."""
    return GitClient(workdir, environment=dict(os.environ), listener=logger)


def exit_on_git_error(cmd):
    """Report a GitException as a one-line error and exit with status 1."""

    @wraps(cmd)
    def wrapper(*args, **kwargs):
        try:
            return cmd(*args, **kwargs)
        except GitException as e:
            click.echo(f"Error: {e.message}", err=True)
            if e.cause is not None:
                logger.debug(f"Caused by: {e.cause}")
            sys.exit(1)

    return wrapper
