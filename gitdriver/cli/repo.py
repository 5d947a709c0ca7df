"""cli commands that create or update the working tree"""

from pathlib import Path
from typing import Optional

import click

from gitdriver.config import get_default_remote_name
from gitdriver.git import RemoteConfig

from .debug import add_debug_option
from .utils.args import exit_on_git_error, make_client, workdir_option
from .utils.logging import logger


@add_debug_option
@click.command("init")
@workdir_option
@exit_on_git_error
def init(workdir: Path):
    """Create an empty repository in the working tree."""
    make_client(workdir).init()
    logger.info(f"Initialized repository in {workdir}")


@add_debug_option
@click.command("clone")
@click.argument("url")
@click.option(
    "--name",
    "-n",
    default=get_default_remote_name,
    help="Name of the remote.",
)
@click.option(
    "--refspec",
    default=None,
    help="Fetch refspec recorded for the remote.",
)
@workdir_option
@exit_on_git_error
def clone(url: str, name: str, refspec: Optional[str], workdir: Path):
    """Replace the working tree with a fresh clone of URL.

    The working tree is deleted first; cloning never merges into an existing
    directory.
    """
    remote = RemoteConfig(name, (url,), (refspec,) if refspec else ())
    make_client(workdir).clone(remote)


@add_debug_option
@click.command("fetch")
@click.argument("repository", required=False)
@click.argument("refspec", required=False)
@workdir_option
@exit_on_git_error
def fetch(repository: Optional[str], refspec: Optional[str], workdir: Path):
    """Fetch changes and tags, optionally from REPOSITORY with REFSPEC."""
    make_client(workdir).fetch(repository, refspec)


@add_debug_option
@click.command("checkout")
@click.argument("commitish")
@click.option(
    "--branch",
    "-b",
    default=None,
    help="Create (or replace) this branch at COMMITISH and switch to it.",
)
@workdir_option
@exit_on_git_error
def checkout(commitish: str, branch: Optional[str], workdir: Path):
    """Force-checkout COMMITISH."""
    git = make_client(workdir)
    git.checkout_branch(branch, commitish)
    current = git.current_branch()
    logger.info(f"HEAD is now at {commitish}" + (f" on {current}" if current else ""))


@add_debug_option
@click.command("clean")
@workdir_option
@exit_on_git_error
def clean(workdir: Path):
    """Hard reset and remove every untracked and ignored file."""
    make_client(workdir).clean()


@add_debug_option
@click.command("merge")
@click.argument("rev_spec")
@workdir_option
@exit_on_git_error
def merge(rev_spec: str, workdir: Path):
    """Merge REV_SPEC into HEAD."""
    make_client(workdir).merge(rev_spec)
