"""cli commands for submodule handling"""

from pathlib import Path
from typing import Optional

import click

from gitdriver.git import Branch, Revision

from .debug import add_debug_option
from .utils.args import exit_on_git_error, make_client, workdir_option
from .utils.logging import logger


@click.group(name="submodules")
def submodules():
    """Initialize, update and fix submodules."""
    pass


@submodules.command("setup")
@click.option(
    "--remote",
    default=None,
    help="Remote of the superproject whose URL submodules are resolved against.",
)
@click.option(
    "--branch",
    "branch",
    default=None,
    help="Remote-tracking branch (e.g. origin/main) the checked out revision came from.",
)
@workdir_option
@exit_on_git_error
def setup(remote: Optional[str], branch: Optional[str], workdir: Path):
    """Sync submodule configuration and fix URLs for a non-bare superproject origin."""
    git = make_client(workdir)
    if remote:
        result = git.setup_submodule_urls(remote)
    else:
        head = git.rev_parse("HEAD")
        branches = (Branch(branch, head),) if branch and head else ()
        result = git.setup_submodule_urls_for_revision(Revision(head, branches))

    state = result.resolution.state.value
    if result.rewritten:
        logger.info(f"Origin is {state}, rewrote {len(result.rewritten)} submodule URL(s)")
    else:
        logger.info(f"Origin is {state}, submodule URLs left as configured")


@submodules.command("update")
@click.option("--recursive", "-r", is_flag=True, help="Initialize and update nested submodules.")
@workdir_option
@exit_on_git_error
def update(recursive: bool, workdir: Path):
    """Check out the commits recorded for each submodule."""
    make_client(workdir).submodule_update(recursive)


@submodules.command("clean")
@click.option("--recursive", "-r", is_flag=True, help="Clean nested submodules too.")
@workdir_option
@exit_on_git_error
def clean(recursive: bool, workdir: Path):
    """Remove untracked and ignored files inside each submodule."""
    make_client(workdir).submodule_clean(recursive)


@submodules.command("list")
@click.option("--tree-ish", default="HEAD", show_default=True, help="Tree to inspect.")
@workdir_option
@exit_on_git_error
def list_submodules(tree_ish: str, workdir: Path):
    """List the submodules recorded in a tree."""
    for entry in make_client(workdir).get_submodules(tree_ish):
        click.echo(f"{entry.object} {entry.file}")


for _command in submodules.commands.values():
    add_debug_option(_command)
