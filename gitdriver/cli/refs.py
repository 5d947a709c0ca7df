"""cli commands to inspect and manage branches, tags and revisions"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from gitdriver.git import ObjectId

from .debug import add_debug_option
from .utils.args import exit_on_git_error, make_client, workdir_option


def _print_refs(title: str, refs) -> None:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Commit", style="green")
    for ref in refs:
        table.add_row(ref.name, ref.object_id.name)
    Console().print(table)


@add_debug_option
@click.command("branches")
@click.option("--remote", "-r", is_flag=True, help="Only remote-tracking branches.")
@click.option(
    "--contains",
    "revspec",
    default=None,
    help="Only branches containing this revision.",
)
@workdir_option
@exit_on_git_error
def branches(remote: bool, revspec: Optional[str], workdir: Path):
    """List branches and the commits they point to."""
    git = make_client(workdir)
    if revspec:
        found = git.get_branches_containing(revspec)
    elif remote:
        found = git.get_remote_branches()
    else:
        found = git.get_branches()
    _print_refs("Branches", found)


@add_debug_option
@click.command("tags")
@click.option("--pattern", "-l", default="*", help="Glob the tag names must match.")
@click.option(
    "--on",
    "rev",
    default=None,
    help="Only tags pointing at this revision.",
)
@workdir_option
@exit_on_git_error
def tags(pattern: str, rev: Optional[str], workdir: Path):
    """List tags."""
    git = make_client(workdir)
    if rev:
        _print_refs(f"Tags on {rev}", git.get_tags_on_commit(rev))
        return
    for name in sorted(git.get_tag_names(pattern)):
        click.echo(name)


@add_debug_option
@click.command("tag")
@click.argument("name")
@click.option("--message", "-m", required=True, help="Annotation message.")
@click.option("--delete", "-d", is_flag=True, help="Delete the tag instead.")
@workdir_option
@exit_on_git_error
def tag(name: str, message: str, delete: bool, workdir: Path):
    """Create (or replace) the annotated tag NAME; spaces become underscores."""
    git = make_client(workdir)
    if delete:
        git.delete_tag(name)
    else:
        git.tag(name, message)


@add_debug_option
@click.command("describe")
@click.argument("commitish", default="HEAD")
@workdir_option
@exit_on_git_error
def describe(commitish: str, workdir: Path):
    """Describe COMMITISH relative to the nearest tag."""
    click.echo(make_client(workdir).describe(commitish) or "")


@add_debug_option
@click.command("rev-parse")
@click.argument("rev")
@workdir_option
@exit_on_git_error
def rev_parse(rev: str, workdir: Path):
    """Resolve REV to a single object id."""
    object_id = make_client(workdir).rev_parse(rev)
    click.echo(object_id.name if object_id else "")


@add_debug_option
@click.command("merge-base")
@click.argument("first")
@click.argument("second")
@workdir_option
@exit_on_git_error
def merge_base(first: str, second: str, workdir: Path):
    """Print the best common ancestor of FIRST and SECOND; exit 1 if there is none."""
    git = make_client(workdir)
    ids = [git.rev_parse(rev) for rev in (first, second)]
    if None in ids:
        raise click.ClickException("Could not resolve both revisions")
    base: Optional[ObjectId] = git.merge_base(ids[0], ids[1])
    if base is None:
        click.echo("No common ancestor", err=True)
        sys.exit(1)
    click.echo(base.name)


@add_debug_option
@click.command("default-remote")
@click.option("--preferred", default=None, help="Remote to prefer when present.")
@workdir_option
@exit_on_git_error
def default_remote(preferred: Optional[str], workdir: Path):
    """Print the remote operations default to."""
    click.echo(make_client(workdir).get_default_remote(preferred))
