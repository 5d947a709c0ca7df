"""gitdriver CLI"""

import click

from gitdriver import __version__
from gitdriver.cli.refs import (
    branches,
    default_remote,
    describe,
    merge_base,
    rev_parse,
    tag,
    tags,
)
from gitdriver.cli.repo import checkout, clean, clone, fetch, init, merge
from gitdriver.cli.submodules import submodules

from .debug import add_debug_option


@click.group()
@click.version_option(__version__, prog_name="gitdriver")
@click.pass_context
def cli(ctx):
    """
    Drive git repositories from build automation.
    """
    ctx.ensure_object(dict)


for command in (
    init,
    clone,
    fetch,
    checkout,
    clean,
    merge,
    branches,
    tags,
    tag,
    describe,
    rev_parse,
    merge_base,
    default_remote,
):
    cli.add_command(command)

cli.add_command(add_debug_option(submodules))

add_debug_option(cli)

if __name__ == "__main__":
    cli(obj={})
