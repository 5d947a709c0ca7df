import click

from .utils.logging import configure_logging


def add_debug_option(cmd: click.Command) -> click.Command:
    """Prepend a --debug/--no-debug flag to a command or group."""
    if any(param.name == "debug" for param in cmd.params):
        return cmd

    cmd.params.insert(
        0,
        click.Option(
            ["--debug/--no-debug"],
            is_eager=True,
            expose_value=False,
            callback=lambda ctx, param, value: _set_debug(ctx, value),
            help="Enable debug mode",
        ),
    )
    return cmd


def _set_debug(ctx: click.Context, value: bool) -> bool:
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)
    root_ctx.obj.setdefault("DEBUG", False)

    # a subcommand may turn debug on but only the group turns it off
    if value or ctx is root_ctx:
        root_ctx.obj["DEBUG"] = value

    configure_logging(root_ctx.obj["DEBUG"])
    return root_ctx.obj["DEBUG"]
