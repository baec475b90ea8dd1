"""Trackboard CLI commands for working with an in-memory issue tracker."""

from __future__ import annotations

import typer

from ._helpers import SortedGroup

app = typer.Typer(
    help="trackboard - workspaces, projects and issues with a full activity log",
    no_args_is_help=True,
    cls=SortedGroup,
)


@app.callback(invoke_without_command=True)
def _global_options(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON for all commands",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug messages to stderr",
    ),
) -> None:
    from ._helpers import configure_logging
    from ._json_state import set_json_flag

    set_json_flag(json_output)
    configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


from . import (  # noqa: E402
    _cmd_config,
    _cmd_export,
    _cmd_read,
    _cmd_run,
)

for _mod in (
    _cmd_config,
    _cmd_export,
    _cmd_read,
    _cmd_run,
):
    _mod.register(app)


def main() -> None:
    """Run the trackboard CLI application."""
    app()
