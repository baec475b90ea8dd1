"""Configuration management commands for the trackboard CLI."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

import typer

from trackboard.config import get_config_path, set_config_value

from ._helpers import SortedGroup, get_config
from ._json_state import echo_error, echo_json, is_json_output

config_app = typer.Typer(
    help="Manage trackboard configuration.",
    no_args_is_help=True,
    cls=SortedGroup,
)

# Keys that should be coerced to a positive int
_INT_KEYS = frozenset({"max_attachment_size", "feed_limit"})

_KNOWN_KEYS: dict[str, str] = {
    "actor_name": "Name recorded on every activity (default: System)",
    "max_attachment_size": "Largest accepted attachment in bytes",
    "feed_limit": "Number of activities shown in the feed",
    "seed_file": "JSON file with the workspaces, projects and issues to load",
}


def _coerce_value(key: str, value: str) -> Any:
    """Coerce a string value to the appropriate type for a known key."""
    if key in _INT_KEYS:
        try:
            number = int(value)
        except ValueError:
            number = 0
        if number <= 0:
            msg = f"Invalid value '{value}' for key '{key}'. Use a positive integer."
            raise typer.BadParameter(msg)
        return number
    return value


def register(app: typer.Typer) -> None:
    """Register config commands."""
    app.add_typer(config_app, name="config")

    @config_app.command("set")
    def config_set(
        key: str = typer.Argument(..., help="Configuration key to set"),
        value: str = typer.Argument(..., help="Value to set"),
        config: str | None = typer.Option(None, "--config", help="Config TOML file"),
    ) -> None:
        """Set a configuration value."""
        if key not in _KNOWN_KEYS:
            echo_error(
                f"Unknown key '{key}'. Known keys: {', '.join(sorted(_KNOWN_KEYS))}",
            )
            raise typer.Exit(1)
        coerced = _coerce_value(key, value)
        path = get_config_path() if config is None else config
        try:
            set_config_value(path, key, coerced)
        except OSError as e:
            echo_error(str(e))
            raise typer.Exit(1) from e
        typer.echo(f"Set {key} = {coerced}")

    @config_app.command("show")
    def config_show(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        config: str | None = typer.Option(None, "--config", help="Config TOML file"),
    ) -> None:
        """Show the effective configuration, defaults included."""
        settings = asdict(get_config(config))
        if is_json_output(json_output):
            echo_json(settings)
            return
        for k, v in sorted(settings.items()):
            typer.echo(f"{k} = {'' if v is None else v}")

    @config_app.command("keys")
    def config_keys(
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    ) -> None:
        """List all available configuration keys and their descriptions."""
        if is_json_output(json_output):
            echo_json(_KNOWN_KEYS)
            return
        for k, desc in _KNOWN_KEYS.items():
            typer.echo(f"{k:<20} {desc}")
