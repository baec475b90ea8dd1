"""Shared infrastructure for trackboard CLI commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from typer.core import TyperGroup

from trackboard.config import load_config
from trackboard.seed import default_seed, load_seed
from trackboard.tracker import Tracker

if TYPE_CHECKING:
    import click

    from trackboard.config import TrackboardConfig


class SortedGroup(TyperGroup):
    """Typer group that lists commands in alphabetical order."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        """Return commands sorted alphabetically."""
        return sorted(super().list_commands(ctx))


def configure_logging(verbose: bool) -> None:
    """Send debug records to stderr when --verbose is given."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


def get_config(config_path: str | None = None) -> TrackboardConfig:
    """Load the session configuration."""
    return load_config(config_path)


def get_tracker(
    seed_file: str | None = None,
    config_path: str | None = None,
) -> Tracker:
    """Build a fresh in-memory session.

    Seed precedence: ``--seed`` option, then ``seed_file`` from the config,
    then the built-in sample data.
    """
    config = get_config(config_path)
    path = seed_file or config.seed_file
    seed = load_seed(path) if path else default_seed()
    return Tracker.from_config(config, seed)
