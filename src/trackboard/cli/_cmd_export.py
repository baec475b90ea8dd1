"""Export and report commands for the trackboard CLI."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import typer

from trackboard.constants import EXPORT_COLUMNS, REPORT_COLUMNS, REPORT_PERIODS
from trackboard.errors import TrackboardError
from trackboard.reports import (
    export_filename,
    export_rows,
    period_report_rows,
    report_filename,
    write_csv,
)

from ._helpers import get_tracker
from ._json_state import echo_error, echo_json, is_json_output


def _write_rows(
    rows: list[dict[str, str]],
    output: str,
    columns: tuple[str, ...] = EXPORT_COLUMNS,
) -> None:
    """Write CSV rows to *output* ("-" for stdout)."""
    if output == "-":
        write_csv(rows, sys.stdout, columns)
        return
    with Path(output).open("w", newline="", encoding="utf-8") as f:
        write_csv(rows, f, columns)


_PERIODS = ", ".join(str(d) for d in REPORT_PERIODS)


def register(app: typer.Typer) -> None:
    """Register export commands."""

    @app.command()
    def export(
        project_id: str = typer.Argument(..., help="Project to export"),
        output: str | None = typer.Option(
            None,
            "--output",
            "-o",
            help="CSV file to write ('-' for stdout)",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seed: str | None = typer.Option(None, "--seed", help="Seed data JSON file"),
        config: str | None = typer.Option(None, "--config", help="Config TOML file"),
    ) -> None:
        """Export every issue of a project as CSV."""
        try:
            tracker = get_tracker(seed, config)
            project = tracker.get_project(project_id)
            if project is None:
                echo_error(f"Project {project_id} not found")
                raise typer.Exit(1)

            rows = export_rows(tracker.list_issues(project_id))
            if is_json_output(json_output):
                echo_json(rows)
                return
            if not rows:
                typer.echo("No issues to export in this project.")
                return

            target = output or export_filename(project.name, date.today())
            _write_rows(rows, target)
            if target != "-":
                typer.echo(f"✓ Exported {len(rows)} issue(s) to {target}")
        except typer.Exit:
            raise
        except (TrackboardError, OSError) as e:
            echo_error(str(e))
            raise typer.Exit(1) from e

    @app.command()
    def report(
        days: int = typer.Argument(
            ...,
            help=f"Look-back window in days (e.g. {_PERIODS})",
        ),
        output: str | None = typer.Option(
            None,
            "--output",
            "-o",
            help="CSV file to write ('-' for stdout)",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seed: str | None = typer.Option(None, "--seed", help="Seed data JSON file"),
        config: str | None = typer.Option(None, "--config", help="Config TOML file"),
    ) -> None:
        """Report issues created in the last DAYS days across all projects."""
        try:
            if days <= 0:
                echo_error("DAYS must be a positive number")
                raise typer.Exit(1)

            tracker = get_tracker(seed, config)
            rows = period_report_rows(tracker.list_issues(), days)
            if is_json_output(json_output):
                echo_json(rows)
                return
            if not rows:
                typer.echo(f"No issues created in the last {days} days")
                return

            target = output or report_filename(days, date.today())
            _write_rows(rows, target, REPORT_COLUMNS)
            if target != "-":
                typer.echo(f"✓ Report for last {days} days written to {target}")
        except typer.Exit:
            raise
        except (TrackboardError, OSError) as e:
            echo_error(str(e))
            raise typer.Exit(1) from e
