"""Session commands (run, demo) for the trackboard CLI."""

from __future__ import annotations

from pathlib import Path

import typer

from trackboard.audit import entry_to_dict
from trackboard.demo import run_demo
from trackboard.errors import TrackboardError
from trackboard.reports import summary_text
from trackboard.script import load_script, run_script
from trackboard.seed import default_seed
from trackboard.tracker import Tracker

from ._formatting import format_feed
from ._helpers import get_config, get_tracker
from ._json_state import echo_error, echo_json, is_json_output


def _print_activity(
    tracker: Tracker,
    *,
    summary: bool,
    output: str | None,
    feed_limit: int,
    json_output: bool,
) -> None:
    """Render the session's audit log in the requested form."""
    log = tracker.audit_log
    if is_json_output(json_output):
        echo_json([entry_to_dict(e) for e in log.newest_first()])
        return

    if output and output.endswith(".jsonl"):
        with Path(output).open("wb") as f:
            count = log.dump_jsonl(f)
        typer.echo(f"✓ Wrote {count} activity records to {output}")
        return

    if output:
        Path(output).write_text(summary_text(log.entries()) + "\n", encoding="utf-8")
        typer.echo(f"✓ Wrote {len(log)} activities to {output}")
        return

    if not len(log):
        typer.echo("No recent activity.")
    elif summary:
        typer.echo(summary_text(log.entries()))
    else:
        typer.echo(
            format_feed(log.newest_first(feed_limit), tracker.get_issue, len(log)),
        )


def register(app: typer.Typer) -> None:
    """Register session commands."""

    @app.command()
    def run(
        script: str = typer.Argument(..., help="JSON file with a list of steps"),
        summary: bool = typer.Option(
            False,
            "--summary",
            help="Print every activity as a plain-text summary line",
        ),
        output: str | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write the activity summary to this file (.jsonl: raw records)",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        seed: str | None = typer.Option(None, "--seed", help="Seed data JSON file"),
        config: str | None = typer.Option(None, "--config", help="Config TOML file"),
    ) -> None:
        """Apply a script of changes to a fresh session and show the activity."""
        try:
            tracker = get_tracker(seed, config)
            steps = load_script(script)
            run_script(tracker, steps)
            _print_activity(
                tracker,
                summary=summary,
                output=output,
                feed_limit=get_config(config).feed_limit,
                json_output=json_output,
            )
        except (TrackboardError, OSError) as e:
            echo_error(str(e))
            raise typer.Exit(1) from e

    @app.command()
    def demo(
        summary: bool = typer.Option(
            False,
            "--summary",
            help="Print every activity as a plain-text summary line",
        ),
        output: str | None = typer.Option(
            None,
            "--output",
            "-o",
            help="Write the activity summary to this file (.jsonl: raw records)",
        ),
        json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
        config: str | None = typer.Option(None, "--config", help="Config TOML file"),
    ) -> None:
        """Replay a sample session on the built-in data and show the activity."""
        try:
            settings = get_config(config)
            tracker = Tracker.from_config(settings, default_seed())
            run_demo(tracker)
            _print_activity(
                tracker,
                summary=summary,
                output=output,
                feed_limit=settings.feed_limit,
                json_output=json_output,
            )
        except (TrackboardError, OSError) as e:
            echo_error(str(e))
            raise typer.Exit(1) from e
