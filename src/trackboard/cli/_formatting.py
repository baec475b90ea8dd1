"""Display and formatting functions for the trackboard CLI."""

from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from trackboard.constants import PRIORITY_COLORS, STATUS_COLORS, TYPE_COLORS
from trackboard.reports import format_entry_feed

if TYPE_CHECKING:
    from collections.abc import Callable

    from trackboard.audit import ActivityLogEntry
    from trackboard.models import Issue


def format_issue_brief(issue: Issue) -> str:
    """Format issue for one-line display with color coding."""
    priority_color = PRIORITY_COLORS.get(issue.priority.value, "white")
    priority_str = typer.style(
        f"[{issue.priority.value}]",
        fg=priority_color,
        bold=True,
    )
    type_color = TYPE_COLORS.get(issue.issue_type.value, "white")
    type_str = typer.style(f"[{issue.issue_type.value}]", fg=type_color)
    status_color = STATUS_COLORS.get(issue.status.value, "white")
    status_str = typer.style(issue.status.value, fg=status_color)
    return f"{priority_str} {issue.id}: {issue.title} {type_str} {status_str}"


def format_issue_table(issues: list[Issue]) -> str:
    """Format issues as a table.

    Returns:
        Formatted table string (rendered by Rich), or "" for no issues.
    """
    if not issues:
        return ""

    table = Table(
        show_header=True,
        header_style="bold",
        box=box.ROUNDED,
        pad_edge=False,
        show_edge=False,
    )
    table.add_column("ID", no_wrap=True)
    table.add_column("Type", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Priority", no_wrap=True)
    table.add_column("Created", no_wrap=True)
    table.add_column("Title", overflow="fold")

    for issue in issues:
        type_color = TYPE_COLORS.get(issue.issue_type.value, "white")
        status_color = STATUS_COLORS.get(issue.status.value, "white")
        priority_color = f"bold {PRIORITY_COLORS.get(issue.priority.value, 'white')}"
        attachments = ""
        if issue.attachments:
            attachments = f" [{len(issue.attachments)} file(s)]"
        table.add_row(
            issue.id,
            f"[{type_color}]{issue.issue_type.value}[/]",
            f"[{status_color}]{issue.status.value}[/]",
            f"[{priority_color}]{issue.priority.value}[/]",
            issue.created_at.strftime("%Y-%m-%d"),
            f"{issue.title}{attachments}",
        )

    string_io = StringIO()
    console = Console(file=string_io, force_terminal=True, width=None)
    console.print(table)
    return string_io.getvalue().rstrip()


def format_feed(
    entries: list[ActivityLogEntry],
    lookup_issue: Callable[[str | None], Issue | None],
    total: int,
) -> str:
    """Activity feed lines, newest first, with a note when capped."""
    lines = [
        f"{entry.timestamp:%H:%M:%S}  {format_entry_feed(entry, lookup_issue)}"
        for entry in entries
    ]
    if total > len(entries):
        lines.append(
            typer.style(
                f"Showing latest {len(entries)} of {total} activities. "
                "Use --summary for the full log.",
                fg="bright_black",
            ),
        )
    return "\n".join(lines)
