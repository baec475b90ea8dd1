"""Derived artifacts: project export, period report and audit summary.

Everything here is a pure projection of store/log data. Audit lines are
rendered from the entry alone so deleted entities still read sensibly.
"""

from __future__ import annotations

import csv
from datetime import date, datetime, timedelta
from typing import IO, TYPE_CHECKING, Any

from trackboard.audit import ActivityAction
from trackboard.constants import DEFAULT_ACTOR, EXPORT_COLUMNS

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from trackboard.audit import ActivityLogEntry
    from trackboard.models import Issue

SUMMARY_TIME_FORMAT = "%m/%d/%Y, %I:%M %p"


# -- Issue export ---------------------------------------------------------


def export_rows(issues: Iterable[Issue]) -> list[dict[str, str]]:
    """One row per issue with the export columns, in input order."""
    return [
        {
            "ID": issue.id,
            "Title": issue.title,
            "Description": issue.description or "",
            "Type": issue.issue_type.value,
            "Status": issue.status.value,
            "Priority": issue.priority.value,
            "Created": issue.created_at.isoformat(),
            "Updated": issue.updated_at.isoformat(),
            "Attachments": ", ".join(issue.attachment_names()),
        }
        for issue in issues
    ]


def write_csv(
    rows: Sequence[dict[str, Any]],
    stream: IO[str],
    columns: Sequence[str] = EXPORT_COLUMNS,
) -> int:
    """Write rows as CSV with a header line.

    Returns:
        Number of data rows written.
    """
    writer = csv.DictWriter(stream, fieldnames=list(columns))
    writer.writeheader()
    writer.writerows(rows)
    return len(rows)


def export_filename(project_name: str, today: date | None = None) -> str:
    """File name for a project export, e.g. ``Bug_Tracker_App_Issues_<date>.csv``."""
    today = today or date.today()
    return f"{project_name.replace(' ', '_')}_Issues_{today.isoformat()}.csv"


def created_within(
    issues: Iterable[Issue],
    days: int,
    now: datetime | None = None,
) -> list[Issue]:
    """Issues created within the last *days* days."""
    now = now or datetime.now().astimezone()
    cutoff = now - timedelta(days=days)
    return [i for i in issues if i.created_at >= cutoff]


def period_report_rows(
    issues: Iterable[Issue],
    days: int,
    now: datetime | None = None,
) -> list[dict[str, str]]:
    """Rows for the "issues created in the last N days" report."""
    return [
        {
            "ID": issue.id,
            "Title": issue.title,
            "Type": issue.issue_type.value,
            "Status": issue.status.value,
            "Priority": issue.priority.value,
            "Created": issue.created_at.date().isoformat(),
            "Project": issue.project_id,
        }
        for issue in created_within(issues, days, now)
    ]


def report_filename(days: int, today: date | None = None) -> str:
    """File name for a period report."""
    today = today or date.today()
    return f"issues_last_{days}_days_{today.isoformat()}.csv"


# -- Audit rendering ------------------------------------------------------


def _short_id(issue_id: str | None) -> str:
    if not issue_id:
        return ""
    return issue_id[issue_id.rfind("-") + 1 :][:6]


def describe_entry(
    entry: ActivityLogEntry,
    issue_title: str | None = None,
) -> str:
    """Verb phrase for an entry, e.g. ``changed status for issue "X" ...``.

    Args:
        entry: The audit entry.
        issue_title: Title to show instead of the one captured at log time.
    """
    d = entry.get
    title = issue_title or d("issueTitle") or "an issue"
    project = d("projectName") or d("projectId")
    workspace = d("workspaceName") or d("workspaceId")
    action = entry.action

    if action == ActivityAction.CREATE_ISSUE:
        return f'created issue "{title}" in project "{project}"'
    if action == ActivityAction.DELETE_ISSUE:
        deleted = d("issueTitle") or d("issueId")
        return f'deleted issue "{deleted}" from project "{project}"'
    if action == ActivityAction.UPDATE_ISSUE_TITLE:
        return (
            f'renamed issue "{d("oldValue")}" to "{d("newValue")}" '
            f"(ID: {_short_id(d('issueId'))})"
        )
    if action == ActivityAction.UPDATE_ISSUE_DESC:
        return (
            f'updated the description for issue "{title}" '
            f"(ID: {_short_id(d('issueId'))})"
        )
    if action in (
        ActivityAction.UPDATE_ISSUE_TYPE,
        ActivityAction.UPDATE_ISSUE_STATUS,
        ActivityAction.UPDATE_ISSUE_PRIORITY,
    ):
        field_name = d("fieldName") or action.value.rsplit("_", 1)[-1].lower()
        return (
            f'changed {field_name} for issue "{title}" '
            f'from "{d("oldValue")}" to "{d("newValue")}"'
        )
    if action == ActivityAction.ADD_ATTACHMENT:
        return f'added attachment "{d("attachmentName")}" to issue "{title}"'
    if action == ActivityAction.DELETE_ATTACHMENT:
        return f'deleted attachment "{d("attachmentName")}" from issue "{title}"'
    if action == ActivityAction.CREATE_PROJECT:
        return f'created project "{d("projectName")}" in workspace "{workspace}"'
    if action == ActivityAction.DELETE_PROJECT:
        return f'deleted project "{d("projectName")}" from workspace "{workspace}"'
    if action == ActivityAction.CREATE_WORKSPACE:
        return f'created workspace "{d("workspaceName")}"'
    if action == ActivityAction.DELETE_WORKSPACE:
        return f'deleted workspace "{d("workspaceName")}"'
    return f"performed unhandled action: {action.value}"


def format_entry_summary(entry: ActivityLogEntry) -> str:
    """``<timestamp> - <actor> <verb phrase>.`` built from the entry alone."""
    time_str = entry.timestamp.strftime(SUMMARY_TIME_FORMAT)
    actor = entry.actor_name or DEFAULT_ACTOR
    return f"{time_str} - {actor} {describe_entry(entry)}."


def summary_text(entries: Iterable[ActivityLogEntry]) -> str:
    """Plain-text audit summary, newest first, one entry per line.

    Args:
        entries: Entries in chronological order (as stored).
    """
    return "\n".join(format_entry_summary(e) for e in reversed(list(entries)))


def format_entry_feed(
    entry: ActivityLogEntry,
    lookup_issue: Callable[[str | None], Issue | None] | None = None,
) -> str:
    """Feed line that prefers the live issue title when the issue still exists."""
    live_title = None
    if lookup_issue is not None and entry.get("issueId"):
        issue = lookup_issue(entry.get("issueId"))
        if issue is not None:
            live_title = issue.title
    actor = entry.actor_name or DEFAULT_ACTOR
    return f"{actor} {describe_entry(entry, issue_title=live_title)}"
