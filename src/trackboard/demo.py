"""Demo session for trackboard.

Replays a short, realistic sequence of changes on top of the default seed so
every audit action shows up at least once: a workspace and project are set
up, issues are filed in bulk and individually, triaged, given attachments,
and finally part of the hierarchy is torn down again.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from trackboard.script import run_script

if TYPE_CHECKING:
    from trackboard.script import StepResult
    from trackboard.tracker import Tracker

DEMO_STEPS: list[dict[str, Any]] = [
    {"op": "create_workspace", "args": {"name": "Mobile Team"}, "as": "mobile"},
    {
        "op": "create_project",
        "args": {"name": "iOS App", "workspace_id": "$mobile"},
        "as": "ios",
    },
    {
        "op": "create_issue",
        "args": {
            "title": "Crash on launch with empty cache",
            "description": "App exits immediately after a fresh install.",
            "project_id": "$ios",
            "issue_type": "Bug",
            "priority": "High",
        },
        "as": "crash",
    },
    {
        "op": "bulk_create_issues",
        "args": {
            "titles": "Add dark mode\nLocalize settings screen\n\nPush notifications",
            "project_id": "$ios",
        },
    },
    {
        "op": "update_issue",
        "args": {
            "issue_id": "$crash",
            "changes": {"status": "InProgress", "priority": "High"},
        },
    },
    {
        "op": "add_attachment",
        "args": {
            "issue_id": "$crash",
            "name": "crash.log",
            "size": 48_213,
            "mime_type": "text/plain",
        },
        "as": "log",
    },
    {
        "op": "update_issue",
        "args": {
            "issue_id": "$crash",
            "changes": {
                "title": "Crash on launch when cache is empty",
                "status": "Done",
            },
        },
    },
    {
        "op": "remove_attachment",
        "args": {"issue_id": "$crash", "attachment_id": "$log"},
    },
    {
        "op": "update_issue",
        "args": {"issue_id": "issue-1", "changes": {"priority": "Low"}},
    },
    {"op": "delete_issue", "args": {"issue_id": "issue-3"}},
    {"op": "delete_project", "args": {"project_id": "proj2"}},
    {"op": "delete_workspace", "args": {"workspace_id": "ws2"}},
]


def run_demo(tracker: Tracker) -> list[StepResult]:
    """Apply the demo steps to a tracker seeded with ``default_seed()``."""
    return run_script(tracker, DEMO_STEPS)
