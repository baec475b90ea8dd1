"""Constants for trackboard."""

from __future__ import annotations

# Attachments above this size (bytes) are rejected when they are added
MAX_ATTACHMENT_SIZE = 10 * 1024 * 1024

# Default values
DEFAULT_TYPE = "Task"
DEFAULT_STATUS = "ToDo"
DEFAULT_PRIORITY = "Medium"

# Number of entries the activity feed shows; the audit log itself is unbounded
FEED_LIMIT = 15

# Actor shown when an audit entry has no actor name
DEFAULT_ACTOR = "System"

# Semantic priority ranking used for sorting (higher is more urgent)
PRIORITY_RANK: dict[str, int] = {
    "High": 3,
    "Medium": 2,
    "Low": 1,
}

# Issue fields that update_issue() accepts
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "title",
        "description",
        "issue_type",
        "status",
        "priority",
    },
)

# Names used for fieldName in audit entries
FIELD_LABELS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "issue_type": "type",
    "status": "status",
    "priority": "priority",
}

# Column order of the project export
EXPORT_COLUMNS = (
    "ID",
    "Title",
    "Description",
    "Type",
    "Status",
    "Priority",
    "Created",
    "Updated",
    "Attachments",
)

# Column order of the "issues created in the last N days" report
REPORT_COLUMNS = ("ID", "Title", "Type", "Status", "Priority", "Created", "Project")
REPORT_PERIODS = (7, 30, 60)

# Color mappings for CLI display
PRIORITY_COLORS = {
    "High": "bright_red",
    "Medium": "yellow",
    "Low": "green",
}

TYPE_COLORS = {
    "Epic": "bright_magenta",
    "Story": "bright_blue",
    "Task": "white",
    "Bug": "bright_red",
}

STATUS_COLORS = {
    "ToDo": "bright_green",
    "InProgress": "bright_blue",
    "Done": "white",
    "Blocked": "bright_red",
}

# Config file name and environment override for the actor
CONFIG_FILENAME = "trackboard.toml"
ACTOR_ENV_VAR = "TBOARD_ACTOR"
