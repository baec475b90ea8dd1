"""Data models for trackboard entities using dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from trackboard.constants import PRIORITY_RANK
from trackboard.errors import InvalidInputError


def _now() -> datetime:
    return datetime.now().astimezone()


class IssueType(str, Enum):
    """Issue type enumeration."""

    EPIC = "Epic"
    STORY = "Story"
    TASK = "Task"
    BUG = "Bug"


class Status(str, Enum):
    """Issue status enumeration."""

    TODO = "ToDo"
    IN_PROGRESS = "InProgress"
    DONE = "Done"
    BLOCKED = "Blocked"


class Priority(str, Enum):
    """Issue priority enumeration."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        """Semantic rank: High (3) > Medium (2) > Low (1)."""
        return PRIORITY_RANK[self.value]


@dataclass
class Workspace:
    """Root of the hierarchy."""

    id: str
    name: str
    created_at: datetime = field(default_factory=_now)


@dataclass
class Project:
    """A project inside a workspace."""

    id: str
    name: str
    workspace_id: str  # Back-reference, not an owning pointer
    created_at: datetime = field(default_factory=_now)


@dataclass
class Attachment:
    """File metadata owned by exactly one issue.

    ``content_handle`` is an opaque reference to the payload; the store never
    reads or copies it.
    """

    id: str
    name: str
    size: int
    mime_type: str = ""
    content_handle: Any = None


@dataclass
class Issue:
    """An issue in a project."""

    id: str
    title: str
    project_id: str
    workspace_id: str  # Denormalized; always equals the project's workspace_id
    description: str | None = None
    issue_type: IssueType = IssueType.TASK
    status: Status = Status.TODO
    priority: Priority = Priority.MEDIUM
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    attachments: list[Attachment] = field(default_factory=list[Attachment])

    def attachment_names(self) -> list[str]:
        """Names of attached files in attachment order."""
        return [a.name for a in self.attachments]


_E = TypeVar("_E", IssueType, Status, Priority)


def _parse_enum(enum_cls: type[_E], value: Any, label: str) -> _E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        msg = f"Invalid {label} {value!r} (expected one of: {allowed})"
        raise InvalidInputError(msg) from None


def parse_issue_type(value: Any) -> IssueType:
    """Coerce a string or IssueType into an IssueType."""
    return _parse_enum(IssueType, value, "type")


def parse_status(value: Any) -> Status:
    """Coerce a string or Status into a Status."""
    return _parse_enum(Status, value, "status")


def parse_priority(value: Any) -> Priority:
    """Coerce a string or Priority into a Priority."""
    return _parse_enum(Priority, value, "priority")


def require_text(value: Any, label: str) -> str:
    """Return *value* stripped, raising InvalidInputError when blank."""
    if not isinstance(value, str) or not value.strip():
        msg = f"{label} must be a non-empty string"
        raise InvalidInputError(msg)
    return value.strip()


def workspace_to_dict(workspace: Workspace) -> dict[str, Any]:
    """Convert a Workspace to a dictionary."""
    return {
        "id": workspace.id,
        "name": workspace.name,
        "created_at": workspace.created_at.isoformat(),
    }


def project_to_dict(project: Project) -> dict[str, Any]:
    """Convert a Project to a dictionary."""
    return {
        "id": project.id,
        "name": project.name,
        "workspace_id": project.workspace_id,
        "created_at": project.created_at.isoformat(),
    }


def issue_to_dict(issue: Issue) -> dict[str, Any]:
    """Convert an Issue to a dictionary, serializing datetimes.

    Attachment payloads are not serialized, only their metadata.
    """
    return {
        "id": issue.id,
        "title": issue.title,
        "description": issue.description,
        "type": issue.issue_type.value,
        "status": issue.status.value,
        "priority": issue.priority.value,
        "project_id": issue.project_id,
        "workspace_id": issue.workspace_id,
        "created_at": issue.created_at.isoformat(),
        "updated_at": issue.updated_at.isoformat(),
        "attachments": [
            {
                "id": att.id,
                "name": att.name,
                "size": att.size,
                "mime_type": att.mime_type,
            }
            for att in issue.attachments
        ],
    }


def _parse_datetime(raw: str | None) -> datetime:
    if not raw:
        return _now()
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def dict_to_workspace(data: dict[str, Any]) -> Workspace:
    """Convert a dictionary to a Workspace."""
    return Workspace(
        id=data["id"],
        name=data["name"],
        created_at=_parse_datetime(data.get("created_at")),
    )


def dict_to_project(data: dict[str, Any]) -> Project:
    """Convert a dictionary to a Project."""
    return Project(
        id=data["id"],
        name=data["name"],
        workspace_id=data["workspace_id"],
        created_at=_parse_datetime(data.get("created_at")),
    )


def dict_to_issue(data: dict[str, Any]) -> Issue:
    """Convert a dictionary to an Issue, deserializing datetimes."""
    created_at = _parse_datetime(data.get("created_at"))
    updated_raw = data.get("updated_at")
    return Issue(
        id=data["id"],
        title=data["title"],
        project_id=data["project_id"],
        workspace_id=data["workspace_id"],
        description=data.get("description"),
        issue_type=parse_issue_type(data.get("type", IssueType.TASK.value)),
        status=parse_status(data.get("status", Status.TODO.value)),
        priority=parse_priority(data.get("priority", Priority.MEDIUM.value)),
        created_at=created_at,
        updated_at=_parse_datetime(updated_raw) if updated_raw else created_at,
        attachments=[
            Attachment(
                id=att["id"],
                name=att["name"],
                size=att.get("size", 0),
                mime_type=att.get("mime_type", ""),
            )
            for att in data.get("attachments", [])
        ],
    )
