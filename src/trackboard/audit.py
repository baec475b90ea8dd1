"""Append-only audit log of every state change."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import IO, TYPE_CHECKING, Any

import orjson

from trackboard._version import version as _tboard_version
from trackboard.idgen import generate_entry_id

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)


class ActivityAction(str, Enum):
    """Kinds of audited mutations."""

    CREATE_WORKSPACE = "CREATE_WORKSPACE"
    DELETE_WORKSPACE = "DELETE_WORKSPACE"
    CREATE_PROJECT = "CREATE_PROJECT"
    DELETE_PROJECT = "DELETE_PROJECT"
    CREATE_ISSUE = "CREATE_ISSUE"
    DELETE_ISSUE = "DELETE_ISSUE"
    UPDATE_ISSUE_TITLE = "UPDATE_ISSUE_TITLE"
    UPDATE_ISSUE_DESC = "UPDATE_ISSUE_DESC"
    UPDATE_ISSUE_TYPE = "UPDATE_ISSUE_TYPE"
    UPDATE_ISSUE_STATUS = "UPDATE_ISSUE_STATUS"
    UPDATE_ISSUE_PRIORITY = "UPDATE_ISSUE_PRIORITY"
    ADD_ATTACHMENT = "ADD_ATTACHMENT"
    DELETE_ATTACHMENT = "DELETE_ATTACHMENT"


# Issue attribute -> action tag for per-field update entries
UPDATE_ACTIONS: dict[str, ActivityAction] = {
    "title": ActivityAction.UPDATE_ISSUE_TITLE,
    "description": ActivityAction.UPDATE_ISSUE_DESC,
    "issue_type": ActivityAction.UPDATE_ISSUE_TYPE,
    "status": ActivityAction.UPDATE_ISSUE_STATUS,
    "priority": ActivityAction.UPDATE_ISSUE_PRIORITY,
}


def _freeze(details: Mapping[str, str | None]) -> Mapping[str, str | None]:
    return MappingProxyType(dict(details))


@dataclass(frozen=True)
class ActivityLogEntry:
    """A single immutable audit record.

    ``details`` holds the names captured at log time (issueTitle,
    projectName, workspaceName, ...) so the entry can be rendered after the
    entities it mentions are gone.
    """

    id: str
    action: ActivityAction
    timestamp: datetime
    details: Mapping[str, str | None] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    actor_name: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.details, MappingProxyType):
            object.__setattr__(self, "details", _freeze(self.details))

    def get(self, key: str) -> str | None:
        """Return a detail value, or None when it was not captured."""
        return self.details.get(key)


def entry_to_dict(entry: ActivityLogEntry) -> dict[str, Any]:
    """Serialize an entry to a dict for JSON output."""
    return {
        "record_type": "activity",
        "tboard_version": _tboard_version,
        "id": entry.id,
        "action": entry.action.value,
        "timestamp": entry.timestamp.isoformat(),
        "actor_name": entry.actor_name,
        "details": dict(entry.details),
    }


class AuditLog:
    """Append-only, chronologically ordered audit trail.

    The log is never truncated. Display caps belong to the caller (see
    ``newest_first(limit=...)``).
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._entries: list[ActivityLogEntry] = []
        self._clock = clock or (lambda: datetime.now().astimezone())
        # Entries recorded inside an open staged() block
        self._pending: list[ActivityLogEntry] | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def record(
        self,
        action: ActivityAction,
        details: Mapping[str, str | None],
        *,
        actor_name: str | None = None,
    ) -> ActivityLogEntry:
        """Append a new entry with a fresh id and the current timestamp."""
        entry = ActivityLogEntry(
            id=generate_entry_id(),
            action=ActivityAction(action),
            timestamp=self._clock(),
            details=details,
            actor_name=actor_name,
        )
        if self._pending is not None:
            self._pending.append(entry)
        else:
            self._entries.append(entry)
        logger.debug("Activity logged: %s %s", entry.action.value, dict(entry.details))
        return entry

    @contextmanager
    def staged(self) -> Iterator[None]:
        """Hold back entries recorded in the block until it finishes.

        On success the entries are appended in order. If the block raises,
        they are dropped. Nested blocks commit with the outermost one.
        """
        outermost = self._pending is None
        if outermost:
            self._pending = []
        pending = self._pending
        mark = len(pending)
        try:
            yield
        except BaseException:
            del pending[mark:]
            raise
        else:
            if outermost:
                self._entries.extend(pending)
        finally:
            if outermost:
                self._pending = None

    def entries(self) -> list[ActivityLogEntry]:
        """All entries, oldest first."""
        return list(self._entries)

    def newest_first(self, limit: int | None = None) -> list[ActivityLogEntry]:
        """Entries in reverse chronological order.

        Args:
            limit: Maximum number of entries to return (display cap only).
        """
        events = list(reversed(self._entries))
        if limit is not None:
            events = events[:limit]
        return events

    def latest(self) -> ActivityLogEntry | None:
        """The most recent entry, if any."""
        return self._entries[-1] if self._entries else None

    def dump_jsonl(self, stream: IO[bytes]) -> int:
        """Write every entry, oldest first, as one JSON object per line.

        Returns:
            Number of entries written.
        """
        for entry in self._entries:
            stream.write(orjson.dumps(entry_to_dict(entry)))
            stream.write(b"\n")
        return len(self._entries)
