"""Typed failures raised by the trackboard core.

Every failure is local and recoverable: the store is left untouched and no
audit entry is written. All classes derive from ``ValueError`` so callers
that already guard with ``except ValueError`` keep working.
"""

from __future__ import annotations


class TrackboardError(ValueError):
    """Base class for all trackboard failures."""


class NotFoundError(TrackboardError):
    """A referenced id does not resolve."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")


class InvalidReferenceError(TrackboardError):
    """Cross-entity references disagree (e.g. project/workspace mismatch)."""


class TooLargeError(TrackboardError):
    """An attachment exceeds the configured size cap."""

    def __init__(self, name: str, size: int, max_size: int) -> None:
        self.name = name
        self.size = size
        self.max_size = max_size
        super().__init__(
            f'File "{name}" is too large ({size} bytes, max {max_size} bytes)',
        )


class InvalidInputError(TrackboardError):
    """A required field is blank or a value is out of range."""
