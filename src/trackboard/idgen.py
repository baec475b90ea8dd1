"""Random ID generation for entities and audit entries."""

from __future__ import annotations

import uuid

# Tuple of (max_id_count, token_length)
# Tokens scale: 6 chars for 0-1000 ids, 8 for 1001-50000, 10 beyond
ID_LENGTH_THRESHOLDS = (
    (1000, 6),
    (50000, 8),
)
ID_LENGTH_MAX = 10


def get_id_length_for_count(id_count: int) -> int:
    """Determine the token length based on how many ids are already taken.

    Args:
        id_count: Number of ids already issued under the prefix.

    Returns:
        Token length (6-10 characters).
    """
    for max_count, length in ID_LENGTH_THRESHOLDS:
        if id_count <= max_count:
            return length
    return ID_LENGTH_MAX


def _base36_encode(data: bytes) -> str:
    """Encode bytes as base36 (0-9, a-z)."""
    num = int.from_bytes(data, byteorder="big")
    if num == 0:
        return "0"

    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    result: list[str] = []
    while num:
        result.append(digits[num % 36])
        num //= 36
    return "".join(reversed(result))


def generate_token(length: int = 6) -> str:
    """Generate a random base36 token of *length* characters."""
    return _base36_encode(uuid.uuid4().bytes)[:length]


def generate_entry_id() -> str:
    """Generate an ID for an audit entry using UUID."""
    return str(uuid.uuid4())


class IDGenerator:
    """Issues ids that are unique for the lifetime of one store.

    Ids are never reused, even after the entity they named is deleted.
    """

    def __init__(self, existing_ids: set[str] | None = None) -> None:
        """Initialize the ID generator.

        Args:
            existing_ids: Ids already in use (e.g. from seed data).
        """
        self.existing_ids = existing_ids or set()
        self.max_retries = 100

    def add_existing_id(self, entity_id: str) -> None:
        """Record an existing ID for collision detection."""
        self.existing_ids.add(entity_id)

    def generate(self, prefix: str) -> str:
        """Generate a unique id of the form ``{prefix}-{token}``.

        Args:
            prefix: Entity prefix, e.g. "ws", "proj", "issue", "att".

        Returns:
            An id that has never been issued by this generator.
        """
        length = get_id_length_for_count(len(self.existing_ids))
        for _ in range(self.max_retries):
            candidate_id = f"{prefix}-{generate_token(length)}"
            if candidate_id not in self.existing_ids:
                self.existing_ids.add(candidate_id)
                return candidate_id

        # Fall back to a full UUID, which cannot realistically collide
        candidate_id = f"{prefix}-{uuid.uuid4().hex}"
        self.existing_ids.add(candidate_id)
        return candidate_id
