"""Tests for ID generation module."""

import re

from trackboard.idgen import (
    IDGenerator,
    _base36_encode,
    generate_entry_id,
    generate_token,
    get_id_length_for_count,
)


class TestProgressiveIdLength:
    """Test token length scaling based on how many ids exist."""

    def test_length_for_small_store(self) -> None:
        """Small stores use 6-char tokens."""
        assert get_id_length_for_count(0) == 6
        assert get_id_length_for_count(1000) == 6

    def test_length_for_medium_store(self) -> None:
        """Medium stores use 8-char tokens."""
        assert get_id_length_for_count(1001) == 8
        assert get_id_length_for_count(50000) == 8

    def test_length_for_large_store(self) -> None:
        """Large stores use 10-char tokens."""
        assert get_id_length_for_count(50001) == 10


class TestBase36Encoding:
    """Test base36 encoding utility."""

    def test_base36_encode_zero(self) -> None:
        """Test encoding zero."""
        assert _base36_encode(b"\x00") == "0"

    def test_base36_encode_known_value(self) -> None:
        """Test encoding a known value."""
        assert _base36_encode(bytes([36])) == "10"

    def test_token_is_lowercase_base36(self) -> None:
        """Tokens only contain 0-9 and a-z."""
        assert re.fullmatch(r"[0-9a-z]{6}", generate_token(6))


class TestIDGenerator:
    """Test the IDGenerator class."""

    def test_generate_uses_prefix(self) -> None:
        """Generated ids carry the entity prefix."""
        gen = IDGenerator()
        assert gen.generate("issue").startswith("issue-")

    def test_generated_ids_are_unique(self) -> None:
        """A generator never returns the same id twice."""
        gen = IDGenerator()
        ids = {gen.generate("ws") for _ in range(500)}
        assert len(ids) == 500

    def test_existing_ids_are_avoided(self) -> None:
        """Ids passed in as existing are tracked."""
        gen = IDGenerator({"proj-abc"})
        gen.add_existing_id("proj-def")
        assert {"proj-abc", "proj-def"} <= gen.existing_ids

    def test_falls_back_when_retries_exhausted(self) -> None:
        """Generator falls back to a full hex id after max retries."""
        gen = IDGenerator()
        gen.max_retries = 0
        new_id = gen.generate("att")
        assert re.fullmatch(r"att-[0-9a-f]{32}", new_id)

    def test_entry_ids_are_uuids(self) -> None:
        """Audit entry ids are UUID strings."""
        entry_id = generate_entry_id()
        assert len(entry_id) == 36
        assert entry_id != generate_entry_id()
