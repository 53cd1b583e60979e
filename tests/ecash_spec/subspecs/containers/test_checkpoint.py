"""Tests for checkpoints and sync cursors."""

import pytest
from pydantic import ValidationError

from ecash_spec.subspecs.containers import Checkpoint, ProviderId, SyncCursor
from ecash_spec.types import Bytes32, Uint32, Uint64

AXION_HASH = "000000000000000004284c9d8b2c8ff731efeaec6be50729bdc9bd07f910757d"


class TestCheckpoint:
    """Checkpoint parsing."""

    def test_display_hex_hash_is_reversed(self) -> None:
        """Hashes given as strings are in display order."""
        checkpoint = Checkpoint.model_validate(
            {"height": 661648, "hash": AXION_HASH, "timestamp": 1605449580}
        )

        assert checkpoint.height == Uint64(661648)
        assert checkpoint.hash == Bytes32.from_display_hex(AXION_HASH)
        assert checkpoint.hash.display_hex() == AXION_HASH

    def test_bytes_hash_taken_as_is(self) -> None:
        """Typed hashes are already in internal order."""
        value = Bytes32(b"\x05" * 32)
        checkpoint = Checkpoint(height=Uint64(1), hash=value, timestamp=Uint32(0))
        assert checkpoint.hash == value

    def test_unknown_fields_rejected(self) -> None:
        """Checkpoint files with typos fail loudly."""
        with pytest.raises(ValidationError):
            Checkpoint.model_validate(
                {"height": 1, "hash": AXION_HASH, "timestamp": 0, "hieght": 2}
            )


class TestSyncCursor:
    """Sync cursor serialization."""

    def test_json_round_trip(self) -> None:
        """Cursors survive the JSON form they are stored in."""
        cursor = SyncCursor(
            strategy=ProviderId.SECONDARY,
            last_confirmed_height=Uint64(700000),
            last_confirmed_hash=Bytes32(b"\x11" * 32),
            cutover_height=Uint64(690000),
        )

        restored = SyncCursor.model_validate_json(cursor.model_dump_json())

        assert restored == cursor

    def test_json_uses_camel_case(self) -> None:
        """Stored cursors use camel case keys."""
        cursor = SyncCursor(
            strategy=ProviderId.PRIMARY,
            last_confirmed_height=Uint64(1),
            last_confirmed_hash=Bytes32.zero(),
        )
        dumped = cursor.model_dump_json(by_alias=True)

        assert '"lastConfirmedHeight":1' in dumped
        assert '"strategy":"primary"' in dumped

    def test_copy_validates_updates(self) -> None:
        """copy() rebuilds the cursor through validation."""
        cursor = SyncCursor(
            strategy=ProviderId.PRIMARY,
            last_confirmed_height=Uint64(10),
            last_confirmed_hash=Bytes32.zero(),
        )

        updated = cursor.copy(cutover_height=Uint64(5))

        assert updated.cutover_height == Uint64(5)
        assert updated.last_confirmed_height == Uint64(10)
        assert cursor.cutover_height is None
