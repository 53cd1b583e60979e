"""Tests for checkpoint loading and start point resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from ecash_spec.exceptions import ConfigurationError
from ecash_spec.subspecs.chain import MAINNET_CONFIG
from ecash_spec.subspecs.containers import Checkpoint, ProviderId, SyncCursor, SyncMode
from ecash_spec.subspecs.sync import CheckpointResolver, load_checkpoints, merge_checkpoints
from ecash_spec.types import Bytes32, Uint32, Uint64

DAY = 24 * 3600


def _checkpoint(height: int, timestamp: int, fill: int | None = None) -> Checkpoint:
    return Checkpoint(
        height=Uint64(height),
        hash=Bytes32(bytes([height % 256 if fill is None else fill]) * 32),
        timestamp=Uint32(timestamp),
    )


OLD = _checkpoint(100, 1_000_000)
MIDDLE = _checkpoint(200, 2_000_000)
RECENT = _checkpoint(300, 3_000_000)


class TestLoadCheckpoints:
    """Reading extra checkpoints from YAML."""

    def test_valid_file(self, tmp_path: Path) -> None:
        """Entries are parsed with display-order hashes and sorted by height."""
        path = tmp_path / "checkpoints.yaml"
        path.write_text(
            "checkpoints:\n"
            "  - height: 661648\n"
            "    hash: 000000000000000004284c9d8b2c8ff731efeaec6be50729bdc9bd07f910757d\n"
            "    timestamp: 1605449580\n"
            "  - height: 0\n"
            "    hash: 000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f\n"
            "    timestamp: 1231006505\n"
        )

        checkpoints = load_checkpoints(path)

        assert [int(cp.height) for cp in checkpoints] == [0, 661648]
        assert checkpoints == (MAINNET_CONFIG.checkpoints[0], MAINNET_CONFIG.checkpoints[2])

    def test_missing_file(self, tmp_path: Path) -> None:
        """Unreadable files are configuration errors."""
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_checkpoints(tmp_path / "absent.yaml")

    def test_wrong_shape(self, tmp_path: Path) -> None:
        """The top level must hold a checkpoints list."""
        path = tmp_path / "checkpoints.yaml"
        path.write_text("checkpoints: 12\n")
        with pytest.raises(ConfigurationError, match="expected a 'checkpoints' list"):
            load_checkpoints(path)

    def test_invalid_entry(self, tmp_path: Path) -> None:
        """Entries with bad fields are configuration errors."""
        path = tmp_path / "checkpoints.yaml"
        path.write_text("checkpoints:\n  - height: -1\n    hash: abcd\n    timestamp: 0\n")
        with pytest.raises(ConfigurationError, match="invalid checkpoint"):
            load_checkpoints(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty file adds nothing."""
        path = tmp_path / "checkpoints.yaml"
        path.write_text("")
        assert load_checkpoints(path) == ()


class TestMergeCheckpoints:
    """Combining embedded and extra checkpoints."""

    def test_union_sorted(self) -> None:
        """Extra checkpoints slot in by height."""
        assert merge_checkpoints((OLD, RECENT), (MIDDLE,)) == (OLD, MIDDLE, RECENT)

    def test_duplicate_agreeing(self) -> None:
        """Repeating an embedded checkpoint is harmless."""
        assert merge_checkpoints((OLD,), (OLD,)) == (OLD,)

    def test_conflict(self) -> None:
        """Two hashes for one height cannot both be trusted."""
        with pytest.raises(ConfigurationError, match="conflicts"):
            merge_checkpoints((OLD,), (_checkpoint(100, 1_000_000, fill=0xAA),))


class TestResolver:
    """Start point selection."""

    def test_requires_checkpoints(self) -> None:
        """Sync cannot start from nothing."""
        with pytest.raises(ConfigurationError):
            CheckpointResolver(())

    def test_full_uses_earliest(self) -> None:
        """Full sync validates from the first checkpoint."""
        resolver = CheckpointResolver((OLD, MIDDLE, RECENT), time_fn=lambda: 10**9)
        assert resolver.checkpoint_for(SyncMode.FULL) == OLD

    def test_api_uses_latest_old_enough(self) -> None:
        """API modes use the newest checkpoint past the safety margin."""
        resolver = CheckpointResolver(
            (OLD, MIDDLE, RECENT), safety_margin=DAY, time_fn=lambda: 3_000_000 + DAY - 1
        )
        assert resolver.checkpoint_for(SyncMode.API) == MIDDLE
        assert resolver.checkpoint_for(SyncMode.BLOCKCHAIR) == MIDDLE

    def test_api_boundary_inclusive(self) -> None:
        """A checkpoint exactly one margin old qualifies."""
        resolver = CheckpointResolver(
            (OLD, MIDDLE, RECENT), safety_margin=DAY, time_fn=lambda: 3_000_000 + DAY
        )
        assert resolver.checkpoint_for(SyncMode.API) == RECENT

    def test_api_falls_back_to_earliest(self) -> None:
        """If every checkpoint is too young, the earliest still anchors sync."""
        resolver = CheckpointResolver((OLD, MIDDLE), safety_margin=DAY, time_fn=lambda: 0)
        assert resolver.checkpoint_for(SyncMode.API) == OLD

    def test_resolve_fresh(self) -> None:
        """Without progress, sync starts at the checkpoint."""
        resolver = CheckpointResolver((OLD,), time_fn=lambda: 10**9)

        start = resolver.resolve(SyncMode.FULL, None)

        assert (start.height, start.hash, start.checkpoint) == (100, OLD.hash, OLD)
        assert not start.resumed

    def test_resolve_resumes_from_cursor(self) -> None:
        """Progress beyond the checkpoint is kept."""
        resolver = CheckpointResolver((OLD,), time_fn=lambda: 10**9)
        cursor = SyncCursor(
            strategy=ProviderId.PRIMARY,
            last_confirmed_height=Uint64(150),
            last_confirmed_hash=Bytes32(b"\x15" * 32),
        )

        start = resolver.resolve(SyncMode.FULL, cursor)

        assert start.height == 150
        assert start.hash == cursor.last_confirmed_hash
        assert start.checkpoint == OLD
        assert start.resumed

    def test_resolve_skips_stale_cursor(self) -> None:
        """A newer checkpoint supersedes progress below it."""
        resolver = CheckpointResolver((OLD, RECENT), safety_margin=0, time_fn=lambda: 10**9)
        cursor = SyncCursor(
            strategy=ProviderId.PRIMARY,
            last_confirmed_height=Uint64(150),
            last_confirmed_hash=Bytes32(b"\x15" * 32),
        )

        start = resolver.resolve(SyncMode.API, cursor)

        assert start.height == 300
        assert not start.resumed
