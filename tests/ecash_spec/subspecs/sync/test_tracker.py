"""Tests for the sync state tracker."""

from __future__ import annotations

import pytest

from ecash_spec.exceptions import CursorRegressionError, PersistenceError
from ecash_spec.subspecs import metrics
from ecash_spec.subspecs.containers import ProviderId, SyncMode
from ecash_spec.subspecs.storage import InMemoryHeaderStore
from ecash_spec.subspecs.sync import StartPoint, SyncStateTracker
from ecash_spec.types import Uint64
from tests.ecash_spec.helpers import FlakyCursorStore, build_chain, checkpoint_of

CHAIN = build_chain(50)


def _start(height: int) -> StartPoint:
    return StartPoint(height=height, hash=CHAIN[height].hash, checkpoint=checkpoint_of(CHAIN[height]))


def _tracker(store: InMemoryHeaderStore | FlakyCursorStore | None = None) -> SyncStateTracker:
    if store is None:
        store = InMemoryHeaderStore()
    return SyncStateTracker(store, "regtest", "alice", SyncMode.BLOCKCHAIR)


def _commit(tracker: SyncStateTracker, first: int, last: int) -> None:
    tracker.commit(
        first_height=first,
        last_height=last,
        last_hash=CHAIN[last].hash,
        strategy=ProviderId.PRIMARY,
    )


class TestStart:
    """Anchoring the cursor at a trusted point."""

    def test_fresh_tracker_has_no_cursor(self) -> None:
        """Before anything is committed there is no progress."""
        tracker = _tracker()
        assert tracker.cursor is None
        assert tracker.confirmed_height is None
        assert tracker.cutover_height is None

    def test_start_persists(self) -> None:
        """Starting writes the trusted point as the cursor."""
        store = InMemoryHeaderStore()
        tracker = _tracker(store)

        cursor = tracker.start(_start(10), ProviderId.PRIMARY)

        assert cursor.last_confirmed_height == Uint64(10)
        assert store.get_sync_cursor("regtest", "alice", SyncMode.BLOCKCHAIR) == cursor
        assert metrics.sync_confirmed_height._value.get() == 10

    def test_start_behind_progress_is_noop(self) -> None:
        """Resuming never moves the cursor back to an older checkpoint."""
        tracker = _tracker()
        tracker.start(_start(10), ProviderId.PRIMARY)
        _commit(tracker, 11, 20)

        cursor = tracker.start(_start(15), ProviderId.SECONDARY)

        assert cursor.last_confirmed_height == Uint64(20)
        assert cursor.strategy is ProviderId.PRIMARY

    def test_start_ahead_jumps_forward(self) -> None:
        """A newer checkpoint moves the cursor up to it."""
        tracker = _tracker()
        tracker.start(_start(10), ProviderId.PRIMARY)

        cursor = tracker.start(_start(30), ProviderId.SECONDARY)

        assert cursor.last_confirmed_height == Uint64(30)
        assert cursor.last_confirmed_hash == CHAIN[30].hash


class TestCommit:
    """Forward-only, contiguous progress."""

    def test_contiguous_batches(self) -> None:
        """Each batch starts right after the confirmed height."""
        tracker = _tracker()
        tracker.start(_start(0), ProviderId.PRIMARY)

        _commit(tracker, 1, 10)
        _commit(tracker, 11, 25)

        assert tracker.confirmed_height == 25
        cursor = tracker.cursor
        assert cursor is not None and cursor.last_confirmed_hash == CHAIN[25].hash

    def test_overlap_rejected(self) -> None:
        """Re-committing confirmed heights is a regression."""
        tracker = _tracker()
        tracker.start(_start(10), ProviderId.PRIMARY)

        with pytest.raises(CursorRegressionError, match="overlaps") as exc:
            _commit(tracker, 5, 20)

        assert exc.value.current_height == 10
        assert tracker.confirmed_height == 10

    def test_gap_rejected(self) -> None:
        """Skipping heights would leave them unverified."""
        tracker = _tracker()
        tracker.start(_start(10), ProviderId.PRIMARY)

        with pytest.raises(CursorRegressionError, match="skips"):
            _commit(tracker, 12, 20)

    def test_empty_batch_rejected(self) -> None:
        """A batch must cover at least one height."""
        tracker = _tracker()
        tracker.start(_start(10), ProviderId.PRIMARY)

        with pytest.raises(CursorRegressionError, match="empty"):
            _commit(tracker, 11, 10)

    def test_progress_survives_restart(self) -> None:
        """A new tracker over the same store picks up the cursor."""
        store = InMemoryHeaderStore()
        first = _tracker(store)
        first.start(_start(0), ProviderId.PRIMARY)
        _commit(first, 1, 7)

        second = _tracker(store)

        assert second.confirmed_height == 7

    def test_persistence_failure_keeps_memory(self) -> None:
        """A failed write leaves the in-memory cursor where it was."""
        store = FlakyCursorStore()
        tracker = _tracker(store)
        tracker.start(_start(10), ProviderId.PRIMARY)
        before = tracker.cursor

        store.fail_writes = True
        with pytest.raises(PersistenceError):
            _commit(tracker, 11, 20)

        assert tracker.cursor == before
        assert tracker.confirmed_height == 10

        store.fail_writes = False
        _commit(tracker, 11, 20)
        assert tracker.confirmed_height == 20


class TestCutover:
    """Recording where the primary ran out of history."""

    def test_recorded_on_cursor(self) -> None:
        """The cutover is persisted with the cursor."""
        store = InMemoryHeaderStore()
        tracker = _tracker(store)
        tracker.start(_start(10), ProviderId.PRIMARY)

        tracker.record_cutover(11)

        saved = store.get_sync_cursor("regtest", "alice", SyncMode.BLOCKCHAIR)
        assert saved is not None and saved.cutover_height == Uint64(11)
        assert tracker.cutover_height == 11

    def test_first_cutover_wins(self) -> None:
        """Later cutovers do not move the recorded one."""
        tracker = _tracker()
        tracker.start(_start(10), ProviderId.PRIMARY)

        tracker.record_cutover(11)
        tracker.record_cutover(30)

        assert tracker.cutover_height == 11

    def test_carried_through_commits(self) -> None:
        """Committing keeps the cutover on the new cursor."""
        tracker = _tracker()
        tracker.start(_start(10), ProviderId.PRIMARY)
        tracker.record_cutover(11)

        _commit(tracker, 11, 20)

        cursor = tracker.cursor
        assert cursor is not None and cursor.cutover_height == Uint64(11)

    def test_pending_before_first_cursor(self) -> None:
        """A cutover seen before any cursor is written with the first one."""
        store = InMemoryHeaderStore()
        tracker = _tracker(store)

        tracker.record_cutover(0)
        assert tracker.cutover_height == 0
        assert store.get_sync_cursor("regtest", "alice", SyncMode.BLOCKCHAIR) is None

        tracker.start(_start(5), ProviderId.SECONDARY)

        saved = store.get_sync_cursor("regtest", "alice", SyncMode.BLOCKCHAIR)
        assert saved is not None and saved.cutover_height == Uint64(0)

    def test_failed_write_not_recorded(self) -> None:
        """A cutover that could not be persisted is not remembered."""
        store = FlakyCursorStore()
        tracker = _tracker(store)
        tracker.start(_start(10), ProviderId.PRIMARY)

        store.fail_writes = True
        with pytest.raises(PersistenceError):
            tracker.record_cutover(11)

        assert tracker.cutover_height is None


def test_reset_forgets_progress() -> None:
    """Resetting deletes the stored cursor."""
    store = InMemoryHeaderStore()
    tracker = _tracker(store)
    tracker.start(_start(10), ProviderId.PRIMARY)

    tracker.reset()

    assert tracker.cursor is None
    assert store.get_sync_cursor("regtest", "alice", SyncMode.BLOCKCHAIR) is None

