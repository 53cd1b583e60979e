"""
Sync State Tracker
==================

Sole owner of the sync cursor. The cursor records which provider produced
verified data up to which height, so a restart resumes exactly where the
last fully committed batch ended.

Two rules hold for every write:

1. The cursor only moves forward, one contiguous batch at a time.
2. The write is persisted before the in-memory cursor changes. A failed write
   leaves the tracker where it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ecash_spec.exceptions import CursorRegressionError
from ecash_spec.subspecs import metrics
from ecash_spec.subspecs.containers import ProviderId, SyncCursor, SyncMode
from ecash_spec.subspecs.storage import CursorStore
from ecash_spec.types import Bytes32, Uint64

from .checkpoints import StartPoint

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncStateTracker:
    """Persists sync progress for one wallet in one sync mode."""

    store: CursorStore
    """Durable cursor storage."""

    network: str
    """Network name, part of the cursor key."""

    wallet_id: str
    """Wallet identity, part of the cursor key."""

    mode: SyncMode
    """Sync mode, part of the cursor key."""

    _cursor: SyncCursor | None = field(default=None, init=False)
    """Last persisted cursor."""

    _pending_cutover: int | None = field(default=None, init=False)
    """Cutover observed before any cursor existed. Written with the first cursor."""

    def __post_init__(self) -> None:
        """Load saved progress."""
        self._cursor = self.store.get_sync_cursor(self.network, self.wallet_id, self.mode)
        if self._cursor is not None:
            metrics.sync_confirmed_height.set(float(self._cursor.last_confirmed_height))

    @property
    def cursor(self) -> SyncCursor | None:
        """Last persisted cursor, or None before the first commit."""
        return self._cursor

    @property
    def confirmed_height(self) -> int | None:
        """Highest confirmed height, or None before the first commit."""
        return None if self._cursor is None else int(self._cursor.last_confirmed_height)

    @property
    def cutover_height(self) -> int | None:
        """Height where the primary provider was found exhausted, if it was."""
        if self._cursor is not None and self._cursor.cutover_height is not None:
            return int(self._cursor.cutover_height)
        return self._pending_cutover

    def _persist(self, cursor: SyncCursor) -> SyncCursor:
        # PersistenceError propagates before the in-memory cursor moves.
        self.store.put_sync_cursor(self.network, self.wallet_id, self.mode, cursor)
        self._cursor = cursor
        self._pending_cutover = None
        metrics.sync_confirmed_height.set(float(cursor.last_confirmed_height))
        return cursor

    def start(self, start: StartPoint, strategy: ProviderId) -> SyncCursor:
        """
        Anchor the cursor at a trusted starting point.

        A no-op when saved progress is at or beyond `start`. Otherwise the
        cursor jumps forward to the trusted point.
        """
        current = self._cursor
        if current is not None and int(current.last_confirmed_height) >= start.height:
            return current

        cutover = self.cutover_height
        cursor = SyncCursor(
            strategy=current.strategy if current is not None else strategy,
            last_confirmed_height=Uint64(start.height),
            last_confirmed_hash=start.hash,
            cutover_height=None if cutover is None else Uint64(cutover),
        )
        logger.info("Sync cursor anchored at height %s", start.height)
        return self._persist(cursor)

    def commit(
        self,
        *,
        first_height: int,
        last_height: int,
        last_hash: Bytes32,
        strategy: ProviderId,
    ) -> SyncCursor:
        """
        Record a fully verified batch covering `first_height..last_height`.

        Raises:
            CursorRegressionError: If the batch does not start right after
                the confirmed height, or is empty.
            PersistenceError: If the cursor could not be written.
        """
        current = self._cursor
        current_height = -1 if current is None else int(current.last_confirmed_height)
        if last_height < first_height:
            raise CursorRegressionError(current_height, last_height, "empty batch")
        if current is not None and first_height != current_height + 1:
            detail = "overlaps confirmed data" if first_height <= current_height else "skips heights"
            raise CursorRegressionError(current_height, last_height, detail)

        cutover = self.cutover_height
        cursor = SyncCursor(
            strategy=strategy,
            last_confirmed_height=Uint64(last_height),
            last_confirmed_hash=last_hash,
            cutover_height=None if cutover is None else Uint64(cutover),
        )
        self._persist(cursor)
        logger.debug("Sync cursor advanced to height %s via %s", last_height, strategy.value)
        return cursor

    def record_cutover(self, height: int) -> None:
        """
        Remember that the primary provider cannot serve history from `height`.

        The first recorded cutover wins. Before any cursor exists, the cutover
        is held in memory and written with the first cursor.
        """
        if self.cutover_height is not None:
            return
        if self._cursor is None:
            self._pending_cutover = height
            return
        self._persist(self._cursor.copy(cutover_height=Uint64(height)))
        logger.info("Recorded provider cutover at height %s", height)

    def reset(self) -> None:
        """Forget all progress of this wallet and mode."""
        self.store.delete_sync_cursor(self.network, self.wallet_id, self.mode)
        self._cursor = None
        self._pending_cutover = None
