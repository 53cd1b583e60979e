"""
Header sync orchestrator.

Brings a wallet's header chain from a trusted checkpoint up to the provider's
tip, validating every header with the same validator set live headers go
through.

How It Works
------------
1. Resolve the start point: a checkpoint, or saved progress beyond it.
2. On a fresh start point, load the trusted ancestors the first validated
   header needs and check they end at the checkpoint hash.
3. Repeatedly fetch a batch above the confirmed height, validate it against
   the store plus the batch itself, store it, then advance the cursor.

A batch is all or nothing. Cancellation or a rejected header discards it,
so the cursor always sits on a fully committed batch boundary.

State Machine
-------------
::

    IDLE --> SYNCING --> SYNCED
                |
                +------> STALLED   (transient failures outlasted retries)
                +------> REJECTED  (a header broke consensus rules)
                +------> FAILED    (configuration or provider exhaustion)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum, auto

from ecash_spec.exceptions import (
    ConfigurationError,
    ConsensusRejection,
    CursorRegressionError,
    MissingAncestorError,
    PersistenceError,
    ProviderFailedError,
    ProvidersExhaustedError,
    SyncStalledError,
    UnexpectedHeightError,
)
from ecash_spec.subspecs.containers import Header, ProviderId, SyncMode
from ecash_spec.subspecs.retarget import ChainContext
from ecash_spec.subspecs.storage import HeaderStore
from ecash_spec.subspecs.validation import ValidatorSet
from ecash_spec.types import Bytes32

from .checkpoints import CheckpointResolver, StartPoint
from .config import HEADER_BATCH_SIZE
from .failover import FailoverTransactionProvider
from .tracker import SyncStateTracker

logger = logging.getLogger(__name__)


class SyncStatus(Enum):
    """Outcome of the most recent sync run."""

    IDLE = auto()
    """No sync has run yet."""

    SYNCING = auto()
    """A sync run is in progress."""

    SYNCED = auto()
    """The provider had no headers above the confirmed height."""

    STALLED = auto()
    """Transient provider failures outlasted the retry budget. Retry later."""

    REJECTED = auto()
    """A header broke consensus rules; its batch was discarded."""

    FAILED = auto()
    """Sync cannot proceed: bad configuration or every provider failed."""


@dataclass(slots=True)
class SyncProgress:
    """
    Current synchronization progress.

    Provides a snapshot of sync state for monitoring and logging.
    """

    status: SyncStatus
    """Outcome of the most recent run."""

    confirmed_height: int | None = None
    """Highest height the cursor confirms."""

    headers_validated: int = 0
    """Headers accepted this session."""

    provider: ProviderId | None = None
    """Provider the cursor credits with the confirmed data."""

    detail: str | None = None
    """Reason for a STALLED, REJECTED or FAILED status."""


@dataclass(slots=True)
class StagedHeaders:
    """
    Header lookup over the store plus a batch that is not stored yet.

    Lets each header of a batch be validated against its predecessors in
    the same batch without writing anything until the whole batch passes.
    """

    store: HeaderStore
    """Committed headers."""

    pending: dict[Bytes32, Header] = field(default_factory=dict)
    """Validated headers of the current batch."""

    def add(self, header: Header) -> None:
        """Stage a validated header."""
        self.pending[header.hash] = header

    def get_header(self, block_hash: Bytes32) -> Header | None:
        """Look up a header in the batch, then in the store."""
        staged = self.pending.get(block_hash)
        return staged if staged is not None else self.store.get_header(block_hash)

    def get_ancestor(self, header: Header, offset: int) -> Header | None:
        """Walk back through the batch, then hand over to the store's index."""
        cursor = header
        remaining = offset
        while remaining > 0 and cursor.hash in self.pending:
            parent = self.get_header(cursor.previous_hash)
            if parent is None:
                return None
            cursor = parent
            remaining -= 1
        if remaining == 0:
            return cursor
        return self.store.get_ancestor(cursor, remaining)


@dataclass(slots=True)
class HeaderSyncService:
    """
    Validates and stores headers from a failover provider, one batch at a time.

    One service exists per wallet and sync mode. Its lock serializes sync runs
    so the cursor has a single writer.
    """

    validators: ValidatorSet
    """Validator set every header must pass."""

    store: HeaderStore
    """Header chain of this wallet."""

    tracker: SyncStateTracker
    """Cursor owner for this wallet."""

    provider: FailoverTransactionProvider
    """Header source."""

    resolver: CheckpointResolver
    """Start point selection."""

    batch_size: int = HEADER_BATCH_SIZE
    """Maximum headers per batch."""

    _status: SyncStatus = field(default=SyncStatus.IDLE, init=False)
    _detail: str | None = field(default=None, init=False)
    _headers_validated: int = field(default=0, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @property
    def mode(self) -> SyncMode:
        """Sync mode of this wallet."""
        return self.tracker.mode

    @property
    def status(self) -> SyncStatus:
        """Outcome of the most recent run."""
        return self._status

    def get_progress(self) -> SyncProgress:
        """
        Get current sync progress.

        Returns:
            Snapshot of sync state for monitoring.
        """
        cursor = self.tracker.cursor
        return SyncProgress(
            status=self._status,
            confirmed_height=self.tracker.confirmed_height,
            headers_validated=self._headers_validated,
            provider=None if cursor is None else cursor.strategy,
            detail=self._detail,
        )

    async def sync(self, until_height: int | None = None) -> SyncProgress:
        """
        Run sync until the provider is out of headers, or `until_height`.

        Consensus rejections and stalls are reported through the returned
        progress. Configuration errors, provider failures and persistence failures
        propagate after the FAILED status is recorded.
        """
        async with self._lock:
            self._status = SyncStatus.SYNCING
            self._detail = None
            try:
                await self._run(until_height)
            except ConsensusRejection as rejection:
                self._finish(SyncStatus.REJECTED, rejection.message)
            except SyncStalledError as stall:
                self._finish(SyncStatus.STALLED, stall.message)
            except (
                ConfigurationError,
                CursorRegressionError,
                PersistenceError,
                ProviderFailedError,
                ProvidersExhaustedError,
            ) as error:
                self._finish(SyncStatus.FAILED, error.message)
                raise
            except asyncio.CancelledError:
                self._finish(SyncStatus.IDLE, "cancelled")
                raise
            else:
                self._finish(SyncStatus.SYNCED, None)
            return self.get_progress()

    def _finish(self, status: SyncStatus, detail: str | None) -> None:
        self._status = status
        self._detail = detail
        if status is SyncStatus.SYNCED:
            logger.info("Header sync complete at height %s", self.tracker.confirmed_height)
        elif status is not SyncStatus.IDLE:
            logger.warning("Header sync ended %s: %s", status.name, detail)

    async def _run(self, until_height: int | None) -> None:
        start = self.resolver.resolve(self.mode, self.tracker.cursor)
        floor_height = max(
            0, int(start.checkpoint.height) - self.validators.history_depth_at(start.height + 1)
        )

        if self.store.get_header(start.hash) is None:
            await self._load_trusted_prefix(start, floor_height)
        self.tracker.start(start, self.provider.provider_id)

        while until_height is None or (self.tracker.confirmed_height or 0) < until_height:
            cursor = self.tracker.cursor
            assert cursor is not None
            next_height = int(cursor.last_confirmed_height) + 1
            limit = self.batch_size
            if until_height is not None:
                limit = min(limit, until_height - next_height + 1)

            batch = await self.provider.fetch_headers(next_height, limit)
            if not batch:
                return

            # Credit the provider that served this batch, after any failover.
            strategy = self.provider.provider_id
            self._validate_batch(
                batch, cursor.last_confirmed_hash, next_height - 1, floor_height
            )
            self.store.put_headers(batch)
            self.tracker.commit(
                first_height=int(batch[0].height),
                last_height=int(batch[-1].height),
                last_hash=batch[-1].hash,
                strategy=strategy,
            )
            self._headers_validated += len(batch)

    async def _load_trusted_prefix(self, start: StartPoint, floor_height: int) -> None:
        """
        Store the ancestors of a fresh start point, ending at the checkpoint.

        Raises:
            ProviderFailedError: If the served headers do not link up to the
                checkpoint hash, or do not sit at consecutive heights.
        """
        checkpoint_height = int(start.checkpoint.height)
        count = checkpoint_height - floor_height + 1
        headers: list[Header] = []
        while len(headers) < count:
            batch = await self.provider.fetch_trusted_headers(
                floor_height + len(headers), min(self.batch_size, count - len(headers))
            )
            if not batch:
                break
            headers.extend(batch)

        provider = self.provider.provider_id.value
        if len(headers) != count or headers[-1].hash != start.checkpoint.hash:
            raise ProviderFailedError(
                f"Headers served below height {checkpoint_height} do not end at the checkpoint",
                provider=provider,
            )
        for offset, header in enumerate(headers):
            if int(header.height) != floor_height + offset:
                raise ProviderFailedError(
                    f"Header served for height {floor_height + offset} declares height "
                    f"{int(header.height)}",
                    provider=provider,
                )
        for parent, child in zip(headers, headers[1:]):
            if child.previous_hash != parent.hash:
                raise ProviderFailedError(
                    f"Headers served below the checkpoint break at height {int(child.height)}",
                    provider=provider,
                )

        self.store.put_headers(headers)
        logger.info(
            "Loaded %s trusted headers up to checkpoint height %s", len(headers), checkpoint_height
        )

    def _validate_batch(
        self,
        batch: Sequence[Header],
        parent_hash: Bytes32,
        parent_height: int,
        floor_height: int,
    ) -> None:
        """
        Validate a batch in order against the store plus its own earlier headers.

        Raises:
            ConsensusRejection: On the first header that fails validation,
                including one whose height does not follow its parent's.
        """
        staged = StagedHeaders(self.store)
        for header in batch:
            if header.previous_hash != parent_hash:
                raise MissingAncestorError(
                    f"Header at height {int(header.height)} does not extend the confirmed chain",
                    height=int(header.height),
                )
            if int(header.height) != parent_height + 1:
                raise UnexpectedHeightError(
                    height=int(header.height), expected=parent_height + 1
                )
            verdict = self.validators.check(header, ChainContext(header, staged, floor_height))
            if not verdict.accepted:
                assert verdict.reason is not None
                raise verdict.reason
            staged.add(header)
            parent_hash = header.hash
            parent_height += 1
