"""
Failover Transaction Provider
=============================

Combines a fast provider that only retains recent history (the primary) with
a slower provider that retains all of it (the secondary).

Requests go to the primary until it reports that the requested range is
gone, or fails for good. From then on every request goes to the secondary,
and the height where that happened is written to the sync cursor so a
restart never asks the primary for the same history again.

Transient failures never change the routing. They are retried with
exponential backoff and, once the attempt budget is spent, surface as
`SyncStalledError`, from which the caller may simply restart later.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from ecash_spec.exceptions import (
    ConfigurationError,
    ProviderError,
    ProviderFailedError,
    ProviderRangeUnavailableError,
    ProvidersExhaustedError,
    ProviderTransientError,
    SyncStalledError,
)
from ecash_spec.subspecs import metrics
from ecash_spec.subspecs.containers import Header, ProviderId, TransactionItem

from .config import BACKOFF_BASE, BACKOFF_CAP, MAX_ATTEMPTS
from .providers import DataProvider
from .states import ProviderState
from .tracker import SyncStateTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
"""Async delay function, injectable for tests."""


@dataclass(slots=True)
class FailoverTransactionProvider:
    """
    DataProvider that routes between a primary and a secondary provider.

    Either provider may be omitted. With a single provider, the state machine
    starts in that provider's state and can only move to EXHAUSTED.
    """

    tracker: SyncStateTracker
    """Cursor owner. Supplies the confirmed height and stores the cutover."""

    primary: DataProvider | None = None
    """Fast provider with a limited history window."""

    secondary: DataProvider | None = None
    """Provider with complete history."""

    max_attempts: int = MAX_ATTEMPTS
    """Attempts per request before a transient failure stalls sync."""

    backoff_base: float = BACKOFF_BASE
    """First retry delay in seconds."""

    backoff_cap: float = BACKOFF_CAP
    """Upper bound on a retry delay in seconds."""

    sleep: Sleep = field(default=asyncio.sleep)
    """Delay function between retries."""

    _state: ProviderState = field(default=ProviderState.USING_PRIMARY, init=False)
    """Current routing state."""

    def __post_init__(self) -> None:
        """Pick the initial state from the configuration and saved progress."""
        if self.primary is None and self.secondary is None:
            raise ConfigurationError("Failover provider needs at least one provider")
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")

        if self.primary is None:
            self._state = ProviderState.USING_SECONDARY
        elif self.secondary is None:
            self._state = ProviderState.USING_PRIMARY
        elif self.tracker.cutover_height is not None:
            # The primary was already found exhausted in an earlier session.
            self._state = ProviderState.USING_SECONDARY
        else:
            self._state = ProviderState.USING_PRIMARY
        logger.debug("Failover provider starting in state %s", self._state.name)

    @property
    def state(self) -> ProviderState:
        """Current routing state."""
        return self._state

    @property
    def provider_id(self) -> ProviderId:
        """
        Identity of the provider requests currently go to.

        Raises:
            ProvidersExhaustedError: If every provider has failed.
        """
        return self._current_provider().provider_id

    def _current_provider(self) -> DataProvider:
        match self._state:
            case ProviderState.USING_PRIMARY:
                provider = self.primary
            case ProviderState.USING_SECONDARY:
                provider = self.secondary
            case ProviderState.EXHAUSTED:
                raise ProvidersExhaustedError("Every configured data provider has failed")
        assert provider is not None
        return provider

    def _transition(self, target: ProviderState) -> None:
        if not self._state.can_transition_to(target):
            raise RuntimeError(f"Invalid provider transition {self._state.name} -> {target.name}")
        logger.info("Provider state %s -> %s", self._state.name, target.name)
        self._state = target

    def _clamp(self, from_height: int) -> int:
        """Move a header request start past heights the cursor already confirms."""
        confirmed = self.tracker.confirmed_height
        if confirmed is not None and from_height <= confirmed:
            logger.debug("Request from %s clamped past confirmed height %s", from_height, confirmed)
            return confirmed + 1
        return from_height

    async def fetch_headers(self, from_height: int, limit: int) -> list[Header]:
        """Fetch headers above the confirmed height, failing over as needed."""
        start = self._clamp(from_height)
        return await self._route(lambda p: p.fetch_headers(start, limit), start)

    async def fetch_trusted_headers(self, from_height: int, limit: int) -> list[Header]:
        """
        Fetch headers at or below a trusted checkpoint.

        Only used once per start point, to load the ancestors the first
        validated header needs. Not clamped: these heights are trusted, not
        confirmed by sync.
        """
        return await self._route(lambda p: p.fetch_headers(from_height, limit), from_height)

    async def fetch_transactions(self, address: str, from_height: int) -> list[TransactionItem]:
        """
        Fetch the transaction history of `address` from `from_height` on.

        Not clamped: a wallet asks for history its header cursor has already
        passed, so the range is sent as requested.
        """
        return await self._route(
            lambda p: p.fetch_transactions(address, from_height), from_height
        )

    async def _route(self, request: Callable[[DataProvider], Awaitable[T]], from_height: int) -> T:
        """Send `request` to the current provider, failing over on irrecoverable errors."""
        while True:
            provider = self._current_provider()
            try:
                return await self._with_retries(provider, request)
            except (ProviderRangeUnavailableError, ProviderFailedError) as exc:
                self._handle_irrecoverable(exc, from_height)

    def _handle_irrecoverable(self, exc: ProviderError, from_height: int) -> None:
        """Fail over to the secondary, or give up when there is nothing left."""
        if self._state is ProviderState.USING_PRIMARY and self.secondary is not None:
            cutover = (
                exc.from_height if isinstance(exc, ProviderRangeUnavailableError) else from_height
            )
            # Persist first: a failed write keeps the primary as the route.
            self.tracker.record_cutover(cutover)
            self._transition(ProviderState.USING_SECONDARY)
            metrics.provider_failovers.inc()
            logger.warning("Failing over to the secondary provider at height %s: %s", cutover, exc)
            return

        self._transition(ProviderState.EXHAUSTED)
        logger.error("No data provider left: %s", exc)
        raise ProvidersExhaustedError(f"Every configured data provider has failed: {exc}") from exc

    async def _with_retries(
        self, provider: DataProvider, request: Callable[[DataProvider], Awaitable[T]]
    ) -> T:
        """Retry transient failures with exponential backoff."""
        name = provider.provider_id.value
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await request(provider)
            except ProviderTransientError as exc:
                if attempt == self.max_attempts:
                    logger.warning("Giving up on %s after %s attempts: %s", name, attempt, exc)
                    raise SyncStalledError(
                        f"Provider {name} kept failing: {exc.message}", attempts=attempt
                    ) from exc
                delay = min(self.backoff_cap, self.backoff_base * 2 ** (attempt - 1))
                metrics.provider_retries.labels(provider=name).inc()
                logger.info("Retrying %s in %.1fs (attempt %s): %s", name, delay, attempt, exc)
                await self.sleep(delay)
        raise AssertionError("unreachable")
