"""
Provider wiring per sync mode.

- FULL: no API providers. Headers come from a single header source and are
  validated from the earliest checkpoint; transactions are not fetched.
- API: the fast provider alone.
- BLOCKCHAIR: the fast provider first, the complete-history provider once
  the fast one runs out of history.
"""

from __future__ import annotations

import logging

from ecash_spec.exceptions import ConfigurationError
from ecash_spec.subspecs.containers import SyncMode

from .failover import FailoverTransactionProvider
from .providers import DataProvider
from .tracker import SyncStateTracker

logger = logging.getLogger(__name__)


def build_transaction_provider(
    mode: SyncMode,
    tracker: SyncStateTracker,
    primary: DataProvider | None,
    secondary: DataProvider | None = None,
) -> FailoverTransactionProvider | None:
    """
    Compose the transaction provider a sync mode uses.

    Returns:
        The provider, or None in FULL mode.

    Raises:
        ConfigurationError: If the mode needs a provider that was not given.
    """
    match mode:
        case SyncMode.FULL:
            return None
        case SyncMode.API:
            if primary is None:
                raise ConfigurationError("API sync needs a primary provider")
            if secondary is not None:
                logger.info("API sync ignores the secondary provider")
            return FailoverTransactionProvider(tracker=tracker, primary=primary)
        case SyncMode.BLOCKCHAIR:
            if secondary is None:
                raise ConfigurationError("Blockchair sync needs a secondary provider")
            return FailoverTransactionProvider(
                tracker=tracker, primary=primary, secondary=secondary
            )


def build_header_source(
    mode: SyncMode,
    tracker: SyncStateTracker,
    primary: DataProvider | None,
    secondary: DataProvider | None = None,
) -> FailoverTransactionProvider:
    """
    Compose the provider headers are fetched from.

    API modes share their transaction provider. FULL mode uses whichever
    single header source is configured, since every header is validated
    from the earliest checkpoint anyway.

    Raises:
        ConfigurationError: If no provider was given.
    """
    provider = build_transaction_provider(mode, tracker, primary, secondary)
    if provider is not None:
        return provider
    source = primary if primary is not None else secondary
    if source is None:
        raise ConfigurationError("Full sync needs a header source")
    return FailoverTransactionProvider(tracker=tracker, primary=source)
