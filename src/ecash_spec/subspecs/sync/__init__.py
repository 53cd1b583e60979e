"""
History sync for a light wallet.

What Is Sync?
-------------
A wallet restored from a seed knows nothing about the chain. Sync picks a
trusted checkpoint, downloads headers (and wallet transactions) from remote
providers and validates every header above the checkpoint.

The Challenge
-------------
1. **Limited providers**: the fast provider forgets old history
2. **Unreliable networks**: requests fail transiently
3. **Restarts**: progress must survive them without gaps or overlaps
"""

from __future__ import annotations

__all__ = [
    # Main service
    "HeaderSyncService",
    "StagedHeaders",
    "SyncProgress",
    "SyncStatus",
    # Checkpoints
    "CheckpointResolver",
    "StartPoint",
    "load_checkpoints",
    "merge_checkpoints",
    # Progress tracking
    "SyncStateTracker",
    # Providers
    "DataProvider",
    "FailoverTransactionProvider",
    "HttpDataProvider",
    "ProviderState",
    "build_header_source",
    "build_transaction_provider",
    # Configuration constants
    "BACKOFF_BASE",
    "BACKOFF_CAP",
    "CHECKPOINT_SAFETY_MARGIN",
    "HEADER_BATCH_SIZE",
    "MAX_ATTEMPTS",
    "REQUEST_TIMEOUT",
]

from .checkpoints import CheckpointResolver, StartPoint, load_checkpoints, merge_checkpoints
from .config import (
    BACKOFF_BASE,
    BACKOFF_CAP,
    CHECKPOINT_SAFETY_MARGIN,
    HEADER_BATCH_SIZE,
    MAX_ATTEMPTS,
    REQUEST_TIMEOUT,
)
from .failover import FailoverTransactionProvider
from .http_provider import HttpDataProvider
from .providers import DataProvider
from .service import HeaderSyncService, StagedHeaders, SyncProgress, SyncStatus
from .states import ProviderState
from .tracker import SyncStateTracker
from .wiring import build_header_source, build_transaction_provider
