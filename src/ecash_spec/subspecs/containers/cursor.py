"""Sync cursor and sync mode definitions."""

from __future__ import annotations

from enum import Enum

from ecash_spec.types import Bytes32, StrictBaseModel, Uint64


class SyncMode(Enum):
    """
    How a wallet obtains its history.

    The mode is part of the storage key: switching modes starts a fresh database.
    """

    FULL = "full"
    """Headers from the earliest checkpoint, validated one by one. No API."""

    API = "api"
    """Fast API provider only, starting from a recent checkpoint."""

    BLOCKCHAIR = "blockchair"
    """Fast provider first, complete-history provider once the fast one runs out of history."""


class ProviderId(Enum):
    """Identity of the data source that produced confirmed history."""

    PEERS = "peers"
    """Headers obtained from the peer-to-peer network."""

    PRIMARY = "primary"
    """Fast provider with a limited retention window."""

    SECONDARY = "secondary"
    """Slower provider with complete history."""


class SyncCursor(StrictBaseModel):
    """
    Durable record of how far sync has progressed.

    Owned by `SyncStateTracker`. A new cursor is only ever created from a fully
    verified batch, and `last_confirmed_height` never decreases.
    """

    strategy: ProviderId
    """Provider that produced data up to `last_confirmed_height`."""

    last_confirmed_height: Uint64
    """Highest height whose data is verified and persisted."""

    last_confirmed_hash: Bytes32
    """Hash of the header at `last_confirmed_height`."""

    cutover_height: Uint64 | None = None
    """
    Height at which the primary provider was found exhausted.

    Once set, restarts route requests to the secondary directly instead of
    probing the primary again.
    """
