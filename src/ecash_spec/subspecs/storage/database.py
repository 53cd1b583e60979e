"""
Abstract storage interfaces for headers and sync progress.

Defines the Protocols that all storage implementations must follow.
Uses structural subtyping for flexibility.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ecash_spec.subspecs.containers import Header, SyncCursor, SyncMode
    from ecash_spec.types import Bytes32


class HeaderStore(Protocol):
    """
    Protocol for header chain storage.

    Storage Organization
    --------------------
    - Headers: indexed by block hash
    - Main chain: height -> hash for the branch ending at the tip
    """

    def get_header(self, block_hash: Bytes32) -> Header | None:
        """
        Retrieve a header by its hash.

        Args:
            block_hash: Block hash, internal byte order.

        Returns:
            Header if found, None otherwise.
        """
        ...

    def get_ancestor(self, header: Header, offset: int) -> Header | None:
        """
        Retrieve the ancestor `offset` blocks behind `header`.

        Args:
            header: Starting header. Offset 0 returns it unchanged.
            offset: Number of blocks to walk back.

        Returns:
            The ancestor, or None when history does not reach back that far.
        """
        ...

    def put_header(self, header: Header) -> None:
        """
        Store a header. Headers extending the longest branch move the tip.

        Args:
            header: Header to store.
        """
        ...

    def put_headers(self, headers: Sequence[Header]) -> None:
        """
        Store a batch of headers atomically, in the given order.

        Args:
            headers: Headers to store, parents before children.
        """
        ...

    def get_tip(self) -> Header | None:
        """
        Retrieve the highest header of the main chain.

        Returns:
            Tip header, or None if the store is empty.
        """
        ...


class CursorStore(Protocol):
    """
    Protocol for sync cursor persistence.

    Cursors are keyed by (network, wallet id, sync mode). A write is durable
    once `put_sync_cursor` returns.
    """

    def get_sync_cursor(self, network: str, wallet_id: str, mode: SyncMode) -> SyncCursor | None:
        """
        Retrieve the sync cursor of a wallet.

        Returns:
            The cursor, or None if the wallet never completed a batch.
        """
        ...

    def put_sync_cursor(
        self, network: str, wallet_id: str, mode: SyncMode, cursor: SyncCursor
    ) -> None:
        """
        Durably store the sync cursor of a wallet.

        Raises:
            PersistenceError: If the write did not complete.
        """
        ...

    def delete_sync_cursor(self, network: str, wallet_id: str, mode: SyncMode) -> None:
        """Forget the sync cursor of a wallet."""
        ...


class Database(HeaderStore, CursorStore, Protocol):
    """Headers and sync progress kept together, one database per wallet and mode."""

    def close(self) -> None:
        """Close database connection and release resources."""
        ...
