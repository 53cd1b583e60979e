"""In-memory header and cursor storage for tests and ephemeral use."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from ecash_spec.subspecs.containers import Header, SyncCursor, SyncMode
from ecash_spec.types import Bytes32

from .chain_index import branch_to_main, find_ancestor


@dataclass(slots=True)
class InMemoryHeaderStore:
    """
    Dictionary-backed implementation of the Database protocol.

    Nothing survives the process. Behaves exactly like `SQLiteDatabase`
    otherwise, which makes it the store of choice for tests.
    """

    _headers: dict[Bytes32, Header] = field(default_factory=dict)
    """All known headers by hash."""

    _main_chain: dict[int, Bytes32] = field(default_factory=dict)
    """Height -> hash along the branch ending at the tip."""

    _tip: Header | None = None
    """Highest header of the main chain."""

    _cursors: dict[tuple[str, str, SyncMode], SyncCursor] = field(default_factory=dict)
    """Sync cursors by (network, wallet id, mode)."""

    def __len__(self) -> int:
        return len(self._headers)

    def get_header(self, block_hash: Bytes32) -> Header | None:
        """Retrieve a header by its hash."""
        return self._headers.get(block_hash)

    def get_ancestor(self, header: Header, offset: int) -> Header | None:
        """Retrieve the ancestor `offset` blocks behind `header`."""
        return find_ancestor(header, offset, self._headers.get, self._main_chain.get)

    def put_header(self, header: Header) -> None:
        """Store a header, moving the tip if it extends the longest branch."""
        self._headers[header.hash] = header
        if self._tip is not None and int(header.height) <= int(self._tip.height):
            return

        for member in branch_to_main(header, self._headers.get, self._main_chain.get):
            self._main_chain[int(member.height)] = member.hash
        self._tip = header

    def put_headers(self, headers: Sequence[Header]) -> None:
        """Store a batch of headers, parents before children."""
        for header in headers:
            self.put_header(header)

    def get_tip(self) -> Header | None:
        """Retrieve the highest header of the main chain."""
        return self._tip

    def get_sync_cursor(self, network: str, wallet_id: str, mode: SyncMode) -> SyncCursor | None:
        """Retrieve the sync cursor of a wallet."""
        return self._cursors.get((network, wallet_id, mode))

    def put_sync_cursor(
        self, network: str, wallet_id: str, mode: SyncMode, cursor: SyncCursor
    ) -> None:
        """Store the sync cursor of a wallet."""
        self._cursors[(network, wallet_id, mode)] = cursor

    def delete_sync_cursor(self, network: str, wallet_id: str, mode: SyncMode) -> None:
        """Forget the sync cursor of a wallet."""
        self._cursors.pop((network, wallet_id, mode), None)

    def close(self) -> None:
        """Nothing to release."""
