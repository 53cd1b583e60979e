"""
SQLite database implementation for header and sync cursor storage.

This module provides persistent storage for one wallet in one sync mode:

- Headers indexed by block hash, stored in their 80-byte wire form
- A height-to-hash index of the main chain
- Sync cursors keyed by network, wallet id and sync mode, stored as JSON
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path

from ecash_spec.exceptions import PersistenceError
from ecash_spec.subspecs.containers import Header, SyncCursor, SyncMode
from ecash_spec.types import Bytes32

from .chain_index import branch_to_main, find_ancestor
from .namespaces import ALL_NAMESPACES, HEADERS, MAIN_CHAIN, SYNC_CURSORS

logger = logging.getLogger(__name__)


class SQLiteDatabase:
    """
    SQLite implementation of the Database protocol.

    Stores headers and sync progress in a single SQLite file.
    Thread-safe through SQLite's built-in locking.
    """

    def __init__(self, path: Path | str) -> None:
        """
        Initialize SQLite database.

        Creates database file and tables if they don't exist.

        Args:
            path: Path to SQLite database file.
                  Use ":memory:" for in-memory database.
        """
        self._path = Path(path) if isinstance(path, str) else path

        # Validation reads may come from worker threads; SQLite serializes writes.
        self._conn = sqlite3.connect(
            str(self._path),
            check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row

        self._init_schema()

    def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        cursor = self._conn.cursor()
        for namespace in ALL_NAMESPACES:
            cursor.execute(namespace.CREATE_TABLE)
            create_index = getattr(namespace, "CREATE_INDEX", None)
            if create_index is not None:
                cursor.execute(create_index)
        self._conn.commit()

    # -------------------------------------------------------------------------
    # Header Operations
    # -------------------------------------------------------------------------

    def get_header(self, block_hash: Bytes32) -> Header | None:
        """Retrieve a header by its hash."""
        cursor = self._conn.cursor()
        cursor.execute(
            f"SELECT height, data FROM {HEADERS.TABLE_NAME} WHERE hash = ?",
            (bytes(block_hash),),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return Header.deserialize(row["data"], row["height"])

    def get_ancestor(self, header: Header, offset: int) -> Header | None:
        """Retrieve the ancestor `offset` blocks behind `header`."""
        return find_ancestor(header, offset, self.get_header, self._main_hash_at)

    def put_header(self, header: Header) -> None:
        """Store a header, moving the tip if it extends the longest branch."""
        self.put_headers([header])

    def put_headers(self, headers: Sequence[Header]) -> None:
        """
        Store a batch of headers in one transaction.

        Raises:
            PersistenceError: If the transaction did not commit.
        """
        try:
            with self._conn:
                for header in headers:
                    self._insert_header(header)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to store {len(headers)} headers: {exc}") from exc

    def _insert_header(self, header: Header) -> None:
        """Insert one header and update the main chain index. Caller commits."""
        self._conn.execute(
            f"""
            INSERT OR REPLACE INTO {HEADERS.TABLE_NAME} (hash, height, data)
            VALUES (?, ?, ?)
            """,
            (bytes(header.hash), int(header.height), bytes(header.serialize())),
        )

        tip_height = self._tip_height()
        if tip_height is not None and int(header.height) <= tip_height:
            return

        for member in branch_to_main(header, self.get_header, self._main_hash_at):
            self._conn.execute(
                f"INSERT OR REPLACE INTO {MAIN_CHAIN.TABLE_NAME} (height, hash) VALUES (?, ?)",
                (int(member.height), bytes(member.hash)),
            )

    def get_tip(self) -> Header | None:
        """Retrieve the highest header of the main chain."""
        cursor = self._conn.cursor()
        cursor.execute(
            f"SELECT hash FROM {MAIN_CHAIN.TABLE_NAME} ORDER BY height DESC LIMIT 1",
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return self.get_header(Bytes32(row["hash"]))

    def _tip_height(self) -> int | None:
        cursor = self._conn.cursor()
        cursor.execute(f"SELECT MAX(height) AS height FROM {MAIN_CHAIN.TABLE_NAME}")
        row = cursor.fetchone()
        return None if row is None else row["height"]

    def _main_hash_at(self, height: int) -> Bytes32 | None:
        cursor = self._conn.cursor()
        cursor.execute(
            f"SELECT hash FROM {MAIN_CHAIN.TABLE_NAME} WHERE height = ?",
            (height,),
        )
        row = cursor.fetchone()
        return None if row is None else Bytes32(row["hash"])

    # -------------------------------------------------------------------------
    # Sync Cursor Operations
    # -------------------------------------------------------------------------

    def get_sync_cursor(self, network: str, wallet_id: str, mode: SyncMode) -> SyncCursor | None:
        """Retrieve the sync cursor of a wallet."""
        cursor = self._conn.cursor()
        cursor.execute(
            f"""
            SELECT data FROM {SYNC_CURSORS.TABLE_NAME}
            WHERE network = ? AND wallet_id = ? AND mode = ?
            """,
            (network, wallet_id, mode.value),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return SyncCursor.model_validate_json(row["data"])

    def put_sync_cursor(
        self, network: str, wallet_id: str, mode: SyncMode, cursor: SyncCursor
    ) -> None:
        """
        Durably store the sync cursor of a wallet.

        Raises:
            PersistenceError: If the write did not commit.
        """
        try:
            with self._conn:
                self._conn.execute(
                    f"""
                    INSERT OR REPLACE INTO {SYNC_CURSORS.TABLE_NAME}
                        (network, wallet_id, mode, data)
                    VALUES (?, ?, ?, ?)
                    """,
                    (network, wallet_id, mode.value, cursor.model_dump_json()),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to store sync cursor: {exc}") from exc

    def delete_sync_cursor(self, network: str, wallet_id: str, mode: SyncMode) -> None:
        """Forget the sync cursor of a wallet."""
        with self._conn:
            self._conn.execute(
                f"""
                DELETE FROM {SYNC_CURSORS.TABLE_NAME}
                WHERE network = ? AND wallet_id = ? AND mode = ?
                """,
                (network, wallet_id, mode.value),
            )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close database connection."""
        self._conn.close()
        logger.debug("Closed header database %s", self._path)

    def __enter__(self) -> SQLiteDatabase:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit - close connection."""
        self.close()
