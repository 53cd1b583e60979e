"""
Database namespace definitions for storage tables.

Defines table names and schema constants for SQLite storage.
Each namespace represents a logical grouping of related data.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class HeaderNamespace:
    """
    Namespace for header storage.

    Headers are stored by block hash in their 80-byte wire form.
    Height is stored alongside since it is not part of the serialization.
    """

    TABLE_NAME: str = "headers"
    """Table name for header storage."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS headers (
            hash BLOB PRIMARY KEY,
            height INTEGER NOT NULL,
            data BLOB NOT NULL
        )
    """
    """SQL to create headers table."""

    CREATE_INDEX: str = """
        CREATE INDEX IF NOT EXISTS idx_headers_height ON headers(height)
    """
    """SQL to create height index."""


@dataclass(frozen=True, slots=True)
class MainChainNamespace:
    """
    Namespace for the height-to-hash mapping of the main chain.

    Rewritten along the new branch whenever the tip moves to another branch.
    """

    TABLE_NAME: str = "main_chain"
    """Table name for the main chain index."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS main_chain (
            height INTEGER PRIMARY KEY,
            hash BLOB NOT NULL
        )
    """
    """SQL to create main chain table."""


@dataclass(frozen=True, slots=True)
class SyncCursorNamespace:
    """
    Namespace for sync cursors.

    One row per (network, wallet id, sync mode). The cursor is stored as JSON.
    """

    TABLE_NAME: str = "sync_cursors"
    """Table name for sync cursor storage."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS sync_cursors (
            network TEXT NOT NULL,
            wallet_id TEXT NOT NULL,
            mode TEXT NOT NULL,
            data TEXT NOT NULL,
            PRIMARY KEY (network, wallet_id, mode)
        )
    """
    """SQL to create sync cursors table."""


# Singleton instances for convenient access
HEADERS = HeaderNamespace()
MAIN_CHAIN = MainChainNamespace()
SYNC_CURSORS = SyncCursorNamespace()

ALL_NAMESPACES = [HEADERS, MAIN_CHAIN, SYNC_CURSORS]
"""All namespace definitions for schema initialization."""
