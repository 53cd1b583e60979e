"""
Storage module for persistent header and sync progress storage.

Provides storage abstractions for the header chain and the sync cursor.
Uses SQLite for simplicity and correctness.
"""

from .database import CursorStore, Database, HeaderStore
from .memory import InMemoryHeaderStore
from .namespaces import HeaderNamespace, MainChainNamespace, SyncCursorNamespace
from .paths import clear_wallet_data, database_name, database_path
from .sqlite import SQLiteDatabase

__all__ = [
    "CursorStore",
    "Database",
    "HeaderNamespace",
    "HeaderStore",
    "InMemoryHeaderStore",
    "MainChainNamespace",
    "SQLiteDatabase",
    "SyncCursorNamespace",
    "clear_wallet_data",
    "database_name",
    "database_path",
]
