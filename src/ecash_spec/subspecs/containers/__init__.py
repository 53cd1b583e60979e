"""The container types for the header chain and its sync bookkeeping."""

from .checkpoint import Checkpoint
from .cursor import ProviderId, SyncCursor, SyncMode
from .header import HEADER_SIZE, Header, sha256d
from .transaction import TransactionItem

__all__ = [
    "Checkpoint",
    "Header",
    "HEADER_SIZE",
    "ProviderId",
    "SyncCursor",
    "SyncMode",
    "TransactionItem",
    "sha256d",
]
