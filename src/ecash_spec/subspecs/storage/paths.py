"""
Database file naming.

Every (network, wallet, sync mode) triple gets its own database file, so a
wallet restored in another mode never inherits headers or a cursor from a
different history source.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ecash_spec.subspecs.chain import NetworkType
from ecash_spec.subspecs.containers import SyncMode

logger = logging.getLogger(__name__)

_SIDE_FILE_SUFFIXES = ("-journal", "-wal", "-shm")
"""Files SQLite may create next to a database."""


def database_name(network: NetworkType, wallet_id: str, mode: SyncMode) -> str:
    """File stem of the database for one wallet in one sync mode."""
    return f"ECash-{network.name}-{wallet_id}-{mode.name.capitalize()}"


def database_path(data_dir: Path, network: NetworkType, wallet_id: str, mode: SyncMode) -> Path:
    """Path of the database for one wallet in one sync mode."""
    return data_dir / f"{database_name(network, wallet_id, mode)}.sqlite"


def clear_wallet_data(data_dir: Path, network: NetworkType, wallet_id: str) -> list[Path]:
    """
    Delete every database of a wallet, in every sync mode.

    A file that cannot be removed is logged and skipped so the remaining
    modes are still cleared.

    Returns:
        The files that were removed.
    """
    removed: list[Path] = []
    for mode in SyncMode:
        path = database_path(data_dir, network, wallet_id, mode)
        for candidate in (path, *(Path(f"{path}{suffix}") for suffix in _SIDE_FILE_SUFFIXES)):
            try:
                candidate.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("Could not remove %s: %s", candidate, exc)
                continue
            removed.append(candidate)
    if removed:
        logger.info("Cleared %s database files of wallet '%s'", len(removed), wallet_id)
    return removed
