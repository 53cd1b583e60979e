"""Transaction references returned by remote data providers."""

from __future__ import annotations

from ecash_spec.types import Bytes32, CamelModel, Uint64


class TransactionItem(CamelModel):
    """
    A transaction touching a wallet address, as reported by a provider.

    Only the placement data is kept. Decoding and verifying the transaction
    itself belongs to the wallet layer.
    """

    txid: Bytes32
    """Transaction id, internal byte order."""

    block_height: Uint64
    """Height of the block that confirmed the transaction."""

    block_hash: Bytes32
    """Hash of the confirming block, internal byte order."""
