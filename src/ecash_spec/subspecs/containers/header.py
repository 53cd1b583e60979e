"""
Block Header Container
======================

The 80-byte header is all a light client ever validates. Its layout is fixed
by the wire protocol and is little-endian throughout::

    offset  size  field
    0       4     version
    4       32    previous_hash   (internal byte order)
    36      32    merkle_root     (internal byte order)
    68      4     timestamp
    72      4     bits            (compact target)
    76      4     nonce

The block hash is SHA-256 applied twice to those 80 bytes. Height is not part
of the serialization: it is assigned by the chain the header extends.
"""

from __future__ import annotations

import hashlib
from functools import cached_property

from pydantic import ConfigDict

from ecash_spec.types import Bytes32, Bytes80, StrictBaseModel, Uint32, Uint64

HEADER_SIZE = 80
"""Serialized header length in bytes."""


def sha256d(data: bytes) -> bytes:
    """Double SHA-256, the hash function of the header chain."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


class Header(StrictBaseModel):
    """
    A block header positioned in the chain.

    Immutable once constructed. Validation code only ever holds read references.
    """

    model_config = StrictBaseModel.model_config | ConfigDict(ignored_types=(cached_property,))

    version: Uint32
    """Block version field. Carries no consensus meaning for retargeting."""

    previous_hash: Bytes32
    """Hash of the parent header, internal byte order."""

    merkle_root: Bytes32
    """Merkle root of the block's transactions, internal byte order."""

    timestamp: Uint32
    """Miner-declared block time, seconds since the Unix epoch."""

    bits: Uint32
    """Compact encoding of the target the block hash must not exceed."""

    nonce: Uint32
    """Proof-of-work nonce."""

    height: Uint64
    """Position of the header in its chain; genesis is 0."""

    def serialize(self) -> Bytes80:
        """Encode the header into its 80-byte wire form."""
        return Bytes80(
            self.version.to_bytes()
            + bytes(self.previous_hash)
            + bytes(self.merkle_root)
            + self.timestamp.to_bytes()
            + self.bits.to_bytes()
            + self.nonce.to_bytes()
        )

    @classmethod
    def deserialize(cls, raw: bytes, height: int) -> Header:
        """
        Decode an 80-byte wire header and place it at `height`.

        Raises:
            ValueError: If `raw` is not exactly 80 bytes.
        """
        if len(raw) != HEADER_SIZE:
            raise ValueError(f"Header must be {HEADER_SIZE} bytes, got {len(raw)}")
        return cls(
            version=Uint32(int.from_bytes(raw[0:4], "little")),
            previous_hash=Bytes32(raw[4:36]),
            merkle_root=Bytes32(raw[36:68]),
            timestamp=Uint32(int.from_bytes(raw[68:72], "little")),
            bits=Uint32(int.from_bytes(raw[72:76], "little")),
            nonce=Uint32(int.from_bytes(raw[76:80], "little")),
            height=Uint64(height),
        )

    @cached_property
    def hash(self) -> Bytes32:
        """Block hash: SHA-256d of the serialized header, internal byte order."""
        return Bytes32(sha256d(self.serialize()))

    def __repr__(self) -> str:
        return f"Header(height={int(self.height)}, hash={self.hash.display_hex()})"
