"""
Proof-of-Work Check
===================

Validates a header against the target it declares. This is independent of
which retarget algorithm produced the bits: a header with correct bits but an
insufficient hash is invalid, and so is a header whose bits decode to
something no node would ever accept as a target.
"""

from __future__ import annotations

from dataclasses import dataclass

from ecash_spec.exceptions import InvalidProofOfWorkError
from ecash_spec.subspecs.containers import Header

from .target import decode_compact


def hash_to_int(block_hash: bytes) -> int:
    """Interpret a block hash (internal byte order) as an unsigned integer."""
    return int.from_bytes(block_hash, "little")


@dataclass(frozen=True, slots=True)
class ProofOfWorkCheck:
    """Unconditional check applied to every header regardless of height."""

    max_target: int
    """Proof-of-work limit of the network."""

    def validate(self, header: Header) -> None:
        """
        Check the declared target and the header hash against it.

        Raises:
            InvalidProofOfWorkError: If the bits are malformed, exceed the
                limit, or the hash is above the target.
        """
        height = int(header.height)
        decoded = decode_compact(int(header.bits))

        if decoded.negative or decoded.overflow or decoded.target == 0:
            raise InvalidProofOfWorkError(
                f"Header at height {height} declares malformed bits {int(header.bits):#010x}",
                height=height,
            )
        if decoded.target > self.max_target:
            raise InvalidProofOfWorkError(
                f"Header at height {height} declares a target above the network limit",
                height=height,
            )
        if hash_to_int(header.hash) > decoded.target:
            raise InvalidProofOfWorkError(
                f"Header at height {height} hash {header.hash.display_hex()} "
                f"does not meet its target",
                height=height,
            )
