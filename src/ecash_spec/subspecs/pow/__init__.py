"""Proof-of-work targets and the header proof-of-work check."""

from .proof_of_work import ProofOfWorkCheck, hash_to_int
from .target import (
    TWO_POW_256,
    DecodedTarget,
    bits_to_target,
    block_proof,
    decode_compact,
    encode_compact,
)

__all__ = [
    "DecodedTarget",
    "ProofOfWorkCheck",
    "TWO_POW_256",
    "bits_to_target",
    "block_proof",
    "decode_compact",
    "encode_compact",
    "hash_to_int",
]
