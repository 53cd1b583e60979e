"""Reusable type definitions for eCash headers and sync state."""

from .base import CamelModel, StrictBaseModel
from .byte_arrays import ZERO_HASH, Bytes32, Bytes80
from .uint import Uint32, Uint64

__all__ = [
    "Uint32",
    "Uint64",
    "Bytes32",
    "Bytes80",
    "ZERO_HASH",
    "CamelModel",
    "StrictBaseModel",
]
