"""Checkpoint Container."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from ecash_spec.types import Bytes32, StrictBaseModel, Uint32, Uint64


class Checkpoint(StrictBaseModel):
    """
    A trusted height/hash pair embedded in the network parameters.

    Sync starts from a checkpoint instead of genesis. Everything at or below it
    is taken on trust; everything above it is validated.
    """

    height: Uint64
    """Height of the checkpointed block."""

    hash: Bytes32
    """Hash of the checkpointed block, internal byte order."""

    timestamp: Uint32
    """
    Approximate block time of the checkpoint.

    Only used to pick a checkpoint old enough for API-assisted sync. It never
    takes part in header validation.
    """

    @field_validator("hash", mode="before")
    @classmethod
    def parse_display_hash(cls, v: Any) -> Any:
        """Accept display-order hex strings, the way explorers print block hashes."""
        if isinstance(v, str):
            return Bytes32.from_display_hex(v)
        return v
