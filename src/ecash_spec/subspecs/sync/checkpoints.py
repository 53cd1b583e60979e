"""
Checkpoint resolution.

Picks the trusted point sync starts from. Everything at or below it is taken
on trust, so the choice must never land ahead of data that was verified or
embedded in the network parameters.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import ValidationError

from ecash_spec.exceptions import ConfigurationError
from ecash_spec.subspecs.containers import Checkpoint, SyncCursor, SyncMode
from ecash_spec.types import Bytes32

from .config import CHECKPOINT_SAFETY_MARGIN

logger = logging.getLogger(__name__)


def load_checkpoints(path: Path) -> tuple[Checkpoint, ...]:
    """
    Load extra checkpoints from a YAML file.

    Expected format::

        checkpoints:
          - height: 661648
            hash: 000000000000000004284c9d8b2c8ff731efeaec6be50729bdc9bd07f910757d
            timestamp: 1605449580

    Hashes are in display order.

    Raises:
        ConfigurationError: If the file cannot be read or an entry is invalid.
    """
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read checkpoints from {path}: {exc}") from exc

    if data is None:
        return ()
    entries = data.get("checkpoints", []) if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ConfigurationError(f"{path}: expected a 'checkpoints' list")

    try:
        checkpoints = [Checkpoint.model_validate(entry) for entry in entries]
    except ValidationError as exc:
        raise ConfigurationError(f"{path}: invalid checkpoint: {exc}") from exc
    return tuple(sorted(checkpoints, key=lambda cp: int(cp.height)))


def merge_checkpoints(
    embedded: Sequence[Checkpoint], extra: Sequence[Checkpoint]
) -> tuple[Checkpoint, ...]:
    """
    Combine embedded and user-supplied checkpoints, ordered by height.

    Raises:
        ConfigurationError: If both name a different hash for the same height.
    """
    by_height: dict[int, Checkpoint] = {int(cp.height): cp for cp in embedded}
    for cp in extra:
        known = by_height.get(int(cp.height))
        if known is not None and known.hash != cp.hash:
            raise ConfigurationError(
                f"Checkpoint at height {int(cp.height)} conflicts with the embedded one"
            )
        by_height[int(cp.height)] = cp
    return tuple(by_height[h] for h in sorted(by_height))


@dataclass(frozen=True, slots=True)
class StartPoint:
    """Where sync begins, and the checkpoint that vouches for it."""

    height: int
    """Last height already trusted or confirmed. Sync fetches from height + 1."""

    hash: Bytes32
    """Hash of the header at `height`."""

    checkpoint: Checkpoint
    """Trusted checkpoint at or below `height`."""

    @property
    def resumed(self) -> bool:
        """Whether sync resumes from earlier progress rather than a checkpoint."""
        return self.height > int(self.checkpoint.height)


@dataclass(frozen=True, slots=True)
class CheckpointResolver:
    """Chooses the starting point of sync for a given mode and saved progress."""

    checkpoints: tuple[Checkpoint, ...]
    """Trusted checkpoints, ordered by height."""

    safety_margin: int = CHECKPOINT_SAFETY_MARGIN
    """Minimum checkpoint age, in seconds, for API-assisted sync."""

    time_fn: Callable[[], float] = field(default=time.time)
    """Clock returning seconds since the epoch."""

    def __post_init__(self) -> None:
        if not self.checkpoints:
            raise ConfigurationError("At least one checkpoint is required")

    def checkpoint_for(self, mode: SyncMode) -> Checkpoint:
        """
        Trusted checkpoint for `mode`, ignoring saved progress.

        Full sync validates from the earliest checkpoint. API-assisted modes
        start from the latest checkpoint old enough for providers to index.
        """
        if mode is SyncMode.FULL:
            return self.checkpoints[0]

        horizon = self.time_fn() - self.safety_margin
        eligible = [cp for cp in self.checkpoints if int(cp.timestamp) <= horizon]
        if not eligible:
            return self.checkpoints[0]
        return eligible[-1]

    def resolve(self, mode: SyncMode, cursor: SyncCursor | None) -> StartPoint:
        """
        Trusted starting point for `mode`.

        Resumes from `cursor` when it progressed past the checkpoint.
        """
        checkpoint = self.checkpoint_for(mode)
        if cursor is not None and int(cursor.last_confirmed_height) > int(checkpoint.height):
            logger.info(
                "Resuming %s sync from height %s", mode.value, int(cursor.last_confirmed_height)
            )
            return StartPoint(
                height=int(cursor.last_confirmed_height),
                hash=cursor.last_confirmed_hash,
                checkpoint=checkpoint,
            )

        logger.info(
            "Starting %s sync from checkpoint at height %s", mode.value, int(checkpoint.height)
        )
        return StartPoint(height=int(checkpoint.height), hash=checkpoint.hash, checkpoint=checkpoint)
