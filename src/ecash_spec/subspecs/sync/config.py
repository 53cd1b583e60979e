"""
Sync service configuration constants.

Operational parameters for history sync: retries, batch sizes and timeouts.
"""

from __future__ import annotations

from typing import Final

from ecash_spec.config import ECASH_ENV

MAX_ATTEMPTS: Final[int] = 5
"""Attempts per provider request before a transient failure stalls sync."""

BACKOFF_BASE: Final[float] = 0.0 if ECASH_ENV == "test" else 1.0
"""Delay in seconds before the first retry. Doubled on each further retry."""

BACKOFF_CAP: Final[float] = 60.0
"""Upper bound on a single retry delay in seconds."""

HEADER_BATCH_SIZE: Final[int] = 2000
"""Maximum headers validated and committed together."""

CHECKPOINT_SAFETY_MARGIN: Final[int] = 24 * 60 * 60
"""
Minimum age in seconds of a checkpoint used for API-assisted sync.

Younger checkpoints might not be indexed by the provider yet.
"""

REQUEST_TIMEOUT: Final[float] = 30.0
"""Timeout for individual provider requests in seconds."""
