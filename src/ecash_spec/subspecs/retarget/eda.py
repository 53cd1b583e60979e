"""
Emergency Difficulty Adjustment
===============================

A per-block safety valve added at the 2017 split. The new chain started with
a small share of the hash rate and two-week periods would have stalled it.

Rules, evaluated for each candidate:

1. On a legacy period boundary, the legacy rule applies unchanged.
2. If the parent already sits at the proof-of-work limit, stay there.
3. If the six blocks before the candidate took 12 hours or more of median
   time, raise the target by a quarter (difficulty drops by 20%).
4. Otherwise keep the parent's bits.
"""

from __future__ import annotations

from dataclasses import dataclass

from typing_extensions import Final

from ecash_spec.subspecs.pow.target import bits_to_target, encode_compact

from .helpers import ChainContext
from .legacy import LegacyPeriodic, legacy_next_bits

REFERENCE_DEPTH: Final = 6
"""Blocks between the parent and the reference ancestor."""


@dataclass(frozen=True, slots=True)
class EmergencyDifficultyAdjustment:
    """Parameters of the emergency adjustment era."""

    legacy: LegacyPeriodic
    """Periodic rule still applied on period boundaries."""

    max_target_bits: int
    """Compact proof-of-work limit."""

    mtp_threshold: int
    """Median-time gap over the reference depth that triggers the adjustment."""

    reference_depth: int = REFERENCE_DEPTH
    """Distance between the parent and the reference ancestor."""


def eda_next_bits(algorithm: EmergencyDifficultyAdjustment, context: ChainContext) -> int:
    """Bits required of the candidate during the emergency adjustment era."""
    if context.height % algorithm.legacy.retarget_interval == 0:
        return legacy_next_bits(algorithm.legacy, context)

    previous = context.previous()
    if int(previous.bits) == algorithm.max_target_bits:
        return algorithm.max_target_bits

    reference = context.require_ancestor(1 + algorithm.reference_depth)
    elapsed = context.median_time_past(previous) - context.median_time_past(reference)
    if elapsed < algorithm.mtp_threshold:
        return int(previous.bits)

    target = bits_to_target(int(previous.bits))
    target += target >> 2
    return encode_compact(min(target, algorithm.legacy.max_target))
