"""
Legacy Periodic Retarget
========================

The original Bitcoin rule. Difficulty only changes on period boundaries:
every `retarget_interval` blocks the target is scaled by how long the period
actually took compared to how long it should have taken.

Known quirk kept for consensus: the measured span covers interval - 1 block
gaps, from the first to the last header of the period.
"""

from __future__ import annotations

from dataclasses import dataclass

from typing_extensions import Final

from ecash_spec.subspecs.pow.target import bits_to_target, encode_compact

from .helpers import ChainContext

MAX_ADJUSTMENT: Final = 4
"""Largest factor a single period may move the target in either direction."""


@dataclass(frozen=True, slots=True)
class LegacyPeriodic:
    """Parameters of the periodic retarget."""

    retarget_interval: int
    """Blocks per difficulty period."""

    target_timespan: int
    """Expected duration of one period in seconds."""

    max_target: int
    """Proof-of-work limit."""

    max_adjustment: int = MAX_ADJUSTMENT
    """Clamp on the per-period adjustment factor."""


def retarget_period(
    previous_bits: int,
    actual_timespan: int,
    target_timespan: int,
    max_target: int,
    max_adjustment: int = MAX_ADJUSTMENT,
) -> int:
    """
    Compute the bits of the first block of a new period.

    Args:
        previous_bits: Bits of the last block of the closing period.
        actual_timespan: Seconds between the period's first and last block.
        target_timespan: Expected period duration.
        max_target: Proof-of-work limit.
        max_adjustment: Clamp on the adjustment factor.

    Returns:
        Compact bits of the new target.
    """
    # Skewed timestamps cannot move difficulty more than the clamp allows.
    timespan = max(actual_timespan, target_timespan // max_adjustment)
    timespan = min(timespan, target_timespan * max_adjustment)

    new_target = bits_to_target(previous_bits) * timespan // target_timespan
    return encode_compact(min(new_target, max_target))


def legacy_next_bits(algorithm: LegacyPeriodic, context: ChainContext) -> int:
    """Bits required of the candidate under the periodic rule."""
    previous = context.previous()
    if context.height % algorithm.retarget_interval != 0:
        return int(previous.bits)

    first = context.require_ancestor(algorithm.retarget_interval)
    return retarget_period(
        int(previous.bits),
        int(previous.timestamp) - int(first.timestamp),
        algorithm.target_timespan,
        algorithm.max_target,
        algorithm.max_adjustment,
    )
