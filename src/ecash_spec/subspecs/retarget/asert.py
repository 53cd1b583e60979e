"""
Absolutely Scheduled Exponential Retarget (aserti3-2d)
======================================================

Every target is computed directly from a fixed anchor block::

    target = anchor_target * 2 ** ((actual_time - scheduled_time) / half_life)

where `scheduled_time` is where the chain would be had every block since the
anchor taken exactly `target_spacing` seconds. Falling a half-life behind
schedule doubles the target; running a half-life ahead halves it.

Only the parent and the anchor are needed, so the result is independent of
how the chain got here. The exponentiation is done in 16-bit fixed point with
a cubic approximation of 2**x on [0, 1). Every step uses integer arithmetic
with the exact rounding of the reference implementation, because nodes must
agree on the resulting bits to the last bit.
"""

from __future__ import annotations

from dataclasses import dataclass

from typing_extensions import Final

from ecash_spec.exceptions import ConfigurationError
from ecash_spec.subspecs.pow.target import TWO_POW_256, bits_to_target, encode_compact

from .helpers import ChainContext

RADIX_BITS: Final = 16
"""Fixed-point precision of the exponent."""

_UINT64_MASK: Final = (1 << 64) - 1


@dataclass(frozen=True, slots=True)
class AbsolutelyScheduledExponentialRetarget:
    """Parameters of the ASERT schedule."""

    anchor_height: int
    """Height of the reference block."""

    anchor_bits: int
    """Bits of the reference block."""

    anchor_parent_timestamp: int
    """Timestamp of the reference block's parent."""

    target_spacing: int
    """Ideal seconds between blocks."""

    half_life: int
    """Schedule deviation, in seconds, that doubles or halves the target."""

    max_target: int
    """Proof-of-work limit."""


def _truncating_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero, as fixed-width signed division does."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def asert_target(
    anchor_target: int,
    time_diff: int,
    height_diff: int,
    target_spacing: int,
    half_life: int,
    max_target: int,
) -> int:
    """
    Compute the ASERT target for the block after a given parent.

    Args:
        anchor_target: Target of the reference block.
        time_diff: Parent timestamp minus the reference block's parent timestamp.
        height_diff: Parent height minus the reference block height. Never negative.
        target_spacing: Ideal seconds between blocks.
        half_life: Seconds of schedule deviation per doubling.
        max_target: Proof-of-work limit.

    Returns:
        The next target, in [1, max_target].
    """
    if height_diff < 0:
        raise ValueError(f"Parent is below the ASERT anchor (height diff {height_diff})")

    exponent = _truncating_div(
        (time_diff - target_spacing * (height_diff + 1)) << RADIX_BITS, half_life
    )

    # Split into an integer number of doublings and a fraction in [0, 1).
    # The arithmetic shift floors, so negative exponents get a positive fraction.
    shifts = exponent >> RADIX_BITS
    frac = exponent & ((1 << RADIX_BITS) - 1)

    # 2**frac ~= 1 + 0.695502049*frac + 0.2262698*frac**2 + 0.0782318*frac**3
    polynomial = (
        195766423245049 * frac + 971821376 * frac**2 + 5127 * frac**3 + (1 << 47)
    ) & _UINT64_MASK
    factor = (1 << RADIX_BITS) + (polynomial >> 48)

    next_target = anchor_target * factor
    shifts -= RADIX_BITS
    if shifts <= 0:
        next_target >>= -shifts
    else:
        next_target <<= shifts
        if next_target >= TWO_POW_256:
            return max_target

    if next_target == 0:
        return 1
    return min(next_target, max_target)


def asert_next_bits(
    algorithm: AbsolutelyScheduledExponentialRetarget, context: ChainContext
) -> int:
    """
    Bits required of the candidate under the ASERT schedule.

    Raises:
        ConfigurationError: If the candidate's parent lies below the anchor.
    """
    previous = context.previous()
    height_diff = int(previous.height) - algorithm.anchor_height
    if height_diff < 0:
        raise ConfigurationError(
            f"ASERT applied at height {context.height}, below its anchor at "
            f"height {algorithm.anchor_height}"
        )

    target = asert_target(
        bits_to_target(algorithm.anchor_bits),
        int(previous.timestamp) - algorithm.anchor_parent_timestamp,
        height_diff,
        algorithm.target_spacing,
        algorithm.half_life,
        algorithm.max_target,
    )
    return encode_compact(target)
