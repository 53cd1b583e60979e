"""
Difficulty Adjustment Algorithm (cw-144)
========================================

A per-block retarget over a moving window of 144 blocks, replacing both the
periodic rule and the emergency valve.

The target is derived from the work done in the window rather than from a
previous target::

    work     = chain work between the window endpoints
    timespan = time between the window endpoints, clamped to [72, 288] blocks
    target   = 2**256 / (work * spacing / timespan) - 1

Both endpoints are picked as the median of three consecutive headers, which
blunts single-block timestamp manipulation.
"""

from __future__ import annotations

from dataclasses import dataclass

from typing_extensions import Final

from ecash_spec.exceptions import MissingAncestorError
from ecash_spec.subspecs.containers import Header
from ecash_spec.subspecs.pow.target import TWO_POW_256, block_proof, encode_compact

from .helpers import ChainContext, HeaderLookup

MIN_TIMESPAN_BLOCKS: Final = 72
"""Lower clamp of the measured timespan, in block intervals."""

MAX_TIMESPAN_BLOCKS: Final = 288
"""Upper clamp of the measured timespan, in block intervals."""


@dataclass(frozen=True, slots=True)
class DifficultyAdjustmentAlgorithm:
    """Parameters of the moving-window retarget."""

    target_spacing: int
    """Ideal seconds between blocks."""

    max_target: int
    """Proof-of-work limit."""

    window: int = 144
    """Blocks between the two window endpoints."""


def suitable_header(header: Header, headers: HeaderLookup) -> Header:
    """
    Return the median-timestamp header among `header` and its two parents.

    The three-element sorting network below is consensus critical: on equal
    timestamps it decides which header, and therefore whose chain work, is used.

    Raises:
        MissingAncestorError: If either parent is unavailable.
    """
    parent = headers.get_header(header.previous_hash)
    grandparent = None if parent is None else headers.get_header(parent.previous_hash)
    if parent is None or grandparent is None:
        raise MissingAncestorError(
            f"Median-of-three at height {int(header.height)} needs its two parents",
            height=int(header.height),
        )

    blocks = [grandparent, parent, header]
    if blocks[0].timestamp > blocks[2].timestamp:
        blocks[0], blocks[2] = blocks[2], blocks[0]
    if blocks[0].timestamp > blocks[1].timestamp:
        blocks[0], blocks[1] = blocks[1], blocks[0]
    if blocks[1].timestamp > blocks[2].timestamp:
        blocks[1], blocks[2] = blocks[2], blocks[1]
    return blocks[1]


def work_between(first: Header, last: Header, headers: HeaderLookup) -> int:
    """
    Chain work added by the headers above `first` up to and including `last`.

    Raises:
        MissingAncestorError: If the walk from `last` cannot reach `first`.
    """
    work = 0
    cursor = last
    while int(cursor.height) > int(first.height):
        work += block_proof(int(cursor.bits))
        parent = headers.get_header(cursor.previous_hash)
        if parent is None:
            raise MissingAncestorError(
                f"Chain work walk broke below height {int(cursor.height)}",
                height=int(last.height),
            )
        cursor = parent
    return work


def daa_next_bits(algorithm: DifficultyAdjustmentAlgorithm, context: ChainContext) -> int:
    """Bits required of the candidate under the moving-window rule."""
    previous = context.previous()
    window_start = context.require_ancestor(1 + algorithm.window)

    last = suitable_header(previous, context.headers)
    first = suitable_header(window_start, context.headers)

    work = work_between(first, last, context.headers) * algorithm.target_spacing

    timespan = int(last.timestamp) - int(first.timestamp)
    timespan = min(timespan, MAX_TIMESPAN_BLOCKS * algorithm.target_spacing)
    timespan = max(timespan, MIN_TIMESPAN_BLOCKS * algorithm.target_spacing)
    work //= timespan

    # In 256-bit arithmetic -work is 2**256 - work.
    target = (TWO_POW_256 - work) // work
    return encode_compact(min(target, algorithm.max_target))
