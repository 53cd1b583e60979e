"""
Compact Target Encoding
=======================

Headers declare their target in 32 bits using a base-256 floating point
format ("nBits")::

    bits = EE MM MM MM
           |  +------- 23-bit mantissa, plus a sign bit at 0x00800000
           +---------- exponent: length of the number in bytes

    target = mantissa * 256 ** (exponent - 3)

The encoding is consensus critical. A header is only valid if its bits are
byte-for-byte what the retarget algorithm produced, so `encode_compact` must
round exactly the way every other implementation does: by truncation, never
emitting a mantissa with the sign bit set.
"""

from __future__ import annotations

from typing import NamedTuple

from typing_extensions import Final

TWO_POW_256: Final = 1 << 256
"""Exclusive upper bound of a 256-bit target."""


class DecodedTarget(NamedTuple):
    """Result of decoding compact bits, with the flags consensus code must check."""

    target: int
    """Decoded magnitude. Meaningless when `negative` or `overflow` is set."""

    negative: bool
    """The sign bit was set on a non-zero mantissa."""

    overflow: bool
    """The value does not fit in 256 bits."""


def decode_compact(bits: int) -> DecodedTarget:
    """
    Decode compact bits into a target, reporting sign and overflow.

    Args:
        bits: 32-bit compact encoding.

    Returns:
        The decoded target and its validity flags.
    """
    size = bits >> 24
    word = bits & 0x007FFFFF
    if size <= 3:
        # Small sizes shift the mantissa itself; the flags below see the shifted word.
        word >>= 8 * (3 - size)
        target = word
    else:
        target = word << (8 * (size - 3))

    negative = word != 0 and (bits & 0x00800000) != 0
    overflow = word != 0 and (
        size > 34 or (word > 0xFF and size > 33) or (word > 0xFFFF and size > 32)
    )
    return DecodedTarget(target=target, negative=negative, overflow=overflow)


def bits_to_target(bits: int) -> int:
    """
    Decode bits that are already known to be well formed.

    Retarget algorithms start from bits that passed proof-of-work validation
    on an earlier header, so the flags are not re-checked here.
    """
    return decode_compact(bits).target


def encode_compact(target: int) -> int:
    """
    Encode a non-negative target into compact bits.

    Low-order bytes beyond the 3-byte mantissa are truncated.

    Raises:
        ValueError: If `target` is negative.
    """
    if target < 0:
        raise ValueError("Targets are unsigned")

    size = (target.bit_length() + 7) // 8
    if size <= 3:
        compact = target << (8 * (3 - size))
    else:
        compact = target >> (8 * (size - 3))

    # The 0x00800000 bit is the sign; shift the mantissa down a byte instead.
    if compact & 0x00800000:
        compact >>= 8
        size += 1

    return compact | (size << 24)


def block_proof(bits: int) -> int:
    """
    Expected number of hashes needed to find a block at the given bits.

    Equal to 2**256 / (target + 1), computed without 257-bit intermediates the
    same way every node computes chain work. Malformed bits carry no work.
    """
    decoded = decode_compact(bits)
    if decoded.negative or decoded.overflow or decoded.target == 0:
        return 0
    target = decoded.target
    return (~target % TWO_POW_256) // (target + 1) + 1
