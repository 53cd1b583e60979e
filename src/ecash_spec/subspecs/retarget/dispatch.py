"""
Dispatch over the closed set of retarget algorithms.

The four algorithms share no base class. Each is a frozen parameter record
paired with a pure function, and this module is the only place that knows
the full set.
"""

from __future__ import annotations

from typing import TypeAlias, assert_never

from .asert import AbsolutelyScheduledExponentialRetarget, asert_next_bits
from .daa import DifficultyAdjustmentAlgorithm, daa_next_bits
from .eda import EmergencyDifficultyAdjustment, eda_next_bits
from .helpers import MEDIAN_TIME_SPAN, ChainContext
from .legacy import LegacyPeriodic, legacy_next_bits

RetargetAlgorithm: TypeAlias = (
    LegacyPeriodic
    | EmergencyDifficultyAdjustment
    | DifficultyAdjustmentAlgorithm
    | AbsolutelyScheduledExponentialRetarget
)
"""Any of the four retarget algorithms."""

RETARGET_ALGORITHM_TYPES: tuple[type, ...] = (
    LegacyPeriodic,
    EmergencyDifficultyAdjustment,
    DifficultyAdjustmentAlgorithm,
    AbsolutelyScheduledExponentialRetarget,
)
"""Runtime counterpart of `RetargetAlgorithm`, for isinstance checks."""


def next_bits(algorithm: RetargetAlgorithm, context: ChainContext) -> int:
    """Compact bits the candidate in `context` must declare under `algorithm`."""
    match algorithm:
        case LegacyPeriodic():
            return legacy_next_bits(algorithm, context)
        case EmergencyDifficultyAdjustment():
            return eda_next_bits(algorithm, context)
        case DifficultyAdjustmentAlgorithm():
            return daa_next_bits(algorithm, context)
        case AbsolutelyScheduledExponentialRetarget():
            return asert_next_bits(algorithm, context)
        case _:
            assert_never(algorithm)


def history_depth(algorithm: RetargetAlgorithm) -> int:
    """
    Number of ancestors `algorithm` reads behind a candidate.

    Sync starting from a checkpoint downloads this many headers below it so
    the first validated header has everything its algorithm needs.
    """
    match algorithm:
        case LegacyPeriodic():
            return algorithm.retarget_interval
        case EmergencyDifficultyAdjustment():
            mtp_depth = 1 + algorithm.reference_depth + MEDIAN_TIME_SPAN - 1
            return max(algorithm.legacy.retarget_interval, mtp_depth)
        case DifficultyAdjustmentAlgorithm():
            # Window start plus the two parents of its median-of-three.
            return 1 + algorithm.window + 2
        case AbsolutelyScheduledExponentialRetarget():
            return 1
        case _:
            assert_never(algorithm)
