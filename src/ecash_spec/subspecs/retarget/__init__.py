"""
Difficulty retarget algorithms.

Each algorithm answers one question: which compact bits must the next header
declare, given its ancestors? The chain switched algorithms at several hard
forks; choosing the right one for a height is the job of
`ecash_spec.subspecs.validation`.
"""

from .asert import AbsolutelyScheduledExponentialRetarget, asert_next_bits, asert_target
from .daa import DifficultyAdjustmentAlgorithm, daa_next_bits, suitable_header, work_between
from .dispatch import RETARGET_ALGORITHM_TYPES, RetargetAlgorithm, history_depth, next_bits
from .eda import EmergencyDifficultyAdjustment, eda_next_bits
from .helpers import MEDIAN_TIME_SPAN, ChainContext, HeaderLookup, median_time_past
from .legacy import LegacyPeriodic, legacy_next_bits, retarget_period

__all__ = [
    # Context
    "ChainContext",
    "HeaderLookup",
    "MEDIAN_TIME_SPAN",
    "median_time_past",
    # Algorithms
    "AbsolutelyScheduledExponentialRetarget",
    "DifficultyAdjustmentAlgorithm",
    "EmergencyDifficultyAdjustment",
    "LegacyPeriodic",
    "RetargetAlgorithm",
    "RETARGET_ALGORITHM_TYPES",
    # Functions
    "asert_next_bits",
    "asert_target",
    "daa_next_bits",
    "eda_next_bits",
    "history_depth",
    "legacy_next_bits",
    "next_bits",
    "retarget_period",
    "suitable_header",
    "work_between",
]
