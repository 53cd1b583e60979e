"""
Header validation: fork gates, the validator chain and the validator set.

The retarget algorithms live in `ecash_spec.subspecs.retarget`. This package
decides which of them applies to a header and combines the result with the
proof-of-work check.
"""

from .builder import (
    build_algorithm,
    build_validator_chain,
    build_validator_set,
    validator_set_for,
)
from .chain import AnchorMismatch, Selection, ValidatorChain
from .fork_gate import ForkGate, GateStatus
from .validator_set import Validator, ValidatorSet, Verdict

__all__ = [
    "AnchorMismatch",
    "ForkGate",
    "GateStatus",
    "Selection",
    "Validator",
    "ValidatorChain",
    "ValidatorSet",
    "Verdict",
    "build_algorithm",
    "build_validator_chain",
    "build_validator_set",
    "validator_set_for",
]
