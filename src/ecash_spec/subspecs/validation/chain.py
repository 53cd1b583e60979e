"""
Validator Chain
===============

Selects the retarget algorithm that was canonical at a candidate's height and
checks the candidate's bits against it.

Forks override each other. Once a later fork activates, every earlier fork is
irrelevant, so gates are evaluated newest first and the first active gate
wins. Below every fork the default algorithm applies.

Example (mainnet)::

    height < 478559           -> legacy periodic
    478559 <= height < 504032 -> emergency adjustment
    504032 <= height < 661648 -> DAA
    661648 <= height          -> ASERT
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ecash_spec.exceptions import (
    ConfigurationError,
    ForkAnchorMismatchError,
    UnexpectedBitsError,
)
from ecash_spec.subspecs.containers import Header
from ecash_spec.subspecs.retarget import (
    RETARGET_ALGORITHM_TYPES,
    ChainContext,
    RetargetAlgorithm,
    history_depth,
    next_bits,
)
from ecash_spec.types import Bytes32

from .fork_gate import ForkGate, GateStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AnchorMismatch:
    """A gate whose activation height was reached on a different history."""

    gate: ForkGate
    """The gate that refused to activate."""

    found: Bytes32
    """Hash the candidate's history holds at the gate's activation height."""


@dataclass(frozen=True, slots=True)
class Selection:
    """The algorithm chosen for one candidate, and how it was chosen."""

    algorithm: RetargetAlgorithm
    """Algorithm whose required bits the candidate must declare."""

    gate: ForkGate | None
    """Gate that selected the algorithm. None means the default applied."""

    mismatches: tuple[AnchorMismatch, ...] = ()
    """Anchored gates skipped on the way down because their anchor did not match."""


@dataclass(frozen=True, slots=True)
class ValidatorChain:
    """
    Immutable, ordered set of fork gates plus the pre-fork default algorithm.

    `gates` are stored oldest first, the order forks activated on the network.
    """

    gates: tuple[ForkGate, ...]
    """Fork gates in activation order."""

    default: RetargetAlgorithm | None
    """Algorithm applied below every fork point."""

    def __post_init__(self) -> None:
        """Reject chains that could leave a height without an algorithm."""
        if self.default is None:
            raise ConfigurationError("Validator chain has no default retarget algorithm")
        if not isinstance(self.default, RETARGET_ALGORITHM_TYPES):
            raise ConfigurationError(
                f"Unknown retarget algorithm {type(self.default).__name__}"
            )
        heights = [gate.activation_height for gate in self.gates]
        if heights != sorted(set(heights)):
            raise ConfigurationError(
                f"Fork gates must be in strictly increasing activation order: {heights}"
            )

    def select(self, context: ChainContext) -> Selection:
        """
        Pick the algorithm for the candidate in `context`.

        Gates are tried from the most recent fork to the oldest. A gate whose
        anchor does not match is recorded and skipped.
        """
        mismatches: list[AnchorMismatch] = []
        for gate in reversed(self.gates):
            status = gate.status(context)
            if status is GateStatus.ACTIVE:
                return Selection(gate.algorithm, gate, tuple(mismatches))
            if status is GateStatus.ANCHOR_MISMATCH:
                found = context.ancestor_at_height(gate.activation_height)
                assert found is not None
                mismatches.append(AnchorMismatch(gate, found.hash))

        assert self.default is not None
        return Selection(self.default, None, tuple(mismatches))

    def required_bits(self, context: ChainContext) -> int:
        """
        Compact bits the candidate in `context` must declare.

        Raises:
            ForkAnchorMismatchError: If the candidate's history disagrees with
                an anchored fork point. Falling through to an older algorithm
                would validate a chain this network does not follow.
        """
        selection = self.select(context)
        if selection.mismatches:
            mismatch = selection.mismatches[0]
            assert mismatch.gate.anchor_hash is not None
            logger.error(
                "Fork '%s' anchor mismatch for candidate at height %s",
                mismatch.gate.name,
                context.height,
            )
            raise ForkAnchorMismatchError(
                mismatch.gate.activation_height,
                mismatch.gate.anchor_hash.display_hex(),
                mismatch.found.display_hex(),
            )
        return next_bits(selection.algorithm, context)

    def validate(self, header: Header, context: ChainContext) -> None:
        """
        Check that `header` declares the bits its retarget algorithm requires.

        Raises:
            UnexpectedBitsError: If the declared bits differ.
        """
        expected = self.required_bits(context)
        if int(header.bits) != expected:
            raise UnexpectedBitsError(
                height=int(header.height), expected=expected, actual=int(header.bits)
            )

    def algorithm_at(self, height: int) -> RetargetAlgorithm:
        """
        Algorithm scheduled at `height`, judged by height alone.

        Anchors are not consulted. Used for planning, never for validation.
        """
        for gate in reversed(self.gates):
            if height >= gate.activation_height:
                return gate.algorithm
        assert self.default is not None
        return self.default

    def history_depth_at(self, height: int) -> int:
        """
        Ancestors needed below `height` to validate every header from `height` on.

        Takes the deepest requirement among the algorithm scheduled at
        `height` and every fork activating after it.
        """
        algorithms = [self.algorithm_at(height)] + [
            gate.algorithm for gate in self.gates if gate.activation_height > height
        ]
        return max(history_depth(algorithm) for algorithm in algorithms)
