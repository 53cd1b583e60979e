"""
Fork Gates
==========

A fork gate answers one question for a candidate header: is this fork active
on the chain the candidate extends?

Height gates only compare heights. Anchored gates also pin the hash of the
block at the activation height, so a chain that shares the height but not the
history (the other side of a split) never activates the fork.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from ecash_spec.exceptions import MissingAncestorError
from ecash_spec.subspecs.retarget import ChainContext, RetargetAlgorithm
from ecash_spec.types import Bytes32


class GateStatus(Enum):
    """Outcome of evaluating a fork gate against a candidate."""

    INACTIVE = auto()
    """The candidate is below the activation height."""

    ACTIVE = auto()
    """The fork applies to the candidate."""

    ANCHOR_MISMATCH = auto()
    """
    The candidate is at or above the activation height, but its history holds
    a different block at that height than the anchor requires.
    """


@dataclass(frozen=True, slots=True)
class ForkGate:
    """A fork point paired with the retarget algorithm it activates."""

    name: str
    """Upgrade name, for logs and errors."""

    activation_height: int
    """First height validated with `algorithm`."""

    algorithm: RetargetAlgorithm
    """Algorithm that applies while this gate is the most recent active one."""

    anchor_hash: Bytes32 | None = None
    """Required hash of the block at `activation_height`, if any."""

    def status(self, context: ChainContext) -> GateStatus:
        """
        Evaluate the gate for the candidate in `context`.

        When the anchor height is below the locally held history, the trusted
        checkpoint the history starts from vouches for the anchor.

        Raises:
            MissingAncestorError: If the anchor height lies inside the locally
                held history but the ancestor cannot be found.
        """
        if context.height < self.activation_height:
            return GateStatus.INACTIVE
        if self.anchor_hash is None:
            return GateStatus.ACTIVE

        ancestor = context.ancestor_at_height(self.activation_height)
        if ancestor is None:
            if context.is_below_floor(self.activation_height):
                return GateStatus.ACTIVE
            raise MissingAncestorError(
                f"Fork '{self.name}' needs the block at height {self.activation_height} "
                f"to check its anchor",
                height=context.height,
            )

        if ancestor.hash != self.anchor_hash:
            return GateStatus.ANCHOR_MISMATCH
        return GateStatus.ACTIVE

    def activates(self, context: ChainContext) -> bool:
        """Whether the fork applies to the candidate in `context`."""
        return self.status(context) is GateStatus.ACTIVE
