"""
Validator Set
=============

Top-level header validation. A header is accepted only if every member of
the set accepts it: the unconditional proof-of-work check and the
height-sensitive validator chain.

Validation is synchronous and pure. It reads ancestors through the context
and never writes, so any number of threads may validate against the same
store at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TypeAlias, assert_never

from ecash_spec.exceptions import ConfigurationError, ConsensusRejection, UnexpectedHeightError
from ecash_spec.subspecs import metrics
from ecash_spec.subspecs.containers import Header
from ecash_spec.subspecs.pow import ProofOfWorkCheck
from ecash_spec.subspecs.retarget import ChainContext

from .chain import ValidatorChain

logger = logging.getLogger(__name__)

Validator: TypeAlias = ProofOfWorkCheck | ValidatorChain
"""Any member of a validator set."""


@dataclass(frozen=True, slots=True)
class Verdict:
    """Outcome of checking one header, for callers that report status."""

    accepted: bool
    """Whether every validator accepted the header."""

    reason: ConsensusRejection | None = None
    """Why the header was rejected. None when accepted."""


@dataclass(frozen=True, slots=True)
class ValidatorSet:
    """Immutable composition of the validators a header must pass."""

    validators: tuple[Validator, ...]
    """Members in evaluation order. Cheap checks first."""

    def __post_init__(self) -> None:
        if not self.validators:
            raise ConfigurationError("Validator set is empty")

    @property
    def chain(self) -> ValidatorChain | None:
        """The retarget validator chain of this set, if it has one."""
        for validator in self.validators:
            if isinstance(validator, ValidatorChain):
                return validator
        return None

    def history_depth_at(self, height: int) -> int:
        """Ancestors needed below `height` to validate every header from `height` on."""
        chain = self.chain
        return 1 if chain is None else chain.history_depth_at(height)

    def validate(self, header: Header, context: ChainContext) -> None:
        """
        Run every validator against `header`.

        Raises:
            ConsensusRejection: If the header breaks a consensus rule.
            ConfigurationError: If the network parameters do not fit the chain.
        """
        # Fork selection and ASERT both read the declared height.
        parent = context.headers.get_header(header.previous_hash)
        if parent is not None and int(header.height) != int(parent.height) + 1:
            expected = int(parent.height) + 1
            raise UnexpectedHeightError(height=int(header.height), expected=expected)

        for validator in self.validators:
            match validator:
                case ProofOfWorkCheck():
                    validator.validate(header)
                case ValidatorChain():
                    validator.validate(header, context)
                case _:
                    assert_never(validator)

    def check(self, header: Header, context: ChainContext) -> Verdict:
        """
        Validate `header` and report the outcome instead of raising.

        Consensus rejections are routine and become a rejected verdict.
        Configuration errors still propagate: they must stop sync.
        """
        try:
            with metrics.header_validation_time.time():
                self.validate(header, context)
        except ConsensusRejection as rejection:
            metrics.headers_rejected.labels(reason=type(rejection).__name__).inc()
            logger.warning("Rejected header at height %s: %s", rejection.height, rejection.message)
            return Verdict(accepted=False, reason=rejection)
        except ConfigurationError as error:
            logger.error(
                "Cannot validate header at height %s: %s", int(header.height), error.message
            )
            raise

        metrics.headers_validated.inc()
        logger.debug("Accepted header %r", header)
        return Verdict(accepted=True)
