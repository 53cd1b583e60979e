"""
Exception hierarchy for header validation and history sync.

The hierarchy follows how callers must react, not where the error is raised:

- ConfigurationError: fatal. Network parameters do not fit the chain being
  validated. Sync must stop; nothing is retried.
- ConsensusRejection: routine. A header (and the branch it would extend) is
  discarded. Reported as status, never as a crash.
- ProviderError: a remote data source misbehaved. Range exhaustion triggers
  failover, transient failures are retried, irrecoverable failures surface.
- SyncStalledError: recoverable. The caller may retry the sync later.
- PersistenceError: progress could not be made durable.
"""

from __future__ import annotations


class EcashSpecError(Exception):
    """
    Base exception for all errors raised by this package.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------


class ConfigurationError(EcashSpecError):
    """Network parameters are inconsistent with the chain. Never retried."""


class UnsupportedNetworkError(ConfigurationError):
    """
    Raised when building validators or providers for a network with no parameters.

    Attributes:
        network: Name of the unsupported network.
    """

    def __init__(self, network: str) -> None:
        self.network = network
        super().__init__(f"Network '{network}' is not supported")


class ForkAnchorMismatchError(ConfigurationError):
    """
    Raised when a hash-anchored fork point disagrees with the chain history.

    The candidate chain presents a different block at the fork height than the
    one the network parameters pin. Either the parameters belong to another
    chain, or the peer is serving a reorganized pre-fork history.

    Attributes:
        activation_height: Height of the anchored fork point.
        expected: Anchor hash from the network parameters (display hex).
        actual: Hash found in the candidate's history (display hex).
    """

    def __init__(self, activation_height: int, expected: str, actual: str) -> None:
        self.activation_height = activation_height
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Fork anchor mismatch at height {activation_height}: "
            f"expected {expected}, found {actual}"
        )


# -----------------------------------------------------------------------------
# Consensus
# -----------------------------------------------------------------------------


class ConsensusRejection(EcashSpecError):
    """
    A header violates consensus rules and must be discarded.

    Attributes:
        height: Height of the rejected header.
    """

    def __init__(self, message: str, *, height: int) -> None:
        self.height = height
        super().__init__(message)


class InvalidProofOfWorkError(ConsensusRejection):
    """The header hash exceeds its target, or the declared target is malformed."""


class UnexpectedBitsError(ConsensusRejection):
    """
    The declared bits differ from what the active retarget algorithm requires.

    Attributes:
        expected: Compact bits required by the retarget algorithm.
        actual: Compact bits declared by the header.
    """

    def __init__(self, *, height: int, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Header at height {height} declares bits {actual:#010x}, expected {expected:#010x}",
            height=height,
        )


class MissingAncestorError(ConsensusRejection):
    """The retarget algorithm needs an ancestor that the chain cannot supply."""


class UnexpectedHeightError(ConsensusRejection):
    """
    The declared height of a header is not one above its parent's.

    Attributes:
        expected: Height implied by the parent.
    """

    def __init__(self, *, height: int, expected: int) -> None:
        self.expected = expected
        super().__init__(
            f"Header declares height {height}, but its parent implies height {expected}",
            height=height,
        )


# -----------------------------------------------------------------------------
# Providers and sync
# -----------------------------------------------------------------------------


class ProviderError(EcashSpecError):
    """
    Base class for remote data provider failures.

    Attributes:
        provider: Identity of the provider that failed.
    """

    def __init__(self, message: str, *, provider: str) -> None:
        self.provider = provider
        super().__init__(f"[{provider}] {message}")


class ProviderRangeUnavailableError(ProviderError):
    """
    The provider does not retain history for the requested range.

    Not an error from the sync point of view: it triggers failover.

    Attributes:
        from_height: First height of the rejected request.
    """

    def __init__(self, message: str, *, provider: str, from_height: int) -> None:
        self.from_height = from_height
        super().__init__(message, provider=provider)


class ProviderTransientError(ProviderError):
    """Network hiccup or overloaded provider. Retried with backoff."""


class ProviderFailedError(ProviderError):
    """The provider failed in a way retrying cannot fix."""


class ProvidersExhaustedError(EcashSpecError):
    """Every configured provider has failed irrecoverably."""


class SyncStalledError(EcashSpecError):
    """
    Transient failures outlasted the retry budget.

    Recoverable: the caller may restart the sync later and resume from the cursor.

    Attributes:
        attempts: Number of attempts made before giving up.
    """

    def __init__(self, message: str, *, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(message)


class PersistenceError(EcashSpecError):
    """A sync cursor write failed; in-memory progress was not advanced."""


class CursorRegressionError(EcashSpecError):
    """
    Raised when a commit would move the sync cursor backwards or skip heights.

    Attributes:
        current_height: Height currently confirmed.
        proposed_height: Height the rejected commit tried to record.
    """

    def __init__(self, current_height: int, proposed_height: int, detail: str) -> None:
        self.current_height = current_height
        self.proposed_height = proposed_height
        super().__init__(
            f"Cannot move sync cursor from {current_height} to {proposed_height}: {detail}"
        )
