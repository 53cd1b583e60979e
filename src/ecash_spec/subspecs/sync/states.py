"""Provider selection state machine."""

from __future__ import annotations

from enum import Enum, auto


class ProviderState(Enum):
    """
    Which data provider a failover provider currently routes requests to.

    State Machine Diagram
    ---------------------
    ::

        USING_PRIMARY --> USING_SECONDARY --> EXHAUSTED
              |                                   ^
              +-----------------------------------+

    Transitions
    -----------
    USING_PRIMARY -> USING_SECONDARY
        - Triggered when: the primary cannot serve the requested range, or
          failed irrecoverably, and a secondary is configured
        - Action: persist the cutover height, reissue the request

    USING_PRIMARY -> EXHAUSTED
        - Triggered when: the primary fails irrecoverably with no secondary

    USING_SECONDARY -> EXHAUSTED
        - Triggered when: the secondary fails irrecoverably

    There is no way back. A restart resumes on the secondary when the cursor
    records a cutover.
    """

    USING_PRIMARY = auto()
    """Requests go to the fast, limited-history provider."""

    USING_SECONDARY = auto()
    """Requests go to the complete-history provider."""

    EXHAUSTED = auto()
    """Every provider failed. Terminal."""

    def can_transition_to(self, target: "ProviderState") -> bool:
        """
        Check if transition to target state is valid.

        Args:
            target: The proposed target state.

        Returns:
            True if the transition is allowed by the state machine rules.
        """
        return target in _VALID_TRANSITIONS.get(self, set())


_VALID_TRANSITIONS: dict[ProviderState, set[ProviderState]] = {
    ProviderState.USING_PRIMARY: {ProviderState.USING_SECONDARY, ProviderState.EXHAUSTED},
    ProviderState.USING_SECONDARY: {ProviderState.EXHAUSTED},
    ProviderState.EXHAUSTED: set(),
}
"""Valid state transitions for the provider state machine."""
