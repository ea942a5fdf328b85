"""Learned alias status state machine.

State Flow:
    UNCONFIRMED(count) → LEARNED(weight) → RETIRED → UNCONFIRMED

A (normalized query, correction) pair stays UNCONFIRMED until it has been
corrected promotion_threshold times. LEARNED aliases are reinforced by
repeated or accepted corrections and decay on contradicting feedback; once
the weight falls below RETIRE_WEIGHT they are RETIRED. A RETIRED pair that is
corrected again starts counting from scratch.
"""

from enum import Enum
from typing import List

INITIAL_WEIGHT = 0.85
REINFORCE_STEP = 0.05
MAX_WEIGHT = 0.99
DECAY_STEP = 0.05
RETIRE_WEIGHT = 0.5


class AliasStatus(str, Enum):
    """Learned alias status enumeration."""
    UNCONFIRMED = "UNCONFIRMED"
    LEARNED = "LEARNED"
    RETIRED = "RETIRED"


ALLOWED_TRANSITIONS = {
    AliasStatus.UNCONFIRMED: [AliasStatus.LEARNED],
    AliasStatus.LEARNED: [AliasStatus.RETIRED],
    AliasStatus.RETIRED: [AliasStatus.UNCONFIRMED],
}


class StateTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


def validate_transition(current_status: AliasStatus, new_status: AliasStatus) -> None:
    """Validate that a state transition is allowed.

    Args:
        current_status: Current alias status
        new_status: Target status to transition to

    Raises:
        StateTransitionError: If transition is not allowed
    """
    allowed = ALLOWED_TRANSITIONS.get(current_status, [])
    if new_status not in allowed:
        raise StateTransitionError(
            f"Invalid transition: {current_status.value} -> {new_status.value}. "
            f"Allowed transitions from {current_status.value}: "
            f"{[s.value for s in allowed]}"
        )


def can_transition(current_status: AliasStatus, new_status: AliasStatus) -> bool:
    """Check if a state transition is allowed without raising exception."""
    return new_status in ALLOWED_TRANSITIONS.get(current_status, [])


def get_allowed_transitions(status: AliasStatus) -> List[AliasStatus]:
    return ALLOWED_TRANSITIONS.get(status, [])


def reinforced_weight(weight: float) -> float:
    return min(MAX_WEIGHT, round(weight + REINFORCE_STEP, 4))


def decayed_weight(weight: float) -> float:
    """Weights are kept to 4 places so threshold comparisons stay exact."""
    return max(0.0, round(weight - DECAY_STEP, 4))


def should_retire(weight: float) -> bool:
    return weight < RETIRE_WEIGHT
