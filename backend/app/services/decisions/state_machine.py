"""
Decision Status State Machine

Deterministic transitions for a pricing decision's status.
completed is terminal. Every successful transition appends exactly one
status event; a rejected transition leaves the decision untouched.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ...models.db_models import DecisionStatus
from ...models.decision import StatusEvent
from .errors import InvalidTransitionError, ValidationError


# =============================================================================
# STATE CONFIGURATION
# =============================================================================

STATE_CONFIG: Dict[DecisionStatus, Dict[str, Any]] = {
    DecisionStatus.PENDING: {
        "description": "Verdict produced, awaiting a call",
        "allowed_transitions": [
            DecisionStatus.APPROVED,
            DecisionStatus.REJECTED,
            DecisionStatus.DEFERRED,
        ],
    },
    DecisionStatus.APPROVED: {
        "description": "Pricing change approved for rollout",
        "allowed_transitions": [
            DecisionStatus.COMPLETED,
            DecisionStatus.PENDING,
        ],
    },
    DecisionStatus.REJECTED: {
        "description": "Pricing change rejected",
        "allowed_transitions": [DecisionStatus.PENDING],
    },
    DecisionStatus.DEFERRED: {
        "description": "Call postponed",
        "allowed_transitions": [
            DecisionStatus.PENDING,
            DecisionStatus.APPROVED,
            DecisionStatus.REJECTED,
        ],
    },
    DecisionStatus.COMPLETED: {
        "description": "Change shipped and closed out",
        "allowed_transitions": [],  # Terminal state
    },
}

CREATED_REASON = "Decision created"


def parse_status(value: str) -> DecisionStatus:
    try:
        return DecisionStatus(value)
    except ValueError:
        valid = [s.value for s in DecisionStatus]
        raise ValidationError(f"invalid status: {value}. Must be one of: {valid}")


class DecisionStateMachine:
    """Validates status transitions and builds the matching status events."""

    def get_state_config(self, state: DecisionStatus) -> Dict[str, Any]:
        return STATE_CONFIG.get(state, {})

    def get_next_states(self, state: DecisionStatus) -> List[DecisionStatus]:
        return list(self.get_state_config(state).get("allowed_transitions", []))

    def is_terminal_state(self, state: DecisionStatus) -> bool:
        return len(self.get_next_states(state)) == 0

    def can_transition(self, from_state: DecisionStatus, to_state: DecisionStatus) -> Tuple[bool, str]:
        """Returns (allowed, reason)."""
        if to_state in self.get_next_states(from_state):
            return True, "Transition allowed"
        return False, f"Cannot transition from {from_state.value} to {to_state.value}"

    def transition(
        self,
        current: str,
        target: str,
        reason: str,
        now: Optional[datetime] = None,
    ) -> StatusEvent:
        """
        Validate current -> target and return the status event to append.

        Raises InvalidTransitionError for any pair outside STATE_CONFIG,
        including an unknown target status.
        """
        from_state = parse_status(current)
        try:
            to_state = DecisionStatus(target)
        except ValueError:
            raise InvalidTransitionError(from_state.value, target)

        allowed, _ = self.can_transition(from_state, to_state)
        if not allowed:
            raise InvalidTransitionError(from_state.value, to_state.value)

        return StatusEvent(
            status=to_state.value,
            reason=reason,
            created_at=now or datetime.utcnow(),
        )

    def initial_event(self, now: Optional[datetime] = None) -> StatusEvent:
        return StatusEvent(
            status=DecisionStatus.PENDING.value,
            reason=CREATED_REASON,
            created_at=now or datetime.utcnow(),
        )
