"""
Tests for the decision status state machine.
"""
import itertools
from datetime import datetime

import pytest

from app.models.db_models import DecisionStatus
from app.services.decisions.errors import InvalidTransitionError, ValidationError
from app.services.decisions.state_machine import (
    CREATED_REASON,
    STATE_CONFIG,
    DecisionStateMachine,
    parse_status,
)


ALLOWED = {
    ("pending", "approved"), ("pending", "rejected"), ("pending", "deferred"),
    ("approved", "completed"), ("approved", "pending"),
    ("rejected", "pending"),
    ("deferred", "pending"), ("deferred", "approved"), ("deferred", "rejected"),
}

ALL_PAIRS = list(itertools.product([s.value for s in DecisionStatus], repeat=2))


class TestStateMachine:

    def setup_method(self):
        self.machine = DecisionStateMachine()

    @pytest.mark.parametrize("current,target", sorted(ALLOWED))
    def test_allowed_transitions(self, current, target):
        now = datetime(2026, 1, 1)
        event = self.machine.transition(current, target, "because", now=now)
        assert event.status == target
        assert event.reason == "because"
        assert event.created_at == now

    @pytest.mark.parametrize("current,target", [p for p in ALL_PAIRS if p not in ALLOWED])
    def test_rejected_transitions(self, current, target):
        with pytest.raises(InvalidTransitionError) as exc:
            self.machine.transition(current, target, "")
        assert exc.value.from_status == current
        assert exc.value.to_status == target
        assert f"from {current} to {target}" in str(exc.value)

    def test_unknown_target_is_invalid_transition(self):
        with pytest.raises(InvalidTransitionError):
            self.machine.transition("pending", "archived", "")

    def test_completed_is_terminal(self):
        assert self.machine.is_terminal_state(DecisionStatus.COMPLETED)
        assert not self.machine.is_terminal_state(DecisionStatus.PENDING)

    def test_every_status_configured(self):
        assert set(STATE_CONFIG) == set(DecisionStatus)

    def test_can_transition_reason(self):
        allowed, reason = self.machine.can_transition(DecisionStatus.REJECTED, DecisionStatus.APPROVED)
        assert allowed is False
        assert "rejected" in reason

    def test_initial_event(self):
        event = self.machine.initial_event()
        assert event.status == "pending"
        assert event.reason == CREATED_REASON

    def test_parse_status_rejects_unknown(self):
        with pytest.raises(ValidationError):
            parse_status("archived")
