"""
Shared outcome capability.

Two outcome mechanisms exist side by side:
- inline OutcomeV2 records on the decision (DecisionService)
- the MeasurableOutcome aggregate seeded from a chosen scenario (OutcomeService)

Their stored shapes and correction rules differ, so each keeps its own
implementation of this interface.
"""
from abc import ABC, abstractmethod
from typing import Any, List


class OutcomeRecorder(ABC):

    @abstractmethod
    def record_outcome(self, decision_id: str, user_id: str, payload: Any) -> Any:
        """Record a measurement against a decision."""

    @abstractmethod
    def list_effective_outcomes(self, decision_id: str, user_id: str) -> List[Any]:
        """Measurements currently in force for a decision."""
