"""
Pricing Decision Services

Decision lifecycle, scenario application and scenario comparison:
- DecisionService: versioned context/verdict, status machine, inline outcomes
- OutcomeService: chosen scenario -> MeasurableOutcome with seeded KPIs
- ScenarioDeltaEngine: cached candidate-vs-baseline scenario deltas
- DecisionLimits: monthly plan quota (explicit fail-open flag)
"""

from .errors import (
    DecisionServiceError, ValidationError, NotFoundError,
    InvalidTransitionError, InferenceError, LimitExceededError,
)
from .state_machine import DecisionStateMachine
from .verdict_generator import VerdictGenerator
from .limits import DecisionLimits, LimitCheckResult
from .outcome_capability import OutcomeRecorder
from .decision_service import DecisionService, DecisionListResult
from .outcome_service import OutcomeService
from .delta_engine import ScenarioDeltaEngine

__all__ = [
    'DecisionServiceError',
    'ValidationError',
    'NotFoundError',
    'InvalidTransitionError',
    'InferenceError',
    'LimitExceededError',
    'DecisionStateMachine',
    'VerdictGenerator',
    'DecisionLimits',
    'LimitCheckResult',
    'OutcomeRecorder',
    'DecisionService',
    'DecisionListResult',
    'OutcomeService',
    'ScenarioDeltaEngine',
]
