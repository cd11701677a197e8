"""
Decision Service Errors

ValidationError        - bad input, never retried
NotFoundError          - missing or not owned by the requesting user
InvalidTransitionError - status state machine violation
InferenceError         - verdict-generation collaborator failure
LimitExceededError     - monthly plan limit reached
"""
from typing import Any, Optional


class DecisionServiceError(Exception):
    """Base class for decision lifecycle errors."""
    pass


class ValidationError(DecisionServiceError):
    """Raised when caller input is invalid."""
    pass


class NotFoundError(DecisionServiceError):
    """Raised when a decision, scenario or outcome does not exist for the user."""
    pass


class InvalidTransitionError(DecisionServiceError):
    """Raised when a status transition is not allowed."""

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"invalid status transition from {from_status} to {to_status}")


class InferenceError(DecisionServiceError):
    """Raised when verdict generation or context inference fails."""
    pass


class LimitExceededError(DecisionServiceError):
    """Raised when the user's plan does not allow another decision this month."""

    def __init__(self, result: Any, message: Optional[str] = None):
        self.result = result
        super().__init__(message or getattr(result, "reason", "limit exceeded"))
