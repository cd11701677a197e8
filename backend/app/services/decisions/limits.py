"""
Decision Limits

Monthly decision quota per plan.

Fail-open policy: when counting the user's decisions fails, the check
answers "allowed" if fail_open_on_count_error is set. A storage hiccup
should not block a paying user from creating a decision.
"""
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import SQLAlchemyError

from ...repositories import DecisionRepository


LIMIT_CODE_DECISIONS = "PLAN_LIMIT_DECISIONS"

PLAN_FREE = "free"
PLAN_STARTER = "starter"
PLAN_GROWTH = "growth"
PLAN_ENTERPRISE = "enterprise"
PLAN_ADMIN = "admin"

# 0 = unlimited
DECISIONS_PER_MONTH: Dict[str, int] = {
    PLAN_FREE: 3,
    PLAN_STARTER: 3,
    PLAN_GROWTH: 10,
    PLAN_ENTERPRISE: 50,
    PLAN_ADMIN: 0,
}


def fail_open_from_env() -> bool:
    return os.getenv("DECISION_LIMIT_FAIL_OPEN", "true").lower() in ("1", "true", "yes")


def get_decision_limit(plan: Optional[str]) -> int:
    """Monthly decision limit for a plan; unknown or empty plans get free limits."""
    return DECISIONS_PER_MONTH.get(plan or PLAN_FREE, DECISIONS_PER_MONTH[PLAN_FREE])


def start_of_month(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now + relativedelta(day=1, hour=0, minute=0, second=0, microsecond=0)


@dataclass
class LimitCheckResult:
    allowed: bool
    error_code: Optional[str] = None
    reason: Optional[str] = None
    plan: Optional[str] = None
    limit: int = 0
    current: int = 0


class DecisionLimits:
    """Checks whether a user may create another decision this month."""

    def __init__(
        self,
        decision_repo: DecisionRepository,
        fail_open_on_count_error: bool = True,
        logger: Optional[logging.Logger] = None,
    ):
        self.decision_repo = decision_repo
        self.fail_open_on_count_error = fail_open_on_count_error
        self.logger = logger or logging.getLogger(__name__)

    def can_create_decision(self, user_id: str, plan: Optional[str], now: Optional[datetime] = None) -> LimitCheckResult:
        plan = plan or PLAN_FREE
        limit = get_decision_limit(plan)
        if limit <= 0:
            return LimitCheckResult(allowed=True, plan=plan)

        try:
            count = self.decision_repo.count_by_user_since(user_id, start_of_month(now))
        except SQLAlchemyError as e:
            if not self.fail_open_on_count_error:
                raise
            self.logger.warning(f"Decision count failed for user {user_id}, allowing (fail open): {e}")
            return LimitCheckResult(allowed=True, plan=plan, limit=limit)

        if count >= limit:
            return LimitCheckResult(
                allowed=False,
                error_code=LIMIT_CODE_DECISIONS,
                reason="You've reached your monthly decision limit. Upgrade to continue.",
                plan=plan,
                limit=limit,
                current=count,
            )

        return LimitCheckResult(allowed=True, plan=plan, limit=limit, current=count)
