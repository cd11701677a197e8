"""
Measurable Outcome Repository

One MeasurableOutcome per (decision, user). Upsert replaces the tracked
scenario, status, horizon and KPIs but keeps the row identity.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from ..models.db_models import MeasurableOutcomeDB


class OutcomeRepository:
    """Store for MeasurableOutcome documents keyed by decision."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_verdict_id(self, verdict_id: str, user_id: str) -> Optional[MeasurableOutcomeDB]:
        return (
            self.db.query(MeasurableOutcomeDB)
            .filter(
                MeasurableOutcomeDB.verdict_id == verdict_id,
                MeasurableOutcomeDB.user_id == user_id,
            )
            .first()
        )

    def upsert(
        self,
        verdict_id: str,
        user_id: str,
        chosen_scenario_id: str,
        status: str,
        horizon_days: int,
        kpis: List[Dict[str, Any]],
    ) -> MeasurableOutcomeDB:
        now = datetime.utcnow()
        outcome = self.get_by_verdict_id(verdict_id, user_id)
        if outcome is None:
            outcome = MeasurableOutcomeDB(
                id=str(uuid4()),
                user_id=user_id,
                verdict_id=verdict_id,
                created_at=now,
            )
            self.db.add(outcome)

        outcome.chosen_scenario_id = chosen_scenario_id
        outcome.status = status
        outcome.horizon_days = horizon_days
        outcome.kpis = list(kpis)
        outcome.updated_at = now
        self.db.flush()
        return outcome

    def update(self, outcome: MeasurableOutcomeDB) -> MeasurableOutcomeDB:
        outcome.updated_at = datetime.utcnow()
        self.db.flush()
        return outcome
