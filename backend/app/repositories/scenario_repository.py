"""
Scenario Repository

Read access to the scenario sets generated for a decision. Generation itself
happens outside this backend; create() stores what the generator produced.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from ..models.db_models import ScenarioSetDB


class ScenarioRepository:
    """Store for ScenarioSet documents, one active set per decision."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_decision_id(self, decision_id: str, user_id: str) -> Optional[ScenarioSetDB]:
        return (
            self.db.query(ScenarioSetDB)
            .filter(
                ScenarioSetDB.decision_id == decision_id,
                ScenarioSetDB.user_id == user_id,
                ScenarioSetDB.is_deleted.is_(False),
            )
            .order_by(ScenarioSetDB.version.desc())
            .first()
        )

    def create(
        self,
        decision_id: str,
        user_id: str,
        scenarios: List[Dict[str, Any]],
        model_meta: Optional[Dict[str, Any]] = None,
    ) -> ScenarioSetDB:
        previous = self.get_by_decision_id(decision_id, user_id)
        now = datetime.utcnow()
        scenario_set = ScenarioSetDB(
            id=str(uuid4()),
            user_id=user_id,
            decision_id=decision_id,
            version=(previous.version + 1) if previous else 1,
            scenarios=list(scenarios),
            model_meta=model_meta,
            created_at=now,
            updated_at=now,
        )
        self.db.add(scenario_set)
        self.db.flush()
        return scenario_set
