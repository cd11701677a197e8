"""
Scenario Delta Repository

Cache of computed scenario comparisons keyed by
(decision, baseline scenario, candidate scenario).
"""
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from ..models.db_models import ScenarioDeltaDB


class ScenarioDeltaRepository:
    """Store for cached ScenarioDelta records."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, verdict_id: str, baseline_id: str, candidate_id: str) -> Optional[ScenarioDeltaDB]:
        return (
            self.db.query(ScenarioDeltaDB)
            .filter(
                ScenarioDeltaDB.verdict_id == verdict_id,
                ScenarioDeltaDB.baseline_scenario_id == baseline_id,
                ScenarioDeltaDB.candidate_scenario_id == candidate_id,
            )
            .first()
        )

    def upsert(
        self,
        verdict_id: str,
        baseline_id: str,
        candidate_id: str,
        deltas: Dict[str, Any],
    ) -> ScenarioDeltaDB:
        record = self.get(verdict_id, baseline_id, candidate_id)
        if record is None:
            record = ScenarioDeltaDB(
                id=str(uuid4()),
                verdict_id=verdict_id,
                baseline_scenario_id=baseline_id,
                candidate_scenario_id=candidate_id,
            )
            self.db.add(record)
        record.deltas = dict(deltas)
        record.created_at = datetime.utcnow()
        self.db.flush()
        return record
