"""
Decision Repository

Document-style access to the decisions table. Every read and write is
scoped by (decision_id, user_id) and skips soft-deleted rows.

History arrays are never edited: each updater rebuilds the JSON array as
old entries + the new entry and moves the version counter in the same flush.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..models.db_models import DecisionDB
from ..models.decision import ContextVersion, OutcomeV2, StatusEvent, VerdictVersion


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass
class DecisionListParams:
    """Filters and paging for listing a user's decisions."""
    status: Optional[str] = None
    segment: Optional[str] = None
    kpi: Optional[str] = None
    min_confidence: float = 0.0
    search: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def normalized(self) -> Tuple[int, int]:
        page = self.page if self.page >= 1 else 1
        page_size = self.page_size if self.page_size >= 1 else DEFAULT_PAGE_SIZE
        return page, min(page_size, MAX_PAGE_SIZE)


def _context_value(decision: DecisionDB, *path: str) -> Optional[str]:
    node: Any = decision.context or {}
    for key in path:
        node = (node or {}).get(key)
    return (node or {}).get("value") if isinstance(node, dict) else None


class DecisionRepository:
    """Store for the Decision aggregate."""

    def __init__(self, db: Session):
        self.db = db

    def _active(self):
        return self.db.query(DecisionDB).filter(DecisionDB.is_deleted.is_(False))

    # =========================================================================
    # CRUD
    # =========================================================================

    def create(self, decision: DecisionDB) -> DecisionDB:
        now = datetime.utcnow()
        decision.id = decision.id or str(uuid4())
        decision.created_at = now
        decision.updated_at = now
        self.db.add(decision)
        self.db.flush()
        return decision

    def get_by_id_and_user(self, decision_id: str, user_id: str) -> Optional[DecisionDB]:
        return (
            self._active()
            .filter(DecisionDB.id == decision_id, DecisionDB.user_id == user_id)
            .first()
        )

    def list(self, user_id: str, params: DecisionListParams) -> Tuple[List[DecisionDB], int]:
        """Return one page of decisions (newest first) and the total match count."""
        query = self._active().filter(DecisionDB.user_id == user_id)

        if params.status:
            query = query.filter(DecisionDB.status == params.status)
        if params.date_from:
            query = query.filter(DecisionDB.created_at >= params.date_from)
        if params.date_to:
            query = query.filter(DecisionDB.created_at <= params.date_to)
        if params.search:
            pattern = f"%{params.search}%"
            query = query.filter(or_(
                DecisionDB.company_name.ilike(pattern),
                DecisionDB.website_url.ilike(pattern),
            ))

        rows = query.order_by(DecisionDB.created_at.desc()).all()

        # JSON-path filters are applied in Python to stay dialect independent
        if params.segment:
            rows = [r for r in rows if _context_value(r, "market", "segment") == params.segment]
        if params.kpi:
            rows = [r for r in rows if _context_value(r, "primary_kpi") == params.kpi]
        if params.min_confidence > 0:
            rows = [
                r for r in rows
                if float((r.verdict or {}).get("confidence_score") or 0.0) >= params.min_confidence
            ]

        page, page_size = params.normalized()
        start = (page - 1) * page_size
        return rows[start:start + page_size], len(rows)

    def get_multiple_by_ids(self, user_id: str, decision_ids: List[str]) -> List[DecisionDB]:
        if not decision_ids:
            return []
        return (
            self._active()
            .filter(DecisionDB.user_id == user_id, DecisionDB.id.in_(decision_ids))
            .all()
        )

    def list_all_for_user(self, user_id: str) -> List[DecisionDB]:
        return self._active().filter(DecisionDB.user_id == user_id).all()

    def count_by_user_since(self, user_id: str, since: datetime) -> int:
        """Count decisions created by a user since a timestamp (deleted ones included)."""
        return (
            self.db.query(func.count(DecisionDB.id))
            .filter(DecisionDB.user_id == user_id, DecisionDB.created_at >= since)
            .scalar()
        ) or 0

    def soft_delete(self, decision_id: str, user_id: str) -> bool:
        decision = self.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            return False
        now = datetime.utcnow()
        decision.is_deleted = True
        decision.deleted_at = now
        decision.updated_at = now
        self.db.flush()
        return True

    # =========================================================================
    # FIELD-LEVEL UPDATERS
    # =========================================================================

    def update_context(
        self,
        decision_id: str,
        user_id: str,
        new_context: Dict[str, Any],
        version: ContextVersion,
    ) -> Optional[DecisionDB]:
        decision = self.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            return None
        decision.context = new_context
        decision.context_version = version.version
        decision.context_versions = list(decision.context_versions or []) + [version.to_dict()]
        decision.updated_at = datetime.utcnow()
        self.db.flush()
        return decision

    def update_verdict(
        self,
        decision_id: str,
        user_id: str,
        verdict: Dict[str, Any],
        version: VerdictVersion,
        model_meta: Dict[str, Any],
    ) -> Optional[DecisionDB]:
        decision = self.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            return None
        decision.verdict = verdict
        decision.verdict_version = version.version
        decision.verdict_versions = list(decision.verdict_versions or []) + [version.to_dict()]
        decision.model_meta = model_meta
        decision.updated_at = datetime.utcnow()
        self.db.flush()
        return decision

    def update_status(
        self,
        decision_id: str,
        user_id: str,
        status: str,
        event: StatusEvent,
    ) -> Optional[DecisionDB]:
        decision = self.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            return None
        decision.status = status
        decision.status_events = list(decision.status_events or []) + [event.to_dict()]
        decision.updated_at = datetime.utcnow()
        self.db.flush()
        return decision

    def add_outcome(self, decision_id: str, user_id: str, outcome: OutcomeV2) -> Optional[DecisionDB]:
        decision = self.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            return None
        decision.outcomes = list(decision.outcomes or []) + [outcome.to_dict()]
        decision.updated_at = datetime.utcnow()
        self.db.flush()
        return decision

    def set_chosen_scenario(self, decision_id: str, user_id: str, scenario_id: str, episode_status: str) -> bool:
        decision = self.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            return False
        now = datetime.utcnow()
        decision.chosen_scenario_id = scenario_id
        decision.chosen_scenario_at = now
        decision.episode_status = episode_status
        decision.updated_at = now
        self.db.flush()
        return True

    def link_outcome(self, decision_id: str, user_id: str, outcome_id: str) -> bool:
        decision = self.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            return False
        decision.outcome_id = outcome_id
        decision.updated_at = datetime.utcnow()
        self.db.flush()
        return True

    def update_episode_status(self, decision_id: str, user_id: str, episode_status: str) -> bool:
        decision = self.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            return False
        decision.episode_status = episode_status
        decision.updated_at = datetime.utcnow()
        self.db.flush()
        return True
