"""
Workspace Profile Repository

Holds per-user default context values used when resolving a new decision.
"""
from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from ..models.db_models import WorkspaceProfileDB
from ..models.decision import WorkspaceDefaults


class WorkspaceProfileRepository:
    """Store for workspace profiles, one per user."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_user_id(self, user_id: str) -> Optional[WorkspaceProfileDB]:
        return (
            self.db.query(WorkspaceProfileDB)
            .filter(WorkspaceProfileDB.user_id == user_id)
            .first()
        )

    def get_defaults(self, user_id: str) -> Optional[WorkspaceDefaults]:
        profile = self.get_by_user_id(user_id)
        if profile is None or profile.defaults is None:
            return None
        return WorkspaceDefaults.from_dict(profile.defaults)

    def upsert_defaults(self, user_id: str, defaults: WorkspaceDefaults) -> WorkspaceProfileDB:
        now = datetime.utcnow()
        profile = self.get_by_user_id(user_id)
        if profile is None:
            profile = WorkspaceProfileDB(id=str(uuid4()), user_id=user_id, created_at=now)
            self.db.add(profile)
        profile.defaults = defaults.to_dict()
        profile.updated_at = now
        self.db.flush()
        return profile
