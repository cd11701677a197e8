"""
Shared fixtures: in-memory SQLite session, mock verdict generator,
scenario set seeding.
"""
import os
import sys
from unittest.mock import MagicMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Must be set before app.database builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.models import db_models  # noqa: F401
from app.models.decision import InferenceResult, InferredField, ModelMeta
from app.repositories import ScenarioRepository


USER_ID = "user-1"
OTHER_USER_ID = "user-2"


SAMPLE_VERDICT = {
    "headline": "Raise the Pro tier by 15%",
    "confidence_score": 0.8,
    "supporting_details": {
        "expected_revenue_impact": "+10-18%",
        "churn_outlook": "Minimal churn risk",
    },
}


SAMPLE_SCENARIOS = [
    {
        "scenario_id": "aggressive",
        "title": "Aggressive increase",
        "metrics": {
            "revenue_impact_range": "+15-30%",
            "churn_impact_range": "+2-4%",
            "risk_label": "high",
            "time_to_impact": "14–45 days",
            "execution_effort": "high",
        },
    },
    {
        "scenario_id": "balanced",
        "title": "Balanced increase",
        "metrics": {
            "revenue_impact_range": "+10-20%",
            "churn_impact_range": "+1-2%",
            "risk_label": "medium",
            "time_to_impact": "30-60 days",
            "execution_effort": "medium",
        },
    },
    {
        "scenario_id": "conservative",
        "title": "Conservative increase",
        "metrics": {
            "revenue_impact_range": "+5%",
            "churn_impact_range": "N/A",
            "risk_label": "low",
            "time_to_impact": "60 days",
            "execution_effort": "low",
        },
    },
    {
        "scenario_id": "do_nothing",
        "title": "Keep current pricing",
        "metrics": {
            "revenue_impact_range": "Stagnates",
            "churn_impact_range": "",
            "risk_label": "",
            "time_to_impact": "N/A",
            "execution_effort": "none",
        },
    },
]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def verdict_generator():
    """Generator mock returning a fixed verdict and a confident inference."""
    generator = MagicMock()
    generator.generate_verdict.return_value = (
        dict(SAMPLE_VERDICT),
        ModelMeta(model_name="test-model", prompt_version="v1", inference_duration_ms=120),
    )
    generator.infer_context_from_website.return_value = (
        InferenceResult(
            company_stage=InferredField("growth", 0.9, "pricing page lists enterprise tier"),
            business_model=InferredField("saas", 0.85, "monthly plans"),
            primary_kpi=InferredField("mrr_growth", 0.4, "weak signal"),
        ),
        {"pages_fetched": 3},
    )
    return generator


@pytest.fixture
def seed_scenarios(db):
    """Store a scenario set for a decision and commit it."""
    def _seed(decision_id, user_id=USER_ID, scenarios=None):
        scenario_set = ScenarioRepository(db).create(
            decision_id, user_id, scenarios if scenarios is not None else SAMPLE_SCENARIOS,
        )
        db.commit()
        return scenario_set
    return _seed
