"""
Pricing Decisions - SQLAlchemy ORM Models
Document-shaped persistence: nested decision parts are stored as JSON columns
"""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Integer, DateTime, Text, JSON, Boolean, UniqueConstraint, Index
from ..database import Base


# =============================================================================
# ENUMS FOR DECISION LIFECYCLE
# =============================================================================

class DecisionStatus(str, Enum):
    """States in the decision status state machine."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DEFERRED = "deferred"
    COMPLETED = "completed"


class ContextSource(str, Enum):
    """Provenance of a resolved context value."""
    USER = "user"
    WORKSPACE = "workspace"
    INFERRED = "inferred"


class OutcomeType(str, Enum):
    """Recognized inline outcome types."""
    REVENUE = "revenue"
    CHURN = "churn"
    RETENTION = "retention"
    GROWTH = "growth"
    COST = "cost"
    OTHER = "other"


class EpisodeStatus(str, Enum):
    """Where a decision stands in the explore -> choose -> measure loop."""
    DRAFT = "draft"
    EXPLORED = "explored"
    PATH_CHOSEN = "path_chosen"
    OUTCOME_SAVED = "outcome_saved"


# =============================================================================
# ENUMS FOR SCENARIOS / MEASURABLE OUTCOMES
# =============================================================================

class ScenarioID(str, Enum):
    """Stable identifiers of the generated scenarios."""
    AGGRESSIVE = "aggressive"
    BALANCED = "balanced"
    CONSERVATIVE = "conservative"
    DO_NOTHING = "do_nothing"


class OutcomeStatus(str, Enum):
    """Status of a measurable outcome."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    ACHIEVED = "achieved"
    MISSED = "missed"


class KPIKey(str, Enum):
    """KPIs that can be tracked on a measurable outcome."""
    MRR = "MRR"
    ARR = "ARR"
    REVENUE = "Revenue"
    CONVERSION = "Conversion"
    CHURN = "Churn"
    ARPA = "ARPA"
    CAC = "CAC"
    ACTIVATION = "Activation"
    RETENTION = "Retention"
    NPS = "NPS"
    LTV = "LTV"


class KPIUnit(str, Enum):
    """Units of measurement for KPIs."""
    PERCENT = "%"
    PP = "pp"  # percentage points
    EUR = "€"
    USD = "$"
    COUNT = "count"
    DAYS = "days"
    MULTIPLIER = "x"


class KPIConfidence(str, Enum):
    """User confidence in a KPI measurement."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DeltaDirection(str, Enum):
    """Ordinal direction of a qualitative label between two scenarios."""
    UP = "up"
    DOWN = "down"
    SAME = "same"


# =============================================================================
# DECISION AGGREGATE
# =============================================================================

class DecisionDB(Base):
    """
    Versioned pricing decision - the aggregate root.

    context_versions / verdict_versions / status_events / outcomes are
    append-only JSON arrays. context_version and verdict_version always equal
    the length of their history and the version of its last element.
    """
    __tablename__ = "decisions"
    __table_args__ = (
        Index("ix_decisions_user_created", "user_id", "created_at"),
        Index("ix_decisions_user_status", "user_id", "status"),
    )

    id = Column(String(36), primary_key=True)  # UUID
    user_id = Column(String(36), nullable=False, index=True)

    # Target company
    company_name = Column(String(255), nullable=True)
    website_url = Column(String(2048), nullable=False)

    # Current verdict + history
    verdict = Column(JSON, nullable=False, default=dict)
    verdict_version = Column(Integer, nullable=False, default=1)
    verdict_versions = Column(JSON, nullable=False, default=list)

    # Current context + history
    context = Column(JSON, nullable=False, default=dict)
    context_version = Column(Integer, nullable=False, default=1)
    context_versions = Column(JSON, nullable=False, default=list)

    # Status machine
    status = Column(String(20), nullable=False, default=DecisionStatus.PENDING.value)
    status_events = Column(JSON, nullable=False, default=list)

    # Impact seeded from the verdict
    expected_impact = Column(JSON, nullable=True)

    # Inline outcome tracking (OutcomeV2)
    outcomes = Column(JSON, nullable=False, default=list)

    # How the current verdict was produced
    model_meta = Column(JSON, nullable=True)
    inference_artifacts = Column(JSON, nullable=True)
    inference_signals = Column(JSON, nullable=True)

    # Scenario application
    scenarios_id = Column(String(36), nullable=True)
    chosen_scenario_id = Column(String(32), nullable=True)
    chosen_scenario_at = Column(DateTime, nullable=True)

    # Measurable outcome link
    outcome_id = Column(String(36), nullable=True)
    episode_status = Column(String(20), default=EpisodeStatus.DRAFT.value)

    # Soft delete tombstone
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# =============================================================================
# SCENARIOS (generated externally, read here)
# =============================================================================

class ScenarioSetDB(Base):
    """
    Set of alternative scenarios generated for one decision.

    scenarios is a JSON array of items shaped like:
    {"scenario_id": "balanced", "title": "...", "metrics": {
        "revenue_impact_range": "+15-25%", "churn_impact_range": "-1-2%",
        "risk_label": "medium", "time_to_impact": "30-60 days",
        "execution_effort": "medium"}}
    """
    __tablename__ = "scenario_sets"

    id = Column(String(36), primary_key=True)  # UUID
    user_id = Column(String(36), nullable=False, index=True)
    decision_id = Column(String(36), nullable=False, index=True)
    version = Column(Integer, default=1)

    scenarios = Column(JSON, nullable=False, default=list)
    model_meta = Column(JSON, nullable=True)

    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# =============================================================================
# MEASURABLE OUTCOME (one per decision)
# =============================================================================

class MeasurableOutcomeDB(Base):
    """KPI-based outcome tied to a decision and its chosen scenario."""
    __tablename__ = "measurable_outcomes"
    __table_args__ = (
        UniqueConstraint("verdict_id", "user_id", name="uq_measurable_outcome_decision"),
    )

    id = Column(String(36), primary_key=True)  # UUID
    user_id = Column(String(36), nullable=False, index=True)
    verdict_id = Column(String(36), nullable=False, index=True)  # = decision id

    chosen_scenario_id = Column(String(32), nullable=False)
    status = Column(String(20), nullable=False, default=OutcomeStatus.PENDING.value)
    horizon_days = Column(Integer, nullable=False, default=90)

    kpis = Column(JSON, nullable=False, default=list)
    evidence_links = Column(JSON, nullable=True)

    summary = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# =============================================================================
# SCENARIO DELTA CACHE
# =============================================================================

class ScenarioDeltaDB(Base):
    """Cached comparison between two scenarios of a decision."""
    __tablename__ = "scenario_deltas"
    __table_args__ = (
        UniqueConstraint(
            "verdict_id", "baseline_scenario_id", "candidate_scenario_id",
            name="uq_scenario_delta_triplet",
        ),
    )

    id = Column(String(36), primary_key=True)  # UUID
    verdict_id = Column(String(36), nullable=False, index=True)
    baseline_scenario_id = Column(String(32), nullable=False)
    candidate_scenario_id = Column(String(32), nullable=False)

    deltas = Column(JSON, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)


# =============================================================================
# WORKSPACE PROFILE (context defaults)
# =============================================================================

class WorkspaceProfileDB(Base):
    """Per-user workspace configuration holding default decision context."""
    __tablename__ = "workspace_profiles"

    id = Column(String(36), primary_key=True)  # UUID
    user_id = Column(String(36), nullable=False, unique=True, index=True)
    company_name = Column(String(255), nullable=True)
    company_website = Column(String(2048), nullable=True)

    # {"company_stage": ..., "business_model": ..., "primary_kpi": ...,
    #  "market": {"type": ..., "segment": ...}}
    defaults = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
