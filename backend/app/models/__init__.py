"""Pricing Decisions - Data Models"""
from .db_models import (
    # Enums
    DecisionStatus, ContextSource, OutcomeType, EpisodeStatus,
    ScenarioID, OutcomeStatus, KPIKey, KPIUnit, KPIConfidence, DeltaDirection,
    # Tables
    DecisionDB, ScenarioSetDB, MeasurableOutcomeDB, ScenarioDeltaDB, WorkspaceProfileDB,
)
from .decision import (
    ContextField, MarketContext, DecisionContext, ContextInput, WorkspaceDefaults,
    InferredField, InferenceResult, ModelMeta,
    ContextVersion, VerdictVersion, StatusEvent,
    OutcomeV2, OutcomeInput,
)
from .outcome import (
    ScenarioMetrics, ScenarioItem, OutcomeKPI, EvidenceLink, OutcomeUpdate,
    DeltaRange, DeltaValues, ScenarioDeltaView,
)

__all__ = [
    "DecisionStatus", "ContextSource", "OutcomeType", "EpisodeStatus",
    "ScenarioID", "OutcomeStatus", "KPIKey", "KPIUnit", "KPIConfidence", "DeltaDirection",
    "DecisionDB", "ScenarioSetDB", "MeasurableOutcomeDB", "ScenarioDeltaDB", "WorkspaceProfileDB",
    "ContextField", "MarketContext", "DecisionContext", "ContextInput", "WorkspaceDefaults",
    "InferredField", "InferenceResult", "ModelMeta",
    "ContextVersion", "VerdictVersion", "StatusEvent",
    "OutcomeV2", "OutcomeInput",
    "ScenarioMetrics", "ScenarioItem", "OutcomeKPI", "EvidenceLink", "OutcomeUpdate",
    "DeltaRange", "DeltaValues", "ScenarioDeltaView",
]
