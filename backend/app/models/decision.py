"""
Pricing Decisions - Decision Document Models

Dataclasses for the nested parts of a decision document. The ORM row keeps
these as JSON; services convert with to_dict()/from_dict() at the edges.
Version records, status events and outcomes are immutable once written.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .db_models import ContextSource


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


# =============================================================================
# CONTEXT
# =============================================================================

@dataclass
class ContextField:
    """A single context value with provenance."""
    value: Optional[str] = None
    source: ContextSource = ContextSource.INFERRED
    confidence_score: Optional[float] = None
    inferred_signal: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"value": self.value, "source": self.source.value}
        if self.confidence_score is not None:
            data["confidence_score"] = self.confidence_score
        if self.inferred_signal is not None:
            data["inferred_signal"] = self.inferred_signal
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ContextField":
        if not data:
            return cls()
        return cls(
            value=data.get("value"),
            source=ContextSource(data.get("source", ContextSource.INFERRED.value)),
            confidence_score=data.get("confidence_score"),
            inferred_signal=data.get("inferred_signal"),
        )

    @classmethod
    def from_user(cls, value: str) -> "ContextField":
        return cls(value=value, source=ContextSource.USER)


@dataclass
class MarketContext:
    type: ContextField = field(default_factory=ContextField)
    segment: ContextField = field(default_factory=ContextField)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.to_dict(), "segment": self.segment.to_dict()}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MarketContext":
        data = data or {}
        return cls(
            type=ContextField.from_dict(data.get("type")),
            segment=ContextField.from_dict(data.get("segment")),
        )


@dataclass
class DecisionContext:
    """Resolved business context feeding verdict generation."""
    company_stage: ContextField = field(default_factory=ContextField)
    business_model: ContextField = field(default_factory=ContextField)
    primary_kpi: ContextField = field(default_factory=ContextField)
    market: MarketContext = field(default_factory=MarketContext)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "company_stage": self.company_stage.to_dict(),
            "business_model": self.business_model.to_dict(),
            "primary_kpi": self.primary_kpi.to_dict(),
            "market": self.market.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DecisionContext":
        data = data or {}
        return cls(
            company_stage=ContextField.from_dict(data.get("company_stage")),
            business_model=ContextField.from_dict(data.get("business_model")),
            primary_kpi=ContextField.from_dict(data.get("primary_kpi")),
            market=MarketContext.from_dict(data.get("market")),
        )


@dataclass
class ContextInput:
    """
    Plain per-field context values.

    Used for explicit user overrides at creation, for partial context edits
    (None = field not touched) and as the shape of workspace defaults.
    """
    company_stage: Optional[str] = None
    business_model: Optional[str] = None
    primary_kpi: Optional[str] = None
    market_type: Optional[str] = None
    market_segment: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ContextInput":
        data = data or {}
        market = data.get("market") or {}
        return cls(
            company_stage=data.get("company_stage"),
            business_model=data.get("business_model"),
            primary_kpi=data.get("primary_kpi"),
            market_type=market.get("type"),
            market_segment=market.get("segment"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "company_stage": self.company_stage,
            "business_model": self.business_model,
            "primary_kpi": self.primary_kpi,
            "market": {"type": self.market_type, "segment": self.market_segment},
        }


# Workspace defaults share the plain-value shape
WorkspaceDefaults = ContextInput


@dataclass
class InferredField:
    """An AI-inferred context value with confidence."""
    value: str
    confidence: float
    signal: str = ""


@dataclass
class InferenceResult:
    """All context fields inferred from a website. Every field may be absent."""
    company_stage: Optional[InferredField] = None
    business_model: Optional[InferredField] = None
    primary_kpi: Optional[InferredField] = None
    market_type: Optional[InferredField] = None
    market_segment: Optional[InferredField] = None
    signals: List[Dict[str, Any]] = field(default_factory=list)


# =============================================================================
# VERDICT METADATA
# =============================================================================

@dataclass
class ModelMeta:
    """How the current verdict was produced."""
    model_name: str = ""
    prompt_version: str = ""
    inference_duration_ms: int = 0
    website_content_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_name": self.model_name,
            "prompt_version": self.prompt_version,
            "inference_duration_ms": self.inference_duration_ms,
            "website_content_hash": self.website_content_hash,
        }


# =============================================================================
# APPEND-ONLY HISTORY RECORDS
# =============================================================================

@dataclass(frozen=True)
class ContextVersion:
    version: int
    context: Dict[str, Any]
    reason: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "context": self.context,
            "reason": self.reason,
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContextVersion":
        return cls(
            version=data["version"],
            context=data.get("context") or {},
            reason=data.get("reason", ""),
            created_at=_parse_dt(data.get("created_at")),
        )


@dataclass(frozen=True)
class VerdictVersion:
    version: int
    verdict: Dict[str, Any]
    reason: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "verdict": self.verdict,
            "reason": self.reason,
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerdictVersion":
        return cls(
            version=data["version"],
            verdict=data.get("verdict") or {},
            reason=data.get("reason", ""),
            created_at=_parse_dt(data.get("created_at")),
        )


@dataclass(frozen=True)
class StatusEvent:
    status: str
    reason: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "reason": self.reason,
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusEvent":
        return cls(
            status=data["status"],
            reason=data.get("reason", ""),
            created_at=_parse_dt(data.get("created_at")),
        )


# =============================================================================
# INLINE OUTCOMES (OutcomeV2)
# =============================================================================

@dataclass(frozen=True)
class OutcomeV2:
    """
    A measured outcome recorded inline on the decision.

    corrects_outcome_id is a weak reference to a sibling outcome by id.
    The corrected record is never modified; corrections are additive.
    """
    id: str
    outcome_type: str
    timeframe_days: int
    created_at: datetime
    metric_name: str = ""
    metric_before: Optional[float] = None
    metric_after: Optional[float] = None
    delta_percent: Optional[float] = None
    notes: str = ""
    evidence_url: Optional[str] = None
    is_correction: bool = False
    corrects_outcome_id: Optional[str] = None
    correction_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "outcome_type": self.outcome_type,
            "timeframe_days": self.timeframe_days,
            "metric_name": self.metric_name,
            "metric_before": self.metric_before,
            "metric_after": self.metric_after,
            "delta_percent": self.delta_percent,
            "notes": self.notes,
            "evidence_url": self.evidence_url,
            "is_correction": self.is_correction,
            "corrects_outcome_id": self.corrects_outcome_id,
            "correction_reason": self.correction_reason,
            "created_at": _iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutcomeV2":
        return cls(
            id=data["id"],
            outcome_type=data["outcome_type"],
            timeframe_days=data.get("timeframe_days", 0),
            created_at=_parse_dt(data.get("created_at")),
            metric_name=data.get("metric_name", ""),
            metric_before=data.get("metric_before"),
            metric_after=data.get("metric_after"),
            delta_percent=data.get("delta_percent"),
            notes=data.get("notes", ""),
            evidence_url=data.get("evidence_url"),
            is_correction=bool(data.get("is_correction", False)),
            corrects_outcome_id=data.get("corrects_outcome_id"),
            correction_reason=data.get("correction_reason"),
        )


@dataclass
class OutcomeInput:
    """User-supplied fields for a new inline outcome."""
    outcome_type: str
    timeframe_days: int = 0
    metric_name: str = ""
    metric_before: Optional[float] = None
    metric_after: Optional[float] = None
    notes: str = ""
    evidence_url: Optional[str] = None
    is_correction: bool = False
    corrects_outcome_id: Optional[str] = None
    correction_reason: Optional[str] = None
