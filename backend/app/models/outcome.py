"""
Pricing Decisions - Scenario / Measurable Outcome Models

Dataclasses for scenario metrics, KPI entries and scenario deltas.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .db_models import DeltaDirection, KPIConfidence, KPIKey, KPIUnit


# =============================================================================
# SCENARIOS
# =============================================================================

@dataclass(frozen=True)
class ScenarioMetrics:
    """Free-text metric ranges as produced by scenario generation."""
    revenue_impact_range: str = ""
    churn_impact_range: str = ""
    risk_label: str = ""
    time_to_impact: str = ""
    execution_effort: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ScenarioMetrics":
        data = data or {}
        return cls(
            revenue_impact_range=data.get("revenue_impact_range") or "",
            churn_impact_range=data.get("churn_impact_range") or "",
            risk_label=data.get("risk_label") or "",
            time_to_impact=data.get("time_to_impact") or "",
            execution_effort=data.get("execution_effort") or "",
        )


@dataclass(frozen=True)
class ScenarioItem:
    scenario_id: str
    title: str = ""
    metrics: ScenarioMetrics = field(default_factory=ScenarioMetrics)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenarioItem":
        return cls(
            scenario_id=data["scenario_id"],
            title=data.get("title", ""),
            metrics=ScenarioMetrics.from_dict(data.get("metrics")),
        )


def find_scenario(scenarios: List[Dict[str, Any]], scenario_id: str) -> Optional[ScenarioItem]:
    """Look up a scenario by id in a stored scenario array."""
    for raw in scenarios or []:
        if raw.get("scenario_id") == scenario_id:
            return ScenarioItem.from_dict(raw)
    return None


# =============================================================================
# MEASURABLE OUTCOME KPIs
# =============================================================================

@dataclass
class OutcomeKPI:
    """A KPI measurement: baseline, target, actual and derived deltas."""
    key: KPIKey
    unit: KPIUnit
    baseline: float = 0.0
    target: float = 0.0
    actual: Optional[float] = None
    delta: Optional[float] = None       # actual - baseline
    delta_pct: Optional[float] = None   # delta / baseline * 100
    confidence: KPIConfidence = KPIConfidence.MEDIUM
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key.value,
            "unit": self.unit.value,
            "baseline": self.baseline,
            "target": self.target,
            "actual": self.actual,
            "delta": self.delta,
            "delta_pct": self.delta_pct,
            "confidence": self.confidence.value,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutcomeKPI":
        return cls(
            key=KPIKey(data["key"]),
            unit=KPIUnit(data["unit"]),
            baseline=float(data.get("baseline") or 0.0),
            target=float(data.get("target") or 0.0),
            actual=data.get("actual"),
            delta=data.get("delta"),
            delta_pct=data.get("delta_pct"),
            confidence=KPIConfidence(data.get("confidence", KPIConfidence.MEDIUM.value)),
            notes=data.get("notes") or "",
        )


@dataclass(frozen=True)
class EvidenceLink:
    label: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "url": self.url}


@dataclass
class OutcomeUpdate:
    """Partial update of a measurable outcome. None = leave unchanged."""
    status: Optional[str] = None
    kpis: Optional[List[OutcomeKPI]] = None
    evidence_links: Optional[List[EvidenceLink]] = None
    summary: Optional[str] = None
    notes: Optional[str] = None


# =============================================================================
# SCENARIO DELTAS
# =============================================================================

@dataclass(frozen=True)
class DeltaRange:
    min: float = 0.0
    max: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"min": self.min, "max": self.max}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DeltaRange":
        data = data or {}
        return cls(min=float(data.get("min", 0.0)), max=float(data.get("max", 0.0)))


@dataclass(frozen=True)
class DeltaValues:
    """Candidate-minus-baseline comparison of two scenarios."""
    revenue_impact_pct: DeltaRange
    churn_impact_pp: DeltaRange
    time_to_impact_days: DeltaRange
    risk_delta: DeltaDirection
    effort_delta: DeltaDirection

    def to_dict(self) -> Dict[str, Any]:
        return {
            "revenue_impact_pct": self.revenue_impact_pct.to_dict(),
            "churn_impact_pp": self.churn_impact_pp.to_dict(),
            "time_to_impact_days": self.time_to_impact_days.to_dict(),
            "risk_delta": self.risk_delta.value,
            "effort_delta": self.effort_delta.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeltaValues":
        return cls(
            revenue_impact_pct=DeltaRange.from_dict(data.get("revenue_impact_pct")),
            churn_impact_pp=DeltaRange.from_dict(data.get("churn_impact_pp")),
            time_to_impact_days=DeltaRange.from_dict(data.get("time_to_impact_days")),
            risk_delta=DeltaDirection(data.get("risk_delta", DeltaDirection.SAME.value)),
            effort_delta=DeltaDirection(data.get("effort_delta", DeltaDirection.SAME.value)),
        )


@dataclass(frozen=True)
class ScenarioDeltaView:
    """Result of a delta computation as returned to callers."""
    baseline_scenario_id: str
    candidate_scenario_id: str
    deltas: DeltaValues
    cached: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseline_scenario_id": self.baseline_scenario_id,
            "candidate_scenario_id": self.candidate_scenario_id,
            "deltas": self.deltas.to_dict(),
        }
