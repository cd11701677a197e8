"""
Pricing Decisions - Scenario Outcomes API Router

Choosing a scenario, tracking its measurable outcome, and comparing
scenarios against each other.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..database import get_db
from ..models.db_models import KPIConfidence, KPIKey, KPIUnit
from ..models.outcome import EvidenceLink, OutcomeKPI, OutcomeUpdate
from ..services.decisions import DecisionServiceError, OutcomeService, ScenarioDeltaEngine, ValidationError
from ..services.decisions.views import measurable_outcome_to_dict
from .decisions import to_http_error


router = APIRouter(prefix="/v2/decisions", tags=["outcomes"])


def get_outcome_service(db: Session = Depends(get_db)) -> OutcomeService:
    return OutcomeService(db)


def get_delta_engine(db: Session = Depends(get_db)) -> ScenarioDeltaEngine:
    return ScenarioDeltaEngine(db)


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class ApplyScenarioRequest(BaseModel):
    scenario_id: str


class KPIRequest(BaseModel):
    key: str
    unit: str
    baseline: float = 0.0
    target: float = 0.0
    actual: Optional[float] = None
    confidence: str = KPIConfidence.MEDIUM.value
    notes: str = ""

    def to_kpi(self) -> OutcomeKPI:
        try:
            return OutcomeKPI(
                key=KPIKey(self.key),
                unit=KPIUnit(self.unit),
                baseline=self.baseline,
                target=self.target,
                actual=self.actual,
                confidence=KPIConfidence(self.confidence),
                notes=self.notes,
            )
        except ValueError as e:
            raise ValidationError(f"invalid KPI: {e}")


class EvidenceLinkRequest(BaseModel):
    label: str
    url: str


class UpdateOutcomeRequest(BaseModel):
    status: Optional[str] = None
    kpis: Optional[List[KPIRequest]] = None
    evidence_links: Optional[List[EvidenceLinkRequest]] = None
    summary: Optional[str] = None
    notes: Optional[str] = None

    def to_update(self) -> OutcomeUpdate:
        return OutcomeUpdate(
            status=self.status,
            kpis=[k.to_kpi() for k in self.kpis] if self.kpis is not None else None,
            evidence_links=(
                [EvidenceLink(label=l.label, url=l.url) for l in self.evidence_links]
                if self.evidence_links is not None else None
            ),
            summary=self.summary,
            notes=self.notes,
        )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/{decision_id}/scenarios/apply")
async def apply_scenario(
    decision_id: str,
    request: ApplyScenarioRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: OutcomeService = Depends(get_outcome_service),
    db: Session = Depends(get_db),
):
    """Choose a scenario and seed its measurable outcome."""
    try:
        outcome = service.apply_scenario(decision_id, current_user.id, request.scenario_id)
    except DecisionServiceError as e:
        raise to_http_error(e)
    db.commit()
    return {
        "verdict_id": decision_id,
        "chosen_scenario_id": request.scenario_id,
        "status": "path_chosen",
        "outcome": measurable_outcome_to_dict(outcome),
    }


@router.get("/{decision_id}/outcome")
async def get_outcome(
    decision_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: OutcomeService = Depends(get_outcome_service),
):
    try:
        outcome = service.get_outcome(decision_id, current_user.id)
    except DecisionServiceError as e:
        raise to_http_error(e)
    if outcome is None:
        raise HTTPException(status_code=404, detail="outcome not found")
    return measurable_outcome_to_dict(outcome)


@router.put("/{decision_id}/outcome")
async def update_outcome(
    decision_id: str,
    request: UpdateOutcomeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: OutcomeService = Depends(get_outcome_service),
    db: Session = Depends(get_db),
):
    """Record actuals, status, evidence and notes on the measurable outcome."""
    try:
        outcome = service.update_outcome(decision_id, current_user.id, request.to_update())
    except DecisionServiceError as e:
        raise to_http_error(e)
    db.commit()
    return measurable_outcome_to_dict(outcome)


@router.get("/{decision_id}/delta")
async def compute_delta(
    decision_id: str,
    baseline: str,
    candidate: str,
    current_user: CurrentUser = Depends(get_current_user),
    engine: ScenarioDeltaEngine = Depends(get_delta_engine),
    db: Session = Depends(get_db),
):
    try:
        view = engine.compute_delta(decision_id, current_user.id, baseline, candidate)
    except DecisionServiceError as e:
        raise to_http_error(e)
    db.commit()
    return view.to_dict()


@router.get("/{decision_id}/delta/inspect")
async def inspect_delta(
    decision_id: str,
    candidate: str,
    current_user: CurrentUser = Depends(get_current_user),
    engine: ScenarioDeltaEngine = Depends(get_delta_engine),
    db: Session = Depends(get_db),
):
    """Compare a scenario with the chosen one (or "balanced")."""
    try:
        view = engine.get_delta_for_inspect(decision_id, current_user.id, candidate)
    except DecisionServiceError as e:
        raise to_http_error(e)
    db.commit()
    return view.to_dict()
