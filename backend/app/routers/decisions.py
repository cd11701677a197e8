"""
Pricing Decisions - Decisions API Router

Thin HTTP layer over DecisionService. Services flush; the router commits
once the operation succeeded.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..database import get_db
from ..models.decision import ContextInput, OutcomeInput
from ..repositories import DecisionListParams, DecisionRepository
from ..services.decisions import (
    DecisionLimits, DecisionService, DecisionServiceError, InferenceError,
    InvalidTransitionError, LimitExceededError, NotFoundError, ValidationError,
    VerdictGenerator,
)
from ..services.decisions.decision_service import verdict_timeout_from_env
from ..services.decisions.limits import fail_open_from_env
from ..services.decisions.views import decision_to_dict


router = APIRouter(prefix="/v2/decisions", tags=["decisions"])


# =============================================================================
# ERROR MAPPING
# =============================================================================

def to_http_error(e: DecisionServiceError) -> HTTPException:
    """Translate a service error into the matching HTTP error."""
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, InferenceError):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, LimitExceededError):
        return HTTPException(status_code=403, detail={
            "error_code": e.result.error_code,
            "reason": e.result.reason,
            "limit": e.result.limit,
            "current": e.result.current,
            "plan": e.result.plan,
        })
    return HTTPException(status_code=500, detail=str(e))


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_verdict_generator(request: Request) -> Optional[VerdictGenerator]:
    """The generator is wired onto app.state by the deployment; None until then."""
    return getattr(request.app.state, "verdict_generator", None)


def get_decision_service(
    db: Session = Depends(get_db),
    generator: Optional[VerdictGenerator] = Depends(get_verdict_generator),
) -> DecisionService:
    decision_repo = DecisionRepository(db)
    return DecisionService(
        db,
        generator,
        decision_repo=decision_repo,
        limits=DecisionLimits(decision_repo, fail_open_on_count_error=fail_open_from_env()),
        verdict_timeout=verdict_timeout_from_env(),
    )


def get_generating_decision_service(
    service: DecisionService = Depends(get_decision_service),
) -> DecisionService:
    """Only create and regenerate call the generator."""
    if service.verdict_generator is None:
        raise HTTPException(status_code=503, detail="Verdict generation is not configured")
    return service


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class MarketInput(BaseModel):
    type: Optional[str] = None
    segment: Optional[str] = None


class ContextRequest(BaseModel):
    company_stage: Optional[str] = None
    business_model: Optional[str] = None
    primary_kpi: Optional[str] = None
    market: Optional[MarketInput] = None

    def to_input(self) -> ContextInput:
        market = self.market or MarketInput()
        return ContextInput(
            company_stage=self.company_stage,
            business_model=self.business_model,
            primary_kpi=self.primary_kpi,
            market_type=market.type,
            market_segment=market.segment,
        )


class CreateDecisionRequest(BaseModel):
    website_url: str
    context: Optional[ContextRequest] = None


class UpdateContextRequest(BaseModel):
    context: ContextRequest
    reason: str = ""


class RegenerateRequest(BaseModel):
    reason: str = ""


class UpdateStatusRequest(BaseModel):
    status: str
    reason: str = ""


class AddOutcomeRequest(BaseModel):
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

    def to_input(self) -> OutcomeInput:
        return OutcomeInput(
            outcome_type=self.outcome_type,
            timeframe_days=self.timeframe_days,
            metric_name=self.metric_name,
            metric_before=self.metric_before,
            metric_after=self.metric_after,
            notes=self.notes,
            evidence_url=self.evidence_url,
            is_correction=self.is_correction,
            corrects_outcome_id=self.corrects_outcome_id,
            correction_reason=self.correction_reason,
        )


class DecisionListResponse(BaseModel):
    decisions: List[Dict[str, Any]]
    page: int
    page_size: int
    total: int
    total_pages: int


class CompareRequest(BaseModel):
    decision_ids: List[str] = Field(default_factory=list)


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("", status_code=201)
async def create_decision(
    request: CreateDecisionRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: DecisionService = Depends(get_generating_decision_service),
    db: Session = Depends(get_db),
):
    """Create a decision: resolve context, generate the first verdict."""
    try:
        decision = service.create_decision(
            current_user.id,
            request.website_url,
            context=request.context.to_input() if request.context else None,
            plan=current_user.plan,
        )
    except DecisionServiceError as e:
        raise to_http_error(e)
    db.commit()
    return decision_to_dict(decision)


@router.get("", response_model=DecisionListResponse)
async def list_decisions(
    status: Optional[str] = None,
    segment: Optional[str] = None,
    kpi: Optional[str] = None,
    min_confidence: float = 0.0,
    search: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1),
    current_user: CurrentUser = Depends(get_current_user),
    service: DecisionService = Depends(get_decision_service),
):
    params = DecisionListParams(
        status=status,
        segment=segment,
        kpi=kpi,
        min_confidence=min_confidence,
        search=search,
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=page_size,
    )
    result = service.list_decisions(current_user.id, params)
    return DecisionListResponse(
        decisions=result.decisions,
        page=result.page,
        page_size=result.page_size,
        total=result.total,
        total_pages=result.total_pages,
    )


@router.post("/compare")
async def compare_decisions(
    request: CompareRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: DecisionService = Depends(get_decision_service),
):
    """Fetch several decisions side by side."""
    decisions = service.get_multiple_decisions(current_user.id, request.decision_ids)
    return {"decisions": [decision_to_dict(d) for d in decisions]}


@router.get("/{decision_id}")
async def get_decision(
    decision_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: DecisionService = Depends(get_decision_service),
):
    try:
        decision = service.get_decision(decision_id, current_user.id)
    except DecisionServiceError as e:
        raise to_http_error(e)
    return decision_to_dict(decision)


@router.patch("/{decision_id}/context")
async def update_context(
    decision_id: str,
    request: UpdateContextRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: DecisionService = Depends(get_decision_service),
    db: Session = Depends(get_db),
):
    """Edit context fields; appends a new context version."""
    try:
        decision = service.update_context(
            decision_id, current_user.id, request.context.to_input(), request.reason,
        )
    except DecisionServiceError as e:
        raise to_http_error(e)
    db.commit()
    return decision_to_dict(decision)


@router.post("/{decision_id}/regenerate")
async def regenerate_verdict(
    decision_id: str,
    request: RegenerateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: DecisionService = Depends(get_generating_decision_service),
    db: Session = Depends(get_db),
):
    """Regenerate the verdict on the current context; appends a new verdict version."""
    try:
        decision = service.regenerate_verdict(decision_id, current_user.id, request.reason)
    except DecisionServiceError as e:
        raise to_http_error(e)
    db.commit()
    return decision_to_dict(decision)


@router.patch("/{decision_id}/status")
async def update_status(
    decision_id: str,
    request: UpdateStatusRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: DecisionService = Depends(get_decision_service),
    db: Session = Depends(get_db),
):
    try:
        decision = service.update_status(decision_id, current_user.id, request.status, request.reason)
    except DecisionServiceError as e:
        raise to_http_error(e)
    db.commit()
    return decision_to_dict(decision)


@router.post("/{decision_id}/outcomes", status_code=201)
async def add_outcome(
    decision_id: str,
    request: AddOutcomeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: DecisionService = Depends(get_decision_service),
    db: Session = Depends(get_db),
):
    """Record an outcome or a correction of an earlier one."""
    try:
        decision = service.add_outcome(decision_id, current_user.id, request.to_input())
    except DecisionServiceError as e:
        raise to_http_error(e)
    db.commit()
    return decision_to_dict(decision)


@router.get("/{decision_id}/outcomes/effective")
async def get_effective_outcomes(
    decision_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: DecisionService = Depends(get_decision_service),
):
    try:
        outcomes = service.get_effective_outcomes(decision_id, current_user.id)
    except DecisionServiceError as e:
        raise to_http_error(e)
    return {"outcomes": [o.to_dict() for o in outcomes]}


@router.delete("/{decision_id}", status_code=204)
async def delete_decision(
    decision_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: DecisionService = Depends(get_decision_service),
    db: Session = Depends(get_db),
):
    try:
        service.delete_decision(decision_id, current_user.id)
    except DecisionServiceError as e:
        raise to_http_error(e)
    db.commit()
