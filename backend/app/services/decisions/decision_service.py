"""
Decision Service

Owns the decision lifecycle:
- creation (context resolution + verdict generation)
- context edits        -> new context version
- verdict regeneration -> new verdict version
- status transitions   -> validated by DecisionStateMachine
- inline outcomes      -> additive, corrections supersede without deleting
- soft delete

History arrays are append-only. The service never commits; the caller owns
the transaction.

Verdict generation policy:
- create: website context inference is best-effort (failure -> empty inference)
- regenerate: generation failure raises InferenceError; the stored verdict
  and its history stay as they were
"""
import logging
import math
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.orm import Session

from ...models.db_models import DecisionDB, DecisionStatus, EpisodeStatus, OutcomeType
from ...models.decision import (
    ContextInput, ContextVersion, DecisionContext, InferenceResult, ModelMeta,
    OutcomeInput, OutcomeV2, VerdictVersion,
)
from ...repositories import DecisionListParams, DecisionRepository, WorkspaceProfileRepository
from .context_resolver import apply_context_changes, resolve_full_context
from .errors import InferenceError, LimitExceededError, NotFoundError, ValidationError
from .limits import DecisionLimits
from .outcome_capability import OutcomeRecorder
from .outcome_helpers import calculate_delta_percent, find_outcome, get_effective_outcomes
from .state_machine import DecisionStateMachine
from .verdict_generator import VerdictGenerator, extract_company_name
from .versioning import next_version
from .views import decision_list_item


INITIAL_CONTEXT_REASON = "Initial context from creation"
INITIAL_VERDICT_REASON = "Initial verdict from AI analysis"

VALID_OUTCOME_TYPES = {t.value for t in OutcomeType}


def verdict_timeout_from_env() -> float:
    return float(os.getenv("VERDICT_TIMEOUT_SECONDS", "60"))


@dataclass
class DecisionListResult:
    decisions: List[Dict[str, Any]] = field(default_factory=list)
    page: int = 1
    page_size: int = 20
    total: int = 0
    total_pages: int = 0


class DecisionService(OutcomeRecorder):
    """Main service for pricing decision management."""

    def __init__(
        self,
        db_session: Session,
        verdict_generator: Optional[VerdictGenerator],
        decision_repo: Optional[DecisionRepository] = None,
        workspace_repo: Optional[WorkspaceProfileRepository] = None,
        limits: Optional[DecisionLimits] = None,
        logger: Optional[logging.Logger] = None,
        verdict_timeout: Optional[float] = None,
    ):
        self.db = db_session
        self.verdict_generator = verdict_generator
        self.decisions = decision_repo or DecisionRepository(db_session)
        self.workspaces = workspace_repo or WorkspaceProfileRepository(db_session)
        self.limits = limits
        self.logger = logger or logging.getLogger(__name__)
        self.verdict_timeout = verdict_timeout
        self.state_machine = DecisionStateMachine()

    # =========================================================================
    # CREATION
    # =========================================================================

    def create_decision(
        self,
        user_id: str,
        website_url: str,
        context: Optional[ContextInput] = None,
        plan: Optional[str] = None,
    ) -> DecisionDB:
        """
        Create a decision for a website.

        Context priority is user > workspace default > inferred. Inference
        failures are logged and replaced by an empty inference result.
        """
        if not website_url or not website_url.strip():
            raise ValidationError("website URL is required")
        website_url = website_url.strip()

        if self.limits is not None:
            check = self.limits.can_create_decision(user_id, plan)
            if not check.allowed:
                raise LimitExceededError(check)

        workspace_defaults = self.workspaces.get_defaults(user_id)
        inference, artifacts = self._infer_context(website_url)
        resolved = resolve_full_context(context, workspace_defaults, inference)

        verdict, model_meta = self._generate_verdict(website_url, resolved)

        now = datetime.utcnow()
        context_dict = resolved.to_dict()
        supporting = verdict.get("supporting_details") or {}

        decision = DecisionDB(
            id=str(uuid4()),
            user_id=user_id,
            website_url=website_url,
            company_name=extract_company_name(website_url),
            status=DecisionStatus.PENDING.value,
            context=context_dict,
            context_version=1,
            context_versions=[
                ContextVersion(1, context_dict, INITIAL_CONTEXT_REASON, now).to_dict(),
            ],
            verdict=verdict,
            verdict_version=1,
            verdict_versions=[
                VerdictVersion(1, verdict, INITIAL_VERDICT_REASON, now).to_dict(),
            ],
            model_meta=model_meta.to_dict(),
            inference_signals=list(inference.signals),
            inference_artifacts=artifacts,
            expected_impact={
                "revenue_range": supporting.get("expected_revenue_impact", ""),
                "churn_note": supporting.get("churn_outlook", ""),
            },
            status_events=[self.state_machine.initial_event(now).to_dict()],
            outcomes=[],
            episode_status=EpisodeStatus.DRAFT.value,
        )

        self.decisions.create(decision)
        self.logger.info(f"Created decision {decision.id} for {website_url}")
        return decision

    def _infer_context(self, website_url: str) -> Tuple[InferenceResult, Optional[Dict[str, Any]]]:
        try:
            inference, artifacts = self.verdict_generator.infer_context_from_website(
                website_url, timeout=self.verdict_timeout,
            )
        except Exception as e:
            self.logger.warning(f"Context inference failed for {website_url}, continuing without it: {e}")
            return InferenceResult(), None
        return inference or InferenceResult(), artifacts

    def _generate_verdict(self, website_url: str, context: DecisionContext) -> Tuple[Dict[str, Any], ModelMeta]:
        try:
            verdict, model_meta = self.verdict_generator.generate_verdict(
                website_url, context, timeout=self.verdict_timeout,
            )
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"failed to generate verdict: {e}") from e
        return dict(verdict or {}), model_meta or ModelMeta()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_decision(self, decision_id: str, user_id: str) -> DecisionDB:
        decision = self.decisions.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            raise NotFoundError("decision not found")
        return decision

    def list_decisions(self, user_id: str, params: Optional[DecisionListParams] = None) -> DecisionListResult:
        params = params or DecisionListParams()
        rows, total = self.decisions.list(user_id, params)
        page, page_size = params.normalized()
        return DecisionListResult(
            decisions=[decision_list_item(row) for row in rows],
            page=page,
            page_size=page_size,
            total=total,
            total_pages=int(math.ceil(total / page_size)) if total else 0,
        )

    def get_multiple_decisions(self, user_id: str, decision_ids: List[str]) -> List[DecisionDB]:
        return self.decisions.get_multiple_by_ids(user_id, decision_ids)

    # =========================================================================
    # VERSIONED MUTATIONS
    # =========================================================================

    def update_context(
        self,
        decision_id: str,
        user_id: str,
        changes: ContextInput,
        reason: str = "",
    ) -> DecisionDB:
        """Apply a partial context edit and append it as a new context version."""
        decision = self.get_decision(decision_id, user_id)

        current = DecisionContext.from_dict(decision.context)
        updated = apply_context_changes(current, changes).to_dict()
        version = ContextVersion(
            version=next_version(decision.context_version, decision.context_versions),
            context=updated,
            reason=reason,
            created_at=datetime.utcnow(),
        )

        result = self.decisions.update_context(decision_id, user_id, updated, version)
        if result is None:
            raise NotFoundError("decision not found")
        self.logger.info(f"Decision {decision_id} context -> v{version.version}")
        return result

    def regenerate_verdict(self, decision_id: str, user_id: str, reason: str = "") -> DecisionDB:
        """Re-run verdict generation on the current context. Failures propagate."""
        decision = self.get_decision(decision_id, user_id)

        context = DecisionContext.from_dict(decision.context)
        verdict, model_meta = self._generate_verdict(decision.website_url, context)

        version = VerdictVersion(
            version=next_version(decision.verdict_version, decision.verdict_versions),
            verdict=verdict,
            reason=reason,
            created_at=datetime.utcnow(),
        )

        result = self.decisions.update_verdict(decision_id, user_id, verdict, version, model_meta.to_dict())
        if result is None:
            raise NotFoundError("decision not found")
        self.logger.info(f"Decision {decision_id} verdict -> v{version.version}")
        return result

    def update_status(self, decision_id: str, user_id: str, new_status: str, reason: str = "") -> DecisionDB:
        decision = self.get_decision(decision_id, user_id)

        event = self.state_machine.transition(decision.status, new_status, reason)

        result = self.decisions.update_status(decision_id, user_id, event.status, event)
        if result is None:
            raise NotFoundError("decision not found")
        self.logger.info(f"Decision {decision_id} status {decision.status} -> {event.status}")
        return result

    # =========================================================================
    # INLINE OUTCOMES
    # =========================================================================

    def add_outcome(self, decision_id: str, user_id: str, outcome_input: OutcomeInput) -> DecisionDB:
        """
        Append an outcome to the decision.

        A correction must name an outcome already on this decision. The
        corrected record is left as is.
        """
        decision = self.get_decision(decision_id, user_id)

        if outcome_input.outcome_type not in VALID_OUTCOME_TYPES:
            raise ValidationError(f"invalid outcome type: {outcome_input.outcome_type}")
        if outcome_input.timeframe_days is not None and outcome_input.timeframe_days < 0:
            raise ValidationError("timeframe days cannot be negative")

        corrects_id = None
        if outcome_input.is_correction:
            if not outcome_input.corrects_outcome_id:
                raise ValidationError("correctsOutcomeId is required for a correction")
            existing = [OutcomeV2.from_dict(o) for o in decision.outcomes or []]
            if find_outcome(existing, outcome_input.corrects_outcome_id) is None:
                raise ValidationError(f"outcome to correct not found: {outcome_input.corrects_outcome_id}")
            corrects_id = outcome_input.corrects_outcome_id

        outcome = OutcomeV2(
            id=str(uuid4()),
            outcome_type=outcome_input.outcome_type,
            timeframe_days=outcome_input.timeframe_days or 0,
            created_at=datetime.utcnow(),
            metric_name=outcome_input.metric_name,
            metric_before=outcome_input.metric_before,
            metric_after=outcome_input.metric_after,
            delta_percent=calculate_delta_percent(outcome_input.metric_before, outcome_input.metric_after),
            notes=outcome_input.notes,
            evidence_url=outcome_input.evidence_url,
            is_correction=outcome_input.is_correction,
            corrects_outcome_id=corrects_id,
            correction_reason=outcome_input.correction_reason if outcome_input.is_correction else None,
        )

        result = self.decisions.add_outcome(decision_id, user_id, outcome)
        if result is None:
            raise NotFoundError("decision not found")
        return result

    def get_effective_outcomes(self, decision_id: str, user_id: str) -> List[OutcomeV2]:
        decision = self.get_decision(decision_id, user_id)
        return get_effective_outcomes([OutcomeV2.from_dict(o) for o in decision.outcomes or []])

    def record_outcome(self, decision_id: str, user_id: str, payload: OutcomeInput) -> DecisionDB:
        return self.add_outcome(decision_id, user_id, payload)

    def list_effective_outcomes(self, decision_id: str, user_id: str) -> List[OutcomeV2]:
        return self.get_effective_outcomes(decision_id, user_id)

    # =========================================================================
    # DELETION
    # =========================================================================

    def delete_decision(self, decision_id: str, user_id: str) -> None:
        if not self.decisions.soft_delete(decision_id, user_id):
            raise NotFoundError("decision not found")
        self.logger.info(f"Soft-deleted decision {decision_id}")

    def delete_user_decisions(self, user_id: str) -> int:
        """Soft-delete every decision a user owns (account cleanup)."""
        deleted = 0
        for decision in self.decisions.list_all_for_user(user_id):
            if self.decisions.soft_delete(decision.id, user_id):
                deleted += 1
        return deleted
