"""
Measurable Outcome Service

Choosing a scenario seeds a MeasurableOutcome for the decision:
- revenue KPI  target = midpoint of the scenario's revenue impact range
- churn KPI    target = midpoint of the scenario's churn impact range
- primary KPI  (from decision context) when it is neither revenue nor churn

Users then fill in actuals; deltas are derived from baseline on update.
Linking the outcome back to the decision and moving the episode status are
best-effort: the outcome row is the source of truth.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.db_models import (
    DecisionDB, EpisodeStatus, KPIConfidence, KPIKey, KPIUnit, MeasurableOutcomeDB,
    OutcomeStatus, ScenarioID,
)
from ...models.outcome import OutcomeKPI, OutcomeUpdate, ScenarioItem, find_scenario
from ...repositories import DecisionRepository, OutcomeRepository, ScenarioRepository
from .errors import NotFoundError, ValidationError
from .outcome_capability import OutcomeRecorder
from .range_parser import extract_horizon_days, parse_percent_range


VALID_SCENARIO_IDS = {s.value for s in ScenarioID}
VALID_OUTCOME_STATUSES = {s.value for s in OutcomeStatus}

# decision context primary_kpi value -> tracked KPI
PRIMARY_KPI_MAP: Dict[str, KPIKey] = {
    "mrr_growth": KPIKey.MRR,
    "churn_reduction": KPIKey.CHURN,
    "activation": KPIKey.ACTIVATION,
    "arpu": KPIKey.ARPA,
    "nrr": KPIKey.RETENTION,
    "cvr": KPIKey.CONVERSION,
}

PRIMARY_KPI_NOTE = "Set your baseline and target"


def is_valid_scenario_id(scenario_id: str) -> bool:
    return scenario_id in VALID_SCENARIO_IDS


def get_unit_for_kpi(key: KPIKey) -> KPIUnit:
    """Default unit for a KPI key."""
    if key in (KPIKey.CHURN, KPIKey.CONVERSION, KPIKey.ACTIVATION, KPIKey.RETENTION):
        return KPIUnit.PERCENT
    if key in (KPIKey.MRR, KPIKey.ARR, KPIKey.ARPA, KPIKey.CAC, KPIKey.LTV):
        return KPIUnit.EUR
    if key == KPIKey.NPS:
        return KPIUnit.COUNT
    return KPIUnit.PERCENT


def get_episode_status(has_scenarios: bool, chosen_scenario_id: Optional[str], has_outcome: bool) -> EpisodeStatus:
    """Where a decision stands in the explore -> choose -> measure loop."""
    if has_outcome and chosen_scenario_id:
        return EpisodeStatus.OUTCOME_SAVED
    if chosen_scenario_id:
        return EpisodeStatus.PATH_CHOSEN
    if has_scenarios:
        return EpisodeStatus.EXPLORED
    return EpisodeStatus.DRAFT


def _primary_kpi_for(decision: DecisionDB) -> KPIKey:
    value = ((decision.context or {}).get("primary_kpi") or {}).get("value")
    return PRIMARY_KPI_MAP.get(value, KPIKey.MRR)


def generate_kpis_from_scenario(decision: DecisionDB, scenario: ScenarioItem) -> List[OutcomeKPI]:
    """Prefilled KPI list for a chosen scenario. Baselines are left for the user."""
    revenue_min, revenue_max = parse_percent_range(scenario.metrics.revenue_impact_range)
    churn_min, churn_max = parse_percent_range(scenario.metrics.churn_impact_range)

    kpis = [
        OutcomeKPI(
            key=KPIKey.REVENUE,
            unit=KPIUnit.PERCENT,
            target=(revenue_min + revenue_max) / 2,
            confidence=KPIConfidence.MEDIUM,
            notes=f"Expected impact: {scenario.metrics.revenue_impact_range}",
        ),
        OutcomeKPI(
            key=KPIKey.CHURN,
            unit=KPIUnit.PP,
            target=(churn_min + churn_max) / 2,
            confidence=KPIConfidence.MEDIUM,
            notes=f"Expected impact: {scenario.metrics.churn_impact_range}",
        ),
    ]

    primary = _primary_kpi_for(decision)
    if primary not in (KPIKey.REVENUE, KPIKey.CHURN):
        kpis.append(OutcomeKPI(
            key=primary,
            unit=get_unit_for_kpi(primary),
            confidence=KPIConfidence.LOW,
            notes=PRIMARY_KPI_NOTE,
        ))

    return kpis


def compute_kpi_deltas(kpi: OutcomeKPI) -> OutcomeKPI:
    """Fill delta and delta_pct from actual; KPIs without an actual are returned as is."""
    if kpi.actual is None:
        return kpi
    kpi.delta = kpi.actual - kpi.baseline
    if kpi.baseline != 0:
        kpi.delta_pct = (kpi.delta / kpi.baseline) * 100
    return kpi


def is_outcome_complete(outcome: MeasurableOutcomeDB) -> bool:
    if outcome.status in (OutcomeStatus.ACHIEVED.value, OutcomeStatus.MISSED.value):
        return True
    return any(k.get("actual") is not None for k in outcome.kpis or [])


class OutcomeService(OutcomeRecorder):
    """Applies scenarios and tracks the resulting measurable outcome."""

    def __init__(
        self,
        db_session: Session,
        decision_repo: Optional[DecisionRepository] = None,
        scenario_repo: Optional[ScenarioRepository] = None,
        outcome_repo: Optional[OutcomeRepository] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.db = db_session
        self.decisions = decision_repo or DecisionRepository(db_session)
        self.scenarios = scenario_repo or ScenarioRepository(db_session)
        self.outcomes = outcome_repo or OutcomeRepository(db_session)
        self.logger = logger or logging.getLogger(__name__)

    def apply_scenario(self, decision_id: str, user_id: str, scenario_id: str) -> MeasurableOutcomeDB:
        if not is_valid_scenario_id(scenario_id):
            raise ValidationError(f"invalid scenario ID: {scenario_id}")

        decision = self._require_decision(decision_id, user_id)

        scenario_set = self.scenarios.get_by_decision_id(decision_id, user_id)
        if scenario_set is None:
            raise NotFoundError("no scenarios found for this decision")

        scenario = find_scenario(scenario_set.scenarios, scenario_id)
        if scenario is None:
            raise NotFoundError(f"scenario not found: {scenario_id}")

        episode_status = get_episode_status(True, scenario_id, has_outcome=False)
        self.decisions.set_chosen_scenario(decision_id, user_id, scenario_id, episode_status.value)

        kpis = generate_kpis_from_scenario(decision, scenario)
        outcome = self.outcomes.upsert(
            verdict_id=decision_id,
            user_id=user_id,
            chosen_scenario_id=scenario_id,
            status=OutcomeStatus.PENDING.value,
            horizon_days=extract_horizon_days(scenario.metrics.time_to_impact),
            kpis=[k.to_dict() for k in kpis],
        )

        try:
            self.decisions.link_outcome(decision_id, user_id, outcome.id)
        except SQLAlchemyError as e:
            self.logger.warning(f"Failed to link outcome {outcome.id} to decision {decision_id}: {e}")

        self.logger.info(f"Applied scenario {scenario_id} to decision {decision_id}")
        return outcome

    def get_outcome(self, decision_id: str, user_id: str) -> Optional[MeasurableOutcomeDB]:
        """None when no scenario has been applied yet. Raises NotFoundError for a missing or deleted decision."""
        self._require_decision(decision_id, user_id)
        return self.outcomes.get_by_verdict_id(decision_id, user_id)

    def update_outcome(self, decision_id: str, user_id: str, update: OutcomeUpdate) -> MeasurableOutcomeDB:
        decision = self._require_decision(decision_id, user_id)
        outcome = self.outcomes.get_by_verdict_id(decision_id, user_id)
        if outcome is None:
            raise NotFoundError("outcome not found - apply a scenario first")

        # Unknown statuses are ignored rather than rejected
        if update.status is not None and update.status in VALID_OUTCOME_STATUSES:
            outcome.status = update.status
        if update.kpis is not None:
            outcome.kpis = [compute_kpi_deltas(k).to_dict() for k in update.kpis]
        if update.evidence_links is not None:
            outcome.evidence_links = [link.to_dict() for link in update.evidence_links]
        if update.summary is not None:
            outcome.summary = update.summary
        if update.notes is not None:
            outcome.notes = update.notes

        self.outcomes.update(outcome)

        if is_outcome_complete(outcome):
            episode_status = get_episode_status(True, decision.chosen_scenario_id, has_outcome=True)
            try:
                self.decisions.update_episode_status(decision_id, user_id, episode_status.value)
            except SQLAlchemyError as e:
                self.logger.warning(f"Failed to update episode status for decision {decision_id}: {e}")

        return outcome

    def record_outcome(self, decision_id: str, user_id: str, payload: OutcomeUpdate) -> MeasurableOutcomeDB:
        return self.update_outcome(decision_id, user_id, payload)

    def list_effective_outcomes(self, decision_id: str, user_id: str) -> List[Any]:
        # A measurable outcome is replaced in place, so at most one is in force
        outcome = self.get_outcome(decision_id, user_id)
        return [outcome] if outcome is not None else []

    def _require_decision(self, decision_id: str, user_id: str) -> DecisionDB:
        decision = self.decisions.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            raise NotFoundError("decision not found")
        return decision
