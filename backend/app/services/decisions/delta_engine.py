"""
Scenario Delta Engine

Compares two scenarios of a decision (candidate minus baseline).

Numeric ranges are differenced bound by bound: min against min, max
against max. Risk and effort labels are compared on low < medium < high;
labels outside that scale rank as 0.

Results are cached per (decision, baseline, candidate). The cache is only
an optimization: a miss recomputes from the scenario set, and a failed
cache write does not fail the request.
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models.db_models import DecisionDB, DeltaDirection, ScenarioID
from ...models.outcome import DeltaRange, DeltaValues, ScenarioDeltaView, ScenarioItem, find_scenario
from ...repositories import DecisionRepository, ScenarioDeltaRepository, ScenarioRepository
from .errors import NotFoundError
from .range_parser import parse_percent_range, parse_time_range


LEVEL_ORDER = {"low": 1, "medium": 2, "high": 3}

DEFAULT_BASELINE_SCENARIO = ScenarioID.BALANCED.value


def compare_level(baseline: str, candidate: str) -> DeltaDirection:
    base_val = LEVEL_ORDER.get((baseline or "").lower(), 0)
    cand_val = LEVEL_ORDER.get((candidate or "").lower(), 0)
    if cand_val > base_val:
        return DeltaDirection.UP
    if cand_val < base_val:
        return DeltaDirection.DOWN
    return DeltaDirection.SAME


def compute_scenario_delta(baseline: ScenarioItem, candidate: ScenarioItem) -> DeltaValues:
    base_rev = parse_percent_range(baseline.metrics.revenue_impact_range)
    cand_rev = parse_percent_range(candidate.metrics.revenue_impact_range)

    base_churn = parse_percent_range(baseline.metrics.churn_impact_range)
    cand_churn = parse_percent_range(candidate.metrics.churn_impact_range)

    base_time = parse_time_range(baseline.metrics.time_to_impact)
    cand_time = parse_time_range(candidate.metrics.time_to_impact)

    return DeltaValues(
        revenue_impact_pct=DeltaRange(min=cand_rev[0] - base_rev[0], max=cand_rev[1] - base_rev[1]),
        churn_impact_pp=DeltaRange(min=cand_churn[0] - base_churn[0], max=cand_churn[1] - base_churn[1]),
        time_to_impact_days=DeltaRange(
            min=float(cand_time[0] - base_time[0]),
            max=float(cand_time[1] - base_time[1]),
        ),
        risk_delta=compare_level(baseline.metrics.risk_label, candidate.metrics.risk_label),
        effort_delta=compare_level(baseline.metrics.execution_effort, candidate.metrics.execution_effort),
    )


class ScenarioDeltaEngine:
    """Computes and caches scenario comparisons."""

    def __init__(
        self,
        db_session: Session,
        scenario_repo: Optional[ScenarioRepository] = None,
        delta_repo: Optional[ScenarioDeltaRepository] = None,
        decision_repo: Optional[DecisionRepository] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.db = db_session
        self.scenarios = scenario_repo or ScenarioRepository(db_session)
        self.deltas = delta_repo or ScenarioDeltaRepository(db_session)
        self.decisions = decision_repo or DecisionRepository(db_session)
        self.logger = logger or logging.getLogger(__name__)

    def compute_delta(
        self,
        decision_id: str,
        user_id: str,
        baseline_id: str,
        candidate_id: str,
    ) -> ScenarioDeltaView:
        self._require_decision(decision_id, user_id)
        return self._compare(decision_id, user_id, baseline_id, candidate_id)

    def get_delta_for_inspect(self, decision_id: str, user_id: str, candidate_id: str) -> ScenarioDeltaView:
        """Compare a candidate against the chosen scenario, or "balanced" when none is chosen."""
        decision = self._require_decision(decision_id, user_id)
        baseline_id = decision.chosen_scenario_id or DEFAULT_BASELINE_SCENARIO
        return self._compare(decision_id, user_id, baseline_id, candidate_id)

    def _require_decision(self, decision_id: str, user_id: str) -> DecisionDB:
        # Cache rows carry no user id
        decision = self.decisions.get_by_id_and_user(decision_id, user_id)
        if decision is None:
            raise NotFoundError("decision not found")
        return decision

    def _compare(self, decision_id: str, user_id: str, baseline_id: str, candidate_id: str) -> ScenarioDeltaView:
        cached = self._read_cache(decision_id, baseline_id, candidate_id)
        if cached is not None:
            return cached

        scenario_set = self.scenarios.get_by_decision_id(decision_id, user_id)
        if scenario_set is None:
            raise NotFoundError("no scenarios found")

        baseline = find_scenario(scenario_set.scenarios, baseline_id)
        candidate = find_scenario(scenario_set.scenarios, candidate_id)
        if baseline is None or candidate is None:
            raise NotFoundError("baseline or candidate scenario not found")

        deltas = compute_scenario_delta(baseline, candidate)

        try:
            self.deltas.upsert(decision_id, baseline_id, candidate_id, deltas.to_dict())
        except SQLAlchemyError as e:
            self.logger.warning(
                f"Failed to cache delta {baseline_id}->{candidate_id} for decision {decision_id}: {e}"
            )

        return ScenarioDeltaView(
            baseline_scenario_id=baseline_id,
            candidate_scenario_id=candidate_id,
            deltas=deltas,
        )

    def _read_cache(self, decision_id: str, baseline_id: str, candidate_id: str) -> Optional[ScenarioDeltaView]:
        try:
            record = self.deltas.get(decision_id, baseline_id, candidate_id)
        except SQLAlchemyError as e:
            self.logger.warning(f"Delta cache read failed for decision {decision_id}: {e}")
            return None
        if record is None:
            return None
        return ScenarioDeltaView(
            baseline_scenario_id=baseline_id,
            candidate_scenario_id=candidate_id,
            deltas=DeltaValues.from_dict(record.deltas),
            cached=True,
        )
