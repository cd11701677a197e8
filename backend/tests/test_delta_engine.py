"""
Tests for the Scenario Delta Engine and its cache.
"""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.models.db_models import DecisionDB, DeltaDirection, ScenarioDeltaDB
from app.models.outcome import ScenarioItem, ScenarioMetrics
from app.repositories import DecisionRepository, ScenarioDeltaRepository, ScenarioRepository
from app.services.decisions import NotFoundError, ScenarioDeltaEngine
from app.services.decisions.delta_engine import compare_level, compute_scenario_delta


USER_ID = "user-1"


def scenario(scenario_id="balanced", **metrics):
    return ScenarioItem(scenario_id=scenario_id, metrics=ScenarioMetrics(**metrics))


@pytest.fixture
def decision(db):
    decision = DecisionRepository(db).create(DecisionDB(
        user_id=USER_ID,
        website_url="https://acme.io",
        context={},
        verdict={},
        context_versions=[],
        verdict_versions=[],
        status_events=[],
        outcomes=[],
    ))
    db.commit()
    return decision


# =============================================================================
# TEST: PURE COMPUTATION
# =============================================================================

class TestComputeScenarioDelta:

    def test_bounds_differenced_independently(self):
        baseline = scenario(revenue_impact_range="+10-20%")
        candidate = scenario(revenue_impact_range="+15-30%")

        deltas = compute_scenario_delta(baseline, candidate)

        assert deltas.revenue_impact_pct.min == 5.0
        assert deltas.revenue_impact_pct.max == 10.0

    def test_identical_scenarios(self):
        item = scenario(
            revenue_impact_range="+10-20%", churn_impact_range="+1-2%",
            time_to_impact="30-60 days", risk_label="medium", execution_effort="high",
        )

        deltas = compute_scenario_delta(item, item)

        assert deltas.revenue_impact_pct.to_dict() == {"min": 0.0, "max": 0.0}
        assert deltas.churn_impact_pp.to_dict() == {"min": 0.0, "max": 0.0}
        assert deltas.time_to_impact_days.to_dict() == {"min": 0.0, "max": 0.0}
        assert deltas.risk_delta == DeltaDirection.SAME
        assert deltas.effort_delta == DeltaDirection.SAME

    def test_time_range_unparseable_is_zero(self):
        deltas = compute_scenario_delta(
            scenario(time_to_impact="N/A"),
            scenario(time_to_impact="30-60 days"),
        )
        assert deltas.time_to_impact_days.to_dict() == {"min": 30.0, "max": 60.0}

    def test_stagnant_baseline(self):
        deltas = compute_scenario_delta(
            scenario(revenue_impact_range="Stagnates"),
            scenario(revenue_impact_range="+5%"),
        )
        assert deltas.revenue_impact_pct.to_dict() == {"min": 5.0, "max": 5.0}


class TestCompareLevel:

    @pytest.mark.parametrize("baseline,candidate,expected", [
        ("low", "high", DeltaDirection.UP),
        ("High", "medium", DeltaDirection.DOWN),
        ("medium", "MEDIUM", DeltaDirection.SAME),
        ("unknown", "", DeltaDirection.SAME),
        ("", "low", DeltaDirection.UP),
        ("low", "none", DeltaDirection.DOWN),
    ])
    def test_levels(self, baseline, candidate, expected):
        assert compare_level(baseline, candidate) == expected


# =============================================================================
# TEST: ENGINE + CACHE
# =============================================================================

class TestScenarioDeltaEngine:

    def test_compute_and_cache(self, db, decision, seed_scenarios):
        seed_scenarios(decision.id)
        engine = ScenarioDeltaEngine(db)

        view = engine.compute_delta(decision.id, USER_ID, "balanced", "aggressive")

        assert view.cached is False
        assert view.deltas.revenue_impact_pct.to_dict() == {"min": 5.0, "max": 10.0}
        assert view.deltas.churn_impact_pp.to_dict() == {"min": 1.0, "max": 2.0}
        assert view.deltas.time_to_impact_days.to_dict() == {"min": -16.0, "max": -15.0}
        assert view.deltas.risk_delta == DeltaDirection.UP
        assert view.deltas.effort_delta == DeltaDirection.UP
        assert db.query(ScenarioDeltaDB).count() == 1

    def test_second_call_is_served_from_cache(self, db, decision, seed_scenarios):
        seed_scenarios(decision.id)
        scenario_repo = MagicMock(wraps=ScenarioRepository(db))
        engine = ScenarioDeltaEngine(db, scenario_repo=scenario_repo)

        first = engine.compute_delta(decision.id, USER_ID, "balanced", "conservative")
        scenario_repo.reset_mock()
        second = engine.compute_delta(decision.id, USER_ID, "balanced", "conservative")

        assert scenario_repo.get_by_decision_id.call_count == 0
        assert second.cached is True
        assert second.to_dict() == first.to_dict()

    def test_cache_key_is_ordered(self, db, decision, seed_scenarios):
        seed_scenarios(decision.id)
        engine = ScenarioDeltaEngine(db)

        forward = engine.compute_delta(decision.id, USER_ID, "balanced", "aggressive")
        backward = engine.compute_delta(decision.id, USER_ID, "aggressive", "balanced")

        assert backward.cached is False
        assert backward.deltas.revenue_impact_pct.min == -forward.deltas.revenue_impact_pct.min

    def test_missing_scenario(self, db, decision, seed_scenarios):
        seed_scenarios(decision.id)
        engine = ScenarioDeltaEngine(db)

        with pytest.raises(NotFoundError):
            engine.compute_delta(decision.id, USER_ID, "balanced", "moonshot")

    def test_missing_scenario_set(self, db, decision):
        with pytest.raises(NotFoundError):
            ScenarioDeltaEngine(db).compute_delta(decision.id, USER_ID, "balanced", "aggressive")

    def test_cache_write_failure_still_returns(self, db, decision, seed_scenarios):
        seed_scenarios(decision.id)
        delta_repo = MagicMock(wraps=ScenarioDeltaRepository(db))
        delta_repo.upsert.side_effect = SQLAlchemyError("write failed")
        logger = MagicMock()
        engine = ScenarioDeltaEngine(db, delta_repo=delta_repo, logger=logger)

        view = engine.compute_delta(decision.id, USER_ID, "balanced", "aggressive")

        assert view.deltas.revenue_impact_pct.min == 5.0
        logger.warning.assert_called_once()

    def test_inspect_defaults_to_balanced(self, db, decision, seed_scenarios):
        seed_scenarios(decision.id)

        view = ScenarioDeltaEngine(db).get_delta_for_inspect(decision.id, USER_ID, "aggressive")

        assert view.baseline_scenario_id == "balanced"

    def test_inspect_uses_chosen_scenario(self, db, decision, seed_scenarios):
        seed_scenarios(decision.id)
        DecisionRepository(db).set_chosen_scenario(decision.id, USER_ID, "conservative", "path_chosen")

        view = ScenarioDeltaEngine(db).get_delta_for_inspect(decision.id, USER_ID, "aggressive")

        assert view.baseline_scenario_id == "conservative"
        assert view.deltas.risk_delta == DeltaDirection.UP

    def test_inspect_missing_decision(self, db):
        with pytest.raises(NotFoundError):
            ScenarioDeltaEngine(db).get_delta_for_inspect("missing", USER_ID, "aggressive")

    def test_cached_delta_hidden_from_other_user(self, db, decision, seed_scenarios):
        seed_scenarios(decision.id)
        engine = ScenarioDeltaEngine(db)
        engine.compute_delta(decision.id, USER_ID, "balanced", "aggressive")
        db.commit()

        with pytest.raises(NotFoundError, match="decision not found"):
            engine.compute_delta(decision.id, "intruder", "balanced", "aggressive")

    def test_deleted_decision_has_no_deltas(self, db, decision, seed_scenarios):
        seed_scenarios(decision.id)
        engine = ScenarioDeltaEngine(db)
        engine.compute_delta(decision.id, USER_ID, "balanced", "aggressive")
        DecisionRepository(db).soft_delete(decision.id, USER_ID)
        db.commit()

        with pytest.raises(NotFoundError, match="decision not found"):
            engine.compute_delta(decision.id, USER_ID, "balanced", "aggressive")
        with pytest.raises(NotFoundError, match="decision not found"):
            engine.compute_delta(decision.id, USER_ID, "balanced", "conservative")
        with pytest.raises(NotFoundError):
            engine.get_delta_for_inspect(decision.id, USER_ID, "aggressive")
