"""
Tests for OutcomeService: applying scenarios, KPI seeding and outcome updates.
"""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.models.db_models import DecisionDB, KPIKey, KPIUnit
from app.models.outcome import EvidenceLink, OutcomeKPI, OutcomeUpdate
from app.repositories import DecisionRepository
from app.services.decisions import NotFoundError, OutcomeService, ValidationError
from app.services.decisions.outcome_service import get_episode_status, get_unit_for_kpi


USER_ID = "user-1"


def make_decision(db, primary_kpi=None, user_id=USER_ID):
    context = {}
    if primary_kpi is not None:
        context["primary_kpi"] = {"value": primary_kpi, "source": "user"}
    decision = DecisionRepository(db).create(DecisionDB(
        user_id=user_id,
        website_url="https://acme.io",
        company_name="Acme",
        context=context,
        verdict={"headline": "Raise prices"},
        context_versions=[],
        verdict_versions=[],
        status_events=[],
        outcomes=[],
    ))
    db.commit()
    return decision


@pytest.fixture
def service(db):
    return OutcomeService(db)


# =============================================================================
# TEST: APPLY SCENARIO
# =============================================================================

class TestApplyScenario:

    def test_seeds_outcome(self, db, service, seed_scenarios):
        decision = make_decision(db, primary_kpi="arpu")
        seed_scenarios(decision.id)

        outcome = service.apply_scenario(decision.id, USER_ID, "balanced")

        assert outcome.status == "pending"
        assert outcome.chosen_scenario_id == "balanced"
        assert outcome.horizon_days == 45
        keys = [k["key"] for k in outcome.kpis]
        assert keys == ["Revenue", "Churn", "ARPA"]

        revenue, churn, arpa = outcome.kpis
        assert revenue["target"] == 15.0
        assert revenue["unit"] == "%"
        assert revenue["notes"] == "Expected impact: +10-20%"
        assert churn["target"] == 1.5
        assert churn["unit"] == "pp"
        assert arpa["unit"] == "€"
        assert arpa["confidence"] == "low"
        assert arpa["target"] == 0.0

    def test_decision_updated(self, db, service, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id)

        outcome = service.apply_scenario(decision.id, USER_ID, "aggressive")

        assert decision.chosen_scenario_id == "aggressive"
        assert decision.chosen_scenario_at is not None
        assert decision.outcome_id == outcome.id
        assert decision.episode_status == "path_chosen"

    def test_primary_kpi_defaults_to_mrr(self, db, service, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id)

        outcome = service.apply_scenario(decision.id, USER_ID, "balanced")

        assert outcome.kpis[-1]["key"] == "MRR"

    @pytest.mark.parametrize("primary_kpi", ["churn_reduction"])
    def test_churn_primary_not_duplicated(self, db, service, seed_scenarios, primary_kpi):
        decision = make_decision(db, primary_kpi=primary_kpi)
        seed_scenarios(decision.id)

        outcome = service.apply_scenario(decision.id, USER_ID, "balanced")

        assert [k["key"] for k in outcome.kpis] == ["Revenue", "Churn"]

    def test_reapply_replaces_outcome(self, db, service, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id)

        first = service.apply_scenario(decision.id, USER_ID, "balanced")
        second = service.apply_scenario(decision.id, USER_ID, "conservative")

        assert second.id == first.id
        assert second.chosen_scenario_id == "conservative"
        assert second.horizon_days == 60
        assert second.kpis[0]["target"] == 5.0

    def test_unknown_horizon_defaults(self, db, service, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id)

        outcome = service.apply_scenario(decision.id, USER_ID, "do_nothing")

        assert outcome.horizon_days == 90
        assert outcome.kpis[0]["target"] == 0.0

    def test_invalid_scenario_id(self, db, service):
        decision = make_decision(db)
        with pytest.raises(ValidationError):
            service.apply_scenario(decision.id, USER_ID, "yolo")

    def test_missing_decision(self, service):
        with pytest.raises(NotFoundError):
            service.apply_scenario("missing", USER_ID, "balanced")

    def test_missing_scenario_set(self, db, service):
        decision = make_decision(db)
        with pytest.raises(NotFoundError):
            service.apply_scenario(decision.id, USER_ID, "balanced")

    def test_scenario_not_in_set(self, db, service, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id, scenarios=[{"scenario_id": "balanced", "metrics": {}}])

        with pytest.raises(NotFoundError):
            service.apply_scenario(decision.id, USER_ID, "aggressive")

    def test_link_failure_is_not_fatal(self, db, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id)
        decision_repo = MagicMock(wraps=DecisionRepository(db))
        decision_repo.link_outcome.side_effect = SQLAlchemyError("link failed")
        logger = MagicMock()
        service = OutcomeService(db, decision_repo=decision_repo, logger=logger)

        outcome = service.apply_scenario(decision.id, USER_ID, "balanced")

        assert outcome.id
        logger.warning.assert_called_once()


# =============================================================================
# TEST: UPDATE OUTCOME
# =============================================================================

class TestUpdateOutcome:

    def test_requires_applied_scenario(self, db, service):
        decision = make_decision(db)
        with pytest.raises(NotFoundError, match="apply a scenario first"):
            service.update_outcome(decision.id, USER_ID, OutcomeUpdate(status="achieved"))

    def test_kpi_deltas(self, db, service, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id)
        service.apply_scenario(decision.id, USER_ID, "balanced")

        outcome = service.update_outcome(decision.id, USER_ID, OutcomeUpdate(kpis=[
            OutcomeKPI(key=KPIKey.MRR, unit=KPIUnit.EUR, baseline=1000.0, actual=1250.0),
            OutcomeKPI(key=KPIKey.CHURN, unit=KPIUnit.PP, baseline=0.0, actual=1.0),
            OutcomeKPI(key=KPIKey.NPS, unit=KPIUnit.COUNT, baseline=30.0),
        ]))

        mrr, churn, nps = outcome.kpis
        assert mrr["delta"] == 250.0
        assert mrr["delta_pct"] == 25.0
        assert churn["delta"] == 1.0
        assert churn["delta_pct"] is None
        assert nps["delta"] is None
        assert decision.episode_status == "outcome_saved"

    def test_status_and_text_fields(self, db, service, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id)
        service.apply_scenario(decision.id, USER_ID, "balanced")

        outcome = service.update_outcome(decision.id, USER_ID, OutcomeUpdate(
            status="achieved",
            evidence_links=[EvidenceLink(label="Dashboard", url="https://metrics.example.com")],
            summary="Revenue up",
            notes="Q2 rollout",
        ))

        assert outcome.status == "achieved"
        assert outcome.evidence_links == [{"label": "Dashboard", "url": "https://metrics.example.com"}]
        assert outcome.summary == "Revenue up"
        assert outcome.notes == "Q2 rollout"
        assert decision.episode_status == "outcome_saved"

    def test_unknown_status_ignored(self, db, service, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id)
        service.apply_scenario(decision.id, USER_ID, "balanced")

        outcome = service.update_outcome(decision.id, USER_ID, OutcomeUpdate(status="exploded"))

        assert outcome.status == "pending"
        assert decision.episode_status == "path_chosen"

    def test_episode_update_failure_is_not_fatal(self, db, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id)
        OutcomeService(db).apply_scenario(decision.id, USER_ID, "balanced")
        decision_repo = MagicMock(wraps=DecisionRepository(db))
        decision_repo.update_episode_status.side_effect = SQLAlchemyError("down")
        logger = MagicMock()
        service = OutcomeService(db, decision_repo=decision_repo, logger=logger)

        outcome = service.update_outcome(decision.id, USER_ID, OutcomeUpdate(status="missed"))

        assert outcome.status == "missed"
        logger.warning.assert_called_once()

    def test_recorder_interface(self, db, service, seed_scenarios):
        decision = make_decision(db)
        assert service.list_effective_outcomes(decision.id, USER_ID) == []

        seed_scenarios(decision.id)
        service.apply_scenario(decision.id, USER_ID, "balanced")
        service.record_outcome(decision.id, USER_ID, OutcomeUpdate(summary="done"))

        outcomes = service.list_effective_outcomes(decision.id, USER_ID)
        assert len(outcomes) == 1
        assert outcomes[0].summary == "done"


# =============================================================================
# TEST: DECISION OWNERSHIP
# =============================================================================

class TestOutcomeOwnership:

    @pytest.fixture
    def applied(self, db, service, seed_scenarios):
        decision = make_decision(db)
        seed_scenarios(decision.id)
        service.apply_scenario(decision.id, USER_ID, "balanced")
        db.commit()
        return decision

    def test_other_user_cannot_read_or_update(self, service, applied):
        with pytest.raises(NotFoundError, match="decision not found"):
            service.get_outcome(applied.id, "user-2")
        with pytest.raises(NotFoundError, match="decision not found"):
            service.update_outcome(applied.id, "user-2", OutcomeUpdate(summary="mine now"))

    def test_deleted_decision_hides_outcome(self, db, service, applied):
        DecisionRepository(db).soft_delete(applied.id, USER_ID)
        db.commit()

        with pytest.raises(NotFoundError, match="decision not found"):
            service.get_outcome(applied.id, USER_ID)
        with pytest.raises(NotFoundError, match="decision not found"):
            service.update_outcome(applied.id, USER_ID, OutcomeUpdate(status="achieved"))
        with pytest.raises(NotFoundError):
            service.list_effective_outcomes(applied.id, USER_ID)

    def test_missing_decision(self, service):
        with pytest.raises(NotFoundError, match="decision not found"):
            service.get_outcome("does-not-exist", USER_ID)


# =============================================================================
# TEST: HELPERS
# =============================================================================

class TestHelpers:

    @pytest.mark.parametrize("key,unit", [
        (KPIKey.CHURN, KPIUnit.PERCENT),
        (KPIKey.RETENTION, KPIUnit.PERCENT),
        (KPIKey.LTV, KPIUnit.EUR),
        (KPIKey.NPS, KPIUnit.COUNT),
        (KPIKey.REVENUE, KPIUnit.PERCENT),
    ])
    def test_default_units(self, key, unit):
        assert get_unit_for_kpi(key) == unit

    def test_episode_status(self):
        assert get_episode_status(False, None, False).value == "draft"
        assert get_episode_status(True, None, False).value == "explored"
        assert get_episode_status(True, "balanced", False).value == "path_chosen"
        assert get_episode_status(True, "balanced", True).value == "outcome_saved"
