"""
Response shaping for decisions.

Turns ORM rows into plain dicts for the HTTP layer.
"""
from typing import Any, Dict

from ...models.db_models import DecisionDB, MeasurableOutcomeDB
from ...models.decision import OutcomeV2
from .outcome_helpers import get_outcome_summary


def _iso(value):
    return value.isoformat() if value else None


def _outcomes(decision: DecisionDB):
    return [OutcomeV2.from_dict(o) for o in decision.outcomes or []]


def decision_list_item(decision: DecisionDB) -> Dict[str, Any]:
    """Compact row for the decision list."""
    verdict = decision.verdict or {}
    return {
        "id": decision.id,
        "company_name": decision.company_name,
        "website_url": decision.website_url,
        "status": decision.status,
        "headline": verdict.get("headline", ""),
        "confidence_score": verdict.get("confidence_score"),
        "context_version": decision.context_version,
        "verdict_version": decision.verdict_version,
        "episode_status": decision.episode_status,
        "outcome_summary": get_outcome_summary(_outcomes(decision)),
        "created_at": _iso(decision.created_at),
        "updated_at": _iso(decision.updated_at),
    }


def decision_to_dict(decision: DecisionDB) -> Dict[str, Any]:
    return {
        "id": decision.id,
        "user_id": decision.user_id,
        "company_name": decision.company_name,
        "website_url": decision.website_url,
        "status": decision.status,
        "status_events": list(decision.status_events or []),
        "context": decision.context or {},
        "context_version": decision.context_version,
        "context_versions": list(decision.context_versions or []),
        "verdict": decision.verdict or {},
        "verdict_version": decision.verdict_version,
        "verdict_versions": list(decision.verdict_versions or []),
        "model_meta": decision.model_meta,
        "expected_impact": decision.expected_impact,
        "outcomes": list(decision.outcomes or []),
        "outcome_summary": get_outcome_summary(_outcomes(decision)),
        "scenarios_id": decision.scenarios_id,
        "chosen_scenario_id": decision.chosen_scenario_id,
        "chosen_scenario_at": _iso(decision.chosen_scenario_at),
        "outcome_id": decision.outcome_id,
        "episode_status": decision.episode_status,
        "created_at": _iso(decision.created_at),
        "updated_at": _iso(decision.updated_at),
    }


def measurable_outcome_to_dict(outcome: MeasurableOutcomeDB) -> Dict[str, Any]:
    return {
        "id": outcome.id,
        "verdict_id": outcome.verdict_id,
        "chosen_scenario_id": outcome.chosen_scenario_id,
        "status": outcome.status,
        "horizon_days": outcome.horizon_days,
        "kpis": list(outcome.kpis or []),
        "evidence_links": list(outcome.evidence_links or []),
        "summary": outcome.summary,
        "notes": outcome.notes,
        "created_at": _iso(outcome.created_at),
        "updated_at": _iso(outcome.updated_at),
    }
