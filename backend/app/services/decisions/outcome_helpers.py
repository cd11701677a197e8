"""
Inline Outcome Helpers

Pure functions over a decision's OutcomeV2 sequence.

A correction supersedes the outcome it names; the original is kept on the
decision but drops out of the "effective" view. These functions never
mutate their input.
"""
from typing import Dict, List, Optional

from ...models.decision import OutcomeV2


def calculate_delta_percent(before: Optional[float], after: Optional[float]) -> Optional[float]:
    """(after - before) / before * 100, or None when either is missing or before is 0."""
    if before is None or after is None or before == 0:
        return None
    return ((after - before) / before) * 100


def build_correction_map(outcomes: List[OutcomeV2]) -> Dict[str, str]:
    """Map corrected outcome id -> id of the correction that supersedes it."""
    corrections: Dict[str, str] = {}
    for outcome in outcomes:
        if outcome.is_correction and outcome.corrects_outcome_id:
            corrections[outcome.corrects_outcome_id] = outcome.id
    return corrections


def find_outcome(outcomes: List[OutcomeV2], outcome_id: str) -> Optional[OutcomeV2]:
    for outcome in outcomes:
        if outcome.id == outcome_id:
            return outcome
    return None


def get_effective_outcomes(outcomes: List[OutcomeV2]) -> List[OutcomeV2]:
    """
    Outcomes that have not been superseded.

    Keeps every correction plus every original with no correction pointing
    at it. Input order is preserved.
    """
    if not outcomes:
        return []

    superseded = build_correction_map(outcomes)
    return [o for o in outcomes if o.is_correction or o.id not in superseded]


def get_latest_effective_outcome(outcomes: List[OutcomeV2]) -> Optional[OutcomeV2]:
    """Most recent effective outcome by created_at (first wins on ties)."""
    latest = None
    for outcome in get_effective_outcomes(outcomes):
        if latest is None or outcome.created_at > latest.created_at:
            latest = outcome
    return latest


def get_outcome_summary(outcomes: List[OutcomeV2]) -> str:
    """Short text like "+12.5% revenue (30d)" for the latest effective outcome."""
    latest = get_latest_effective_outcome(outcomes)
    if latest is None:
        return ""

    if latest.delta_percent is not None:
        sign = "" if latest.delta_percent < 0 else "+"
        return f"{sign}{latest.delta_percent:.1f}% {latest.outcome_type} ({latest.timeframe_days}d)"

    return "Outcome recorded"
