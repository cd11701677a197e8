"""
Append-only version history helpers.

A decision keeps a "current" pointer (context_version / verdict_version)
next to an ordered history array. The pointer must equal the history length
and the version number of the last entry; new versions are always pointer + 1.
"""
from typing import Any, Dict, List

from .errors import DecisionServiceError


def next_version(current: int, history: List[Dict[str, Any]]) -> int:
    """Version number for the next history entry. Refuses out-of-sync histories."""
    history = history or []
    last = history[-1].get("version") if history else 0
    if current != len(history) or last != current:
        raise DecisionServiceError(
            f"version history out of sync: pointer={current}, entries={len(history)}, last={last}"
        )
    return current + 1
