"""
Free-Text Range Parser

Scenario metrics arrive as prose ("+15-25%", "30–60 days", "Stagnates").
These helpers pull numeric (min, max) bounds out of them.

Separators accepted between two numbers: hyphen, en-dash, minus sign.
"""
import re
from typing import Tuple

DEFAULT_HORIZON_DAYS = 90

_NEUTRAL_VALUES = {"", "n/a", "stagnates"}

_PERCENT_RANGE = re.compile(r"([+-]?\d+\.?\d*)[–\-−](\d+\.?\d*)")
_PERCENT_SINGLE = re.compile(r"([+-]?\d+\.?\d*)")

_DAYS_RANGE = re.compile(r"(\d+)[–\-−](\d+)")
_DAYS_SINGLE = re.compile(r"(\d+)")


def _is_neutral(text: str) -> bool:
    return text.lower() in _NEUTRAL_VALUES


def parse_percent_range(text: str) -> Tuple[float, float]:
    """
    Parse a signed numeric range.

    "+15-25%" -> (15.0, 25.0); "+15%" -> (15.0, 15.0);
    "Stagnates" / "N/A" / "" -> (0.0, 0.0). Anything unparseable -> (0.0, 0.0).
    """
    text = (text or "").strip()
    if _is_neutral(text):
        return 0.0, 0.0

    match = _PERCENT_RANGE.search(text)
    if match:
        return float(match.group(1)), float(match.group(2))

    match = _PERCENT_SINGLE.search(text)
    if match:
        value = float(match.group(1))
        return value, value

    return 0.0, 0.0


def parse_time_range(text: str) -> Tuple[int, int]:
    """Parse an unsigned day range; (0, 0) when nothing parses."""
    parsed = _match_days(text)
    return parsed if parsed is not None else (0, 0)


def extract_horizon_days(text: str) -> int:
    """
    Tracking horizon for a scenario's time to impact.

    Midpoint of a range, the value itself for a single number,
    DEFAULT_HORIZON_DAYS when nothing parses.
    """
    parsed = _match_days(text)
    if parsed is None:
        return DEFAULT_HORIZON_DAYS
    low, high = parsed
    return (low + high) // 2


def _match_days(text: str):
    text = (text or "").strip()
    if _is_neutral(text):
        return None

    match = _DAYS_RANGE.search(text)
    if match:
        return int(match.group(1)), int(match.group(2))

    match = _DAYS_SINGLE.search(text)
    if match:
        value = int(match.group(1))
        return value, value

    return None
