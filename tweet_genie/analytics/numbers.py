"""Numeric coercion helpers shared by every analytics builder.

Raw metric rows arrive from the API as loosely-typed JSON: counters may be
missing, null, strings or garbage. Everything downstream goes through
`to_number` / `safe_divide` so totals and ratios always stay finite.
"""
import math
from typing import Any

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DAY_ORDER = [1, 2, 3, 4, 5, 6, 0]  # Monday-first


def to_number(value: Any, fallback: float = 0) -> float:
    """Coerce `value` to a finite float, or return `fallback`."""
    if value is None or isinstance(value, (list, tuple, dict, set)):
        return fallback
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return fallback
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return fallback
    return parsed if math.isfinite(parsed) else fallback


def safe_divide(numerator: Any, denominator: Any, fallback: float = 0) -> float:
    den = to_number(denominator)
    if den <= 0:
        return fallback
    return to_number(numerator) / den


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round like JavaScript's Math.round (halves go up, not to even)."""
    return int(math.floor(value + 0.5))


def to_int(value: Any, fallback: int = -1) -> int:
    """Coerce to an integral index; non-integral or non-finite values give `fallback`."""
    parsed = to_number(value, fallback)
    if parsed != int(parsed):
        return fallback
    return int(parsed)


def format_day_name(day_of_week: Any) -> str:
    day = to_int(day_of_week, 0)
    if 0 <= day < len(DAY_NAMES):
        return DAY_NAMES[day]
    return "Unknown"


def format_hour(hour: int) -> str:
    return f"{hour:02d}:00"


def to_title_case(value: Any) -> str:
    """'viral_reach' -> 'Viral Reach'."""
    text = str(value or "").replace("_", " ")
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))
