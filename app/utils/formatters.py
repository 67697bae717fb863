"""
app/utils/formatters.py

Display formatting for metric values. ``None`` always renders as ``"-"``.
"""

from __future__ import annotations

from app.utils.numbers import is_finite_number, round_half_up

MISSING = "-"


def format_whole(value: float | None) -> str:
    """Whole number with thousands grouping; used for 10k amounts, yuan and counts."""
    rounded = round_half_up(value, 0) if is_finite_number(value) else None
    if rounded is None:
        return MISSING
    return f"{int(rounded):,}"


def format_rate(value: float | None, digits: int = 1) -> str:
    """
    Render a decimal fraction as a percentage, e.g. ``0.1234 → "12.3%"``.
    """

    rounded = round_half_up(value * 100, digits) if is_finite_number(value) else None
    if rounded is None:
        return MISSING
    return f"{rounded:.{digits}f}%"


def format_metric(value: float | None, unit: str) -> str:
    """
    Format *value* according to a metric unit from the KPI catalogue.
    """

    if unit == "ratio":
        return format_rate(value)
    return format_whole(value)
