"""
app/domain/derivations.py

Row-level formulas for measures that can be computed from other fields.

Shared by the row normalizer (import time) and the base aggregator, which
applies the case-count and commercial-premium formulas again as a safety net
for records built outside the normalizer.

Every function returns ``None`` when its inputs are absent, when the
denominator is zero, or when the result would not be finite.
"""

from __future__ import annotations

import math

from app.utils.numbers import is_finite_number, round_half_up

TEN_THOUSAND: int = 10_000


def derive_expense_amount(
    documented_premium_in_10k: float,
    expense_ratio: float | None,
) -> float | None:
    """Expense amount (10k) = documented premium (10k) × expense ratio."""
    if not is_finite_number(expense_ratio):
        return None
    value = documented_premium_in_10k * expense_ratio
    return value if math.isfinite(value) else None


def derive_original_commercial_premium(
    documented_premium_in_10k: float,
    underwriting_factor: float | None,
) -> float | None:
    """Pre-discount commercial premium (10k) = documented premium ÷ underwriting factor."""
    if not is_finite_number(underwriting_factor) or underwriting_factor == 0:
        return None
    value = documented_premium_in_10k / underwriting_factor
    return value if math.isfinite(value) else None


def derive_case_count(
    total_claim_payment_in_10k: float,
    average_claim_payment: float | None,
) -> int | None:
    """Case count = round(total claim (10k) × 10000 ÷ average claim payment (yuan))."""
    if not is_finite_number(average_claim_payment) or average_claim_payment == 0:
        return None
    value = total_claim_payment_in_10k * TEN_THOUSAND / average_claim_payment
    if not math.isfinite(value):
        return None
    return int(round_half_up(value, 0))
