"""
app/utils/numbers.py

Null-safe arithmetic helpers used by every calculation layer.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any

_ROUNDING_CONTEXT = Context(prec=60)


def is_finite_number(value: Any) -> bool:
    """
    Return True for int/float values that are neither NaN nor infinite.

    Booleans are rejected even though ``bool`` subclasses ``int``.
    """

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def finite_or_zero(value: Any) -> float:
    """
    Contribution of one value to a sum: the value itself when finite, else 0.
    """

    return float(value) if is_finite_number(value) else 0.0


def safe_divide(numerator: float | None, denominator: float | None) -> float | None:
    """
    Divide, returning ``None`` for a zero, absent, or non-finite operand.

    The result is never ``0`` in place of an undefined value, never
    ``inf`` and never ``NaN``.
    """

    if not is_finite_number(numerator) or not is_finite_number(denominator):
        return None
    if denominator == 0:
        return None
    result = numerator / denominator
    return result if math.isfinite(result) else None


def round_half_up(value: float, places: int) -> float | None:
    """
    Fixed-point rounding with halves rounded away from zero.

    ``Decimal(repr(value))`` keeps the shortest decimal form of the float so
    that ``0.1234565`` rounds to ``0.123457`` instead of being dragged down
    by its binary representation.

    Returns ``None`` for ``inf`` and ``NaN``. Large finite values keep every
    integer digit: the context precision grows with the value's exponent.
    """

    if not math.isfinite(value):
        return None
    exact = Decimal(repr(float(value)))
    context = _ROUNDING_CONTEXT
    if exact.adjusted() + places + 1 > context.prec:
        context = Context(prec=exact.adjusted() + places + 2)
    quantum = Decimal(1).scaleb(-places)
    rounded = exact.quantize(quantum, rounding=ROUND_HALF_UP, context=context)
    return float(rounded)
