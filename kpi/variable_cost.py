"""
kpi/variable_cost.py

Variable-cost KPI formula implementation for auto-insurance portfolios.

Expected inputs
---------------
The eight base sums of :class:`app.services.aggregation_service.BaseAggregates`:
``sum_doc``, ``sum_expired``, ``sum_claim``, ``sum_case``, ``sum_policy``,
``sum_expense_amount``, ``sum_plan``, ``sum_commercial_original``.

Formulas (evaluated in this order)
----------------------------------
Expense ratio                 = Σexpense_amount / Σdoc
Expired loss ratio            = Σclaim / Σexpired
Variable cost ratio           = expense ratio + expired loss ratio
Marginal contribution ratio   = 1 - variable cost ratio
Marginal contribution amount  = Σexpired × marginal contribution ratio
Average premium per policy    = Σdoc × 10000 / Σpolicy
Average claim payment         = Σclaim × 10000 / Σcase
Claim frequency               = (Σcase / Σpolicy) × (Σexpired / Σdoc)
Plan achievement rate         = Σdoc / Σplan

The monetary sums are reported as-is. Division by zero yields ``None``
for the affected metric and every metric derived from it.
"""

from __future__ import annotations

from typing import Any

from app.utils.numbers import safe_divide
from kpi.base import BaseKPIFormula

_SENTINEL = None  # value stored when a metric cannot be computed
_TEN_THOUSAND = 10_000


class VariableCostKPIFormula(BaseKPIFormula):
    """
    Deterministic variable-cost KPI calculations with null-safe division.

    All arithmetic is self-contained. No I/O, no logging, no side effects.
    Results are unrounded; rounding belongs to the KPI service.
    """

    def calculate(self, inputs: dict[str, Any]) -> dict[str, float | None]:
        """
        Compute the 16 variable-cost metrics from one period's base sums.

        Returns
        -------
        dict
            Keys are the canonical metric keys. A metric is ``None`` when
            its formula divides by zero.
        """
        sum_doc: float = inputs["sum_doc"]
        sum_expired: float = inputs["sum_expired"]
        sum_claim: float = inputs["sum_claim"]
        sum_case: float = inputs["sum_case"]
        sum_policy: float = inputs["sum_policy"]
        sum_expense_amount: float = inputs["sum_expense_amount"]
        sum_plan: float = inputs["sum_plan"]
        sum_commercial_original: float = inputs["sum_commercial_original"]

        expense_ratio = safe_divide(sum_expense_amount, sum_doc)
        expired_loss_ratio = safe_divide(sum_claim, sum_expired)
        variable_cost_ratio = _variable_cost_ratio(expense_ratio, expired_loss_ratio)
        marginal_contribution_ratio = _marginal_contribution_ratio(variable_cost_ratio)
        marginal_contribution_amount = _marginal_contribution_amount(
            sum_expired, marginal_contribution_ratio
        )

        return {
            "documented_premium": sum_doc,
            "expired_net_premium": sum_expired,
            "average_premium_per_policy": safe_divide(sum_doc * _TEN_THOUSAND, sum_policy),
            "original_commercial_premium": sum_commercial_original,
            "total_claim_payment": sum_claim,
            "average_claim_payment": safe_divide(sum_claim * _TEN_THOUSAND, sum_case),
            "case_count": sum_case,
            "claim_frequency": _claim_frequency(sum_case, sum_policy, sum_expired, sum_doc),
            "expense_amount": sum_expense_amount,
            "marginal_contribution_amount": marginal_contribution_amount,
            "premium_plan": sum_plan,
            "expense_ratio": expense_ratio,
            "expired_loss_ratio": expired_loss_ratio,
            "variable_cost_ratio": variable_cost_ratio,
            "marginal_contribution_ratio": marginal_contribution_ratio,
            "plan_achievement_rate": safe_divide(sum_doc, sum_plan),
        }


# ---------------------------------------------------------------------------
# Pure formula functions
# ---------------------------------------------------------------------------


def _variable_cost_ratio(
    expense_ratio: float | None,
    expired_loss_ratio: float | None,
) -> float | None:
    """
    Variable Cost Ratio = expense ratio + expired loss ratio.

    Returns None when either component is None.
    """
    if expense_ratio is None or expired_loss_ratio is None:
        return _SENTINEL
    return expense_ratio + expired_loss_ratio


def _marginal_contribution_ratio(variable_cost_ratio: float | None) -> float | None:
    """Marginal Contribution Ratio = 1 - variable cost ratio."""
    if variable_cost_ratio is None:
        return _SENTINEL
    return 1 - variable_cost_ratio


def _marginal_contribution_amount(
    sum_expired: float,
    marginal_contribution_ratio: float | None,
) -> float | None:
    """Marginal Contribution Amount (10k) = Σexpired × marginal contribution ratio."""
    if marginal_contribution_ratio is None:
        return _SENTINEL
    return sum_expired * marginal_contribution_ratio


def _claim_frequency(
    sum_case: float,
    sum_policy: float,
    sum_expired: float,
    sum_doc: float,
) -> float | None:
    """
    Claim Frequency = (Σcase / Σpolicy) × (Σexpired / Σdoc).

    A per-policy claim rate scaled by the premium maturity ratio. Returns
    None when either factor divides by zero.
    """
    per_policy = safe_divide(sum_case, sum_policy)
    maturity = safe_divide(sum_expired, sum_doc)
    if per_policy is None or maturity is None:
        return _SENTINEL
    return per_policy * maturity
