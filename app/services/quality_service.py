"""
app/services/quality_service.py

Data-quality and completeness checks over a record set.

One rule set, two entry points:

    build_quality_report  – import time, over the whole freshly parsed dataset;
                            returns ``{summary, items}``.
    assess_completeness   – view time, over the filtered / active-week subset;
                            returns a flat list of :class:`QualityIssue`.

Rules are evaluated after aggregation and never short-circuit: every
violated rule produces its own finding. Findings are advisory and never
block KPI computation.

Rule table
----------
=============================  ==========================================  ===============
metric                         denominator / completeness condition        range (abnormal)
=============================  ==========================================  ===============
average_premium_per_policy     Σpolicy = 0                                 –
original_commercial_premium    commercial rows, Σdoc > 0, no usable        –
                               factor nor pre-discount premium
claim_frequency                Σpolicy = 0 or Σdoc = 0 or Σexpired = 0;    –
                               warning when claims exist but no case
                               count can be derived
expense_ratio                  Σdoc = 0; missing expense source            [0%, 50%]
expired_loss_ratio             Σexpired = 0                                [0%, 100%]
variable_cost_ratio            –                                           [0%, 150%]
marginal_contribution_ratio    –                                           [-50%, 100%]
plan_achievement_rate          Σplan = 0 (warning)                         –
=============================  ==========================================  ===============
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Final, Literal, Sequence

from app.domain.insurance_record import InsuranceRecord, IssueLevel
from app.services.aggregation_service import BaseAggregates, compute_base_aggregates
from app.utils.formatters import format_rate
from app.utils.numbers import is_finite_number
from kpi.variable_cost import VariableCostKPIFormula

logger = logging.getLogger(__name__)

QualityItemType = Literal["denominator", "abnormal", "info"]


# ---------------------------------------------------------------------------
# Ratio range table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RatioRange:
    """Inclusive sane range for one aggregate ratio."""

    metric: str
    label: str
    low: float
    high: float

    def is_abnormal(self, value: float | None) -> bool:
        return value is not None and (value > self.high or value < self.low)

    def describe(self) -> str:
        return f"[{format_rate(self.low, 0)}, {format_rate(self.high, 0)}]"


RATIO_RANGE_RULES: Final[tuple[RatioRange, ...]] = (
    RatioRange("expense_ratio", "Expense ratio", 0.0, 0.5),
    RatioRange("expired_loss_ratio", "Expired loss ratio", 0.0, 1.0),
    RatioRange("variable_cost_ratio", "Variable cost ratio", 0.0, 1.5),
    RatioRange("marginal_contribution_ratio", "Marginal contribution ratio", -0.5, 1.0),
)


# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QualityIssue:
    """
    One advisory finding: what is wrong, for which metric, how severe.
    """

    level: IssueLevel
    metric: str
    message: str
    type: QualityItemType = "denominator"


@dataclass(frozen=True)
class QualityItem:
    """One line of the import-time quality report."""

    type: QualityItemType
    metric: str
    detail: str


@dataclass(frozen=True)
class QualitySummary:
    total: int
    weeks: int


@dataclass(frozen=True)
class QualityReport:
    """
    Import-time report: dataset size plus every finding.
    """

    summary: QualitySummary
    items: list[QualityItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Rule evaluation
# ---------------------------------------------------------------------------


def _has_usable_commercial_basis(record: InsuranceRecord) -> bool:
    factor = record.commercial_auto_underwriting_factor
    return is_finite_number(record.original_commercial_premium) or (
        is_finite_number(factor) and factor != 0
    )


def _has_case_source(record: InsuranceRecord) -> bool:
    average = record.average_claim_payment
    return is_finite_number(record.case_count) or (is_finite_number(average) and average != 0)


def _has_expense_source(record: InsuranceRecord) -> bool:
    amount = record.row_expense_amount_in_10k
    return (is_finite_number(amount) and amount != 0) or is_finite_number(record.expense_ratio)


def _denominator_rules(
    records: Sequence[InsuranceRecord],
    sums: BaseAggregates,
) -> list[QualityIssue]:
    issues: list[QualityIssue] = []

    if not sums.sum_policy:
        issues.append(
            QualityIssue(
                level="error",
                metric="average_premium_per_policy",
                message="Σpolicy_count = 0: average premium per policy cannot be computed.",
            )
        )

    commercial = [r for r in records if r.is_commercial]
    if commercial and sums.sum_doc > 0 and not any(_has_usable_commercial_basis(r) for r in commercial):
        issues.append(
            QualityIssue(
                level="error",
                metric="original_commercial_premium",
                message=(
                    "Commercial rows carry neither an underwriting factor nor a "
                    "pre-discount premium: pre-discount premium cannot be computed."
                ),
            )
        )

    if not sums.sum_policy or not sums.sum_doc or not sums.sum_expired:
        issues.append(
            QualityIssue(
                level="error",
                metric="claim_frequency",
                message=(
                    "Missing denominator: claim frequency needs Σpolicy_count, "
                    "Σdocumented_premium and Σexpired_premium to be non-zero."
                ),
            )
        )
    elif sums.sum_claim > 0 and sums.sum_case == 0 and not any(_has_case_source(r) for r in records):
        issues.append(
            QualityIssue(
                level="warning",
                metric="claim_frequency",
                type="info",
                message=(
                    "Claims were paid but no row supplies a case count or an average "
                    "claim payment to derive one: claim frequency may read as 0."
                ),
            )
        )

    if not sums.sum_doc:
        issues.append(
            QualityIssue(
                level="error",
                metric="expense_ratio",
                message="Σdocumented_premium = 0: expense ratio cannot be computed.",
            )
        )
    elif sums.sum_expense_amount == 0 and not any(_has_expense_source(r) for r in records):
        issues.append(
            QualityIssue(
                level="error",
                metric="expense_ratio",
                type="info",
                message="No row supplies an expense amount or an expense ratio.",
            )
        )

    if not sums.sum_expired:
        issues.append(
            QualityIssue(
                level="error",
                metric="expired_loss_ratio",
                message="Σexpired_premium = 0: expired loss ratio cannot be computed.",
            )
        )

    if not sums.sum_plan:
        issues.append(
            QualityIssue(
                level="warning",
                metric="plan_achievement_rate",
                message="Σpremium_plan = 0: plan achievement rate cannot be computed.",
            )
        )

    return issues


def _range_rules(sums: BaseAggregates) -> list[QualityIssue]:
    ratios = VariableCostKPIFormula().calculate(asdict(sums))
    issues: list[QualityIssue] = []
    for rule in RATIO_RANGE_RULES:
        value = ratios[rule.metric]
        if rule.is_abnormal(value):
            issues.append(
                QualityIssue(
                    level="warning",
                    metric=rule.metric,
                    type="abnormal",
                    message=(
                        f"{rule.label} aggregates to {format_rate(value)}, "
                        f"outside {rule.describe()}."
                    ),
                )
            )
    return issues


def evaluate_quality_rules(records: Sequence[InsuranceRecord]) -> list[QualityIssue]:
    """
    Run every rule of the table over *records* and return all findings.
    """

    if not records:
        return [
            QualityIssue(
                level="error",
                metric="all",
                type="info",
                message="No data under the current selection; import data or change the filters.",
            )
        ]

    sums = compute_base_aggregates(records)
    issues = _denominator_rules(records, sums) + _range_rules(sums)
    logger.debug("Quality rules evaluated rows=%d findings=%d", len(records), len(issues))
    return issues


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def assess_completeness(records: Sequence[InsuranceRecord]) -> list[QualityIssue]:
    """
    View-time advisory over the subset currently on screen.

    The caller passes the filtered / active-week records; see
    :func:`app.services.aggregation_service.filter_records`.
    """

    return evaluate_quality_rules(records)


def build_quality_report(records: Sequence[InsuranceRecord]) -> QualityReport:
    """
    Import-time report over an entire dataset.

    An empty dataset reports its zero denominators (Σpolicy, Σdoc,
    Σexpired, Σplan) instead of the view-time ``all`` finding.
    """

    if records:
        findings = evaluate_quality_rules(records)
    else:
        findings = _denominator_rules(records, compute_base_aggregates(records))
    items = [
        QualityItem(type=issue.type, metric=issue.metric, detail=issue.message)
        for issue in findings
    ]
    return QualityReport(
        summary=QualitySummary(
            total=len(records),
            weeks=len({r.week_number for r in records}),
        ),
        items=items,
    )
