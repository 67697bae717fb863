"""
insight/variable_cost_rules.py

Deterministic, rule-based insight engine for variable-cost KPIs.
"""

from __future__ import annotations

from typing import List

from app.services.kpi_service import KPIResult
from app.services.quality_service import RATIO_RANGE_RULES
from app.utils.formatters import format_rate
from insight.base import BaseInsightEngine, InsightResult


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

_HIGH_LOSS_RATIO: float = 0.70
_HIGH_VARIABLE_COST_RATIO: float = 0.80
_LOW_PLAN_ACHIEVEMENT_RATE: float = 0.80

# (metric key, label) reported in the trend paragraph, in order.
_TREND_METRICS: tuple[tuple[str, str], ...] = (
    ("documented_premium", "Documented premium"),
    ("expired_loss_ratio", "Expired loss ratio"),
    ("variable_cost_ratio", "Variable cost ratio"),
)

_TREND_FALLBACK = "Trend: not enough data to compare with the previous week."
_ANOMALY_FALLBACK = "Anomalies: no significant anomaly detected."
_RECOMMENDATION_FALLBACK = (
    "keep the current pace, watch key metric swings and keep optimizing the business mix"
)


def _direction(delta_pct: float) -> str:
    return "rose" if delta_pct >= 0 else "fell"


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class VariableCostInsightEngine(BaseInsightEngine):
    """
    Rule-based insight engine for the weekly variable-cost dashboard.

    Paragraphs
    ----------
    1. Trend          – week-over-week change of documented premium, expired
                        loss ratio and variable cost ratio; metrics without
                        a percentage delta are omitted.
    2. Anomaly        – current ratios outside the quality range table.
    3. Recommendation – evaluated in order:
                        loss ratio > 70%          → risk review
                        variable cost ratio > 80% → expense-structure optimization
                        plan achievement < 80%    → plan acceleration
                        none triggered            → default sentence
    """

    def analyze(self, kpi_result: KPIResult) -> InsightResult:
        if not isinstance(kpi_result, KPIResult):
            raise ValueError("kpi_result must be a KPIResult.")

        anomalies = self.detect_anomalies(kpi_result)

        return InsightResult(
            trend=self._trend_paragraph(kpi_result),
            anomaly=(
                f"Anomalies: {'; '.join(anomalies)}." if anomalies else _ANOMALY_FALLBACK
            ),
            recommendation=self._recommendation_paragraph(kpi_result),
            anomalies=tuple(anomalies),
        )

    @staticmethod
    def detect_anomalies(kpi_result: KPIResult) -> List[str]:
        """
        One line per current ratio outside its range in ``RATIO_RANGE_RULES``.
        """
        found: List[str] = []
        for rule in RATIO_RANGE_RULES:
            value = kpi_result.current_value(rule.metric)
            if rule.is_abnormal(value):
                found.append(f"{rule.label} abnormal at {format_rate(value)}")
        return found

    @staticmethod
    def _trend_paragraph(kpi_result: KPIResult) -> str:
        parts: List[str] = []
        for key, label in _TREND_METRICS:
            metric = kpi_result.get(key)
            if metric is None or metric.delta_pct is None:
                continue
            parts.append(
                f"{label} {_direction(metric.delta_pct)} "
                f"{format_rate(abs(metric.delta_pct))} week over week"
            )
        if not parts:
            return _TREND_FALLBACK
        return f"Trend: {'; '.join(parts)}."

    @staticmethod
    def _recommendation_paragraph(kpi_result: KPIResult) -> str:
        loss_ratio = kpi_result.current_value("expired_loss_ratio")
        variable_cost = kpi_result.current_value("variable_cost_ratio")
        plan_rate = kpi_result.current_value("plan_achievement_rate")

        suggestions: List[str] = []

        # Rule 1 – High loss ratio
        if loss_ratio is not None and loss_ratio > _HIGH_LOSS_RATIO:
            suggestions.append(
                "focus on high-loss organizations and coverages with a dedicated "
                "risk review linking underwriting and claims"
            )

        # Rule 2 – High variable cost
        if variable_cost is not None and variable_cost > _HIGH_VARIABLE_COST_RATIO:
            suggestions.append(
                "optimize the expense structure and channel strategy to contain variable cost"
            )

        # Rule 3 – Plan behind schedule
        if plan_rate is not None and plan_rate < _LOW_PLAN_ACHIEVEMENT_RATE:
            suggestions.append(
                "accelerate premium plan delivery in key organizations and channels"
            )

        if not suggestions:
            suggestions.append(_RECOMMENDATION_FALLBACK)
        return f"Recommendations: {'; '.join(suggestions)}."


_DEFAULT_ENGINE = VariableCostInsightEngine()


def generate_insights(kpi_result: KPIResult) -> InsightResult:
    """
    Module-level shortcut for :meth:`VariableCostInsightEngine.analyze`.
    """

    return _DEFAULT_ENGINE.analyze(kpi_result)
