"""
tests/test_insight_engine.py

Golden-output tests for the rule-based insight engine.
"""

from __future__ import annotations

import pytest

from app.domain.insurance_record import InsuranceRecord
from app.services.kpi_service import compute_kpis
from insight.variable_cost_rules import VariableCostInsightEngine, generate_insights


def _week(week: int, **measures) -> InsuranceRecord:
    return InsuranceRecord(week_number=week, **measures)


@pytest.fixture()
def two_weeks() -> list[InsuranceRecord]:
    return [
        _week(
            9,
            documented_premium_in_10k=100.0,
            expired_net_premium_in_10k=80.0,
            total_claim_payment_in_10k=40.0,
            row_expense_amount_in_10k=20.0,
            premium_plan=120.0,
            case_count=4,
            policy_count=10,
        ),
        _week(
            10,
            documented_premium_in_10k=150.0,
            expired_net_premium_in_10k=100.0,
            total_claim_payment_in_10k=80.0,
            row_expense_amount_in_10k=30.0,
            premium_plan=200.0,
            case_count=6,
            policy_count=12,
        ),
    ]


class TestGoldenReport:
    def test_full_report(self, two_weeks: list[InsuranceRecord]) -> None:
        result = generate_insights(compute_kpis(two_weeks, 10))

        assert result.report == "\n".join(
            [
                "Trend: Documented premium rose 50.0% week over week; "
                "Expired loss ratio rose 60.0% week over week; "
                "Variable cost ratio rose 42.9% week over week.",
                "Anomalies: no significant anomaly detected.",
                "Recommendations: focus on high-loss organizations and coverages with a "
                "dedicated risk review linking underwriting and claims; optimize the expense "
                "structure and channel strategy to contain variable cost; accelerate premium "
                "plan delivery in key organizations and channels.",
            ]
        )
        assert result.anomalies == ()

    def test_same_input_same_text(self, two_weeks: list[InsuranceRecord]) -> None:
        kpis = compute_kpis(two_weeks, 10)
        assert generate_insights(kpis) == generate_insights(kpis)
        assert VariableCostInsightEngine().analyze(kpis).report == generate_insights(kpis).report


class TestParagraphs:
    def test_falling_metric(self) -> None:
        records = [
            _week(9, documented_premium_in_10k=200.0),
            _week(10, documented_premium_in_10k=150.0),
        ]
        trend = generate_insights(compute_kpis(records, 10)).trend
        assert trend == "Trend: Documented premium fell 25.0% week over week."

    def test_no_previous_week_falls_back(self) -> None:
        records = [_week(10, documented_premium_in_10k=150.0)]
        trend = generate_insights(compute_kpis(records, 10)).trend
        assert trend == "Trend: not enough data to compare with the previous week."

    def test_anomalies_listed_from_range_table(self) -> None:
        records = [
            _week(
                10,
                documented_premium_in_10k=100.0,
                expired_net_premium_in_10k=100.0,
                total_claim_payment_in_10k=50.0,
                row_expense_amount_in_10k=60.0,
            )
        ]
        result = generate_insights(compute_kpis(records, 10))
        assert result.anomalies == ("Expense ratio abnormal at 60.0%",)
        assert result.anomaly == "Anomalies: Expense ratio abnormal at 60.0%."

    def test_default_recommendation(self) -> None:
        records = [
            _week(
                10,
                documented_premium_in_10k=100.0,
                expired_net_premium_in_10k=100.0,
                total_claim_payment_in_10k=50.0,
                row_expense_amount_in_10k=10.0,
                premium_plan=100.0,
            )
        ]
        recommendation = generate_insights(compute_kpis(records, 10)).recommendation
        assert recommendation == (
            "Recommendations: keep the current pace, watch key metric swings and keep "
            "optimizing the business mix."
        )

    def test_report_has_three_paragraphs(self) -> None:
        report = generate_insights(compute_kpis([], 10)).report
        assert len(report.split("\n")) == 3

    def test_rejects_non_kpi_input(self) -> None:
        with pytest.raises(ValueError):
            generate_insights({"week": 10})  # type: ignore[arg-type]
