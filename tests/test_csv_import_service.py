"""
tests/test_csv_import_service.py

Pytest tests for the end-to-end CSV import workflow.
"""

from __future__ import annotations

import json
import logging

import pytest

from app.parsers.csv_tokenizer import CSVHeaderError
from app.services.csv_import_service import CSVImportService, render_import_report

SAMPLE_CSV = (
    "周序号,保单年度,三级机构,车险种类,跟单保费,满期净保费,总赔款,赔案件数,保单件数,费用金额,保费计划,商业险自主定价系数\n"
    "9,2024,天府,商业险,100,80,40,4,10,20,120,0.8\n"
    "10,2024,天府,商业险,150,100,80,6,12,30,200,0.75\n"
    "10,2024,高新,交强险,50,40,10\n"
    '10,2023,高新,交强险,"50",40,10,1,5,5,60,\n'
)


@pytest.fixture()
def service() -> CSVImportService:
    return CSVImportService(max_row_issues=500, log_row_issues=True)


class TestImport:
    def test_partial_success(self, service: CSVImportService) -> None:
        result = service.import_csv(SAMPLE_CSV)

        assert result.summary.rows_read == 4
        assert result.summary.rows_imported == 3
        assert result.summary.rows_skipped == 1
        assert [issue.row_number for issue in result.summary.issues] == [4]
        assert result.summary.issues[0].level == "error"

    def test_records_are_normalized(self, service: CSVImportService) -> None:
        records = service.import_csv(SAMPLE_CSV).summary.records

        assert records[0].week_number == 9
        assert records[0].original_commercial_premium == pytest.approx(125.0)
        assert records[2].policy_start_year == 2023
        assert records[2].commercial_auto_underwriting_factor is None
        assert isinstance(records, tuple)

    def test_dataset_summary_and_quality_report(self, service: CSVImportService) -> None:
        result = service.import_csv(SAMPLE_CSV)

        assert result.dataset.weeks == (9, 10)
        assert result.dataset.years == (2023, 2024)
        assert result.quality_report.summary.total == 3
        assert result.quality_report.summary.weeks == 2
        assert result.quality_report.items == []

    def test_row_issues_are_capped(self) -> None:
        service = CSVImportService(max_row_issues=2, log_row_issues=False)
        text = "a,b\n1\n2\n3\n4,5\n"

        summary = service.import_csv(text).summary

        assert summary.rows_skipped == 3
        assert len(summary.issues) == 2
        assert summary.rows_imported == 1

    def test_missing_header_is_fatal(self, service: CSVImportService) -> None:
        with pytest.raises(CSVHeaderError):
            service.import_csv("\n\n")

    def test_header_only_produces_empty_dataset(self, service: CSVImportService) -> None:
        result = service.import_csv("周序号,跟单保费\n")

        assert result.summary.rows_imported == 0
        metrics = [item.metric for item in result.quality_report.items]
        assert "all" not in metrics
        assert {"average_premium_per_policy", "expired_loss_ratio", "plan_achievement_rate"} <= set(metrics)


class TestLogging:
    def test_row_issues_logged_as_warnings(
        self, service: CSVImportService, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.WARNING, logger="app.services.csv_import_service")
        service.import_csv(SAMPLE_CSV)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "row=4" in warnings[0].getMessage()

    def test_import_finished_event(self, service: CSVImportService, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="app.services.csv_import_service")
        service.import_csv("周序号,跟单保费,备注\n10,100,x\n")

        events = [
            json.loads(r.getMessage())
            for r in caplog.records
            if r.levelno == logging.INFO and r.getMessage().startswith("{")
        ]
        assert len(events) == 1
        assert events[0]["event"] == "csv_import_finished"
        assert events[0]["rows_imported"] == 1
        assert events[0]["unrecognized_headers"] == ["备注"]


class TestImportReport:
    def test_renders_counts_issues_and_findings(self, service: CSVImportService) -> None:
        result = service.import_csv("周序号,跟单保费,保费计划\n10,100,0\n10,1,2,3\n")
        report = render_import_report(result)
        lines = report.split("\n")

        assert lines[0] == "CSV import report"
        assert "Rows read: 2" in lines
        assert "Rows imported: 1" in lines
        assert "Rows skipped: 1" in lines
        assert "Weeks: 10" in lines
        assert "Policy years: -" in lines
        assert any(line.startswith("  line 3 [error] Field count mismatch") for line in lines)
        assert any("plan_achievement_rate" in line for line in lines)

    def test_clean_report(self, service: CSVImportService) -> None:
        result = service.import_csv(
            "周序号,跟单保费,满期净保费,总赔款,赔案件数,保单件数,费用金额,保费计划\n"
            "10,100,80,40,4,10,20,120\n"
        )
        assert render_import_report(result).endswith("Quality findings: none")


class TestImportChecks:
    HEADER = "周序号,保单年度,三级机构,车险种类,跟单保费,满期净保费,总赔款,赔案件数,保单件数,费用金额\n"

    def test_cell_issues_carry_their_column(self, service: CSVImportService) -> None:
        text = (
            self.HEADER
            + "10,2024,天府,商业险,100,,40,4,-2,20\n"
            + "10,2024,高新,商业险,100,80,-5,4,10,20\n"
        )
        summary = service.import_csv(text).summary

        assert [(i.row_number, i.column, i.level) for i in summary.issues] == [
            (2, "expired_net_premium_in_10k", "warning"),
            (2, "policy_count", "error"),
            (3, "total_claim_payment_in_10k", "warning"),
        ]
        # Flagged rows are kept.
        assert summary.rows_imported == 2
        assert summary.rows_skipped == 0

    def test_missing_columns_reported_once_on_header(self, service: CSVImportService) -> None:
        summary = service.import_csv("\n周序号,跟单保费\n10,100\n11,200\n").summary

        assert {i.row_number for i in summary.issues} == {2}
        assert all(i.level == "info" for i in summary.issues)
        assert "documented_premium_in_10k" not in {i.column for i in summary.issues}

    def test_dataset_warnings(self, service: CSVImportService) -> None:
        text = (
            self.HEADER
            + "60,2024,天府,商业险,100,80,40,4,10,20\n"
            + "60,2024,天府,商业险,100,80,40,4,10,20\n"
        )
        result = service.import_csv(text)

        assert result.summary.warnings == (
            "Week numbers span 60-60, outside 1-53.",
            "1 row(s) repeat an earlier "
            "(policy year, week, third-level organization, insurance type) key.",
        )
        report = render_import_report(result)
        assert "Dataset warnings (2):" in report
        assert "  Week numbers span 60-60, outside 1-53." in report.split("\n")

    def test_report_names_the_column(self, service: CSVImportService) -> None:
        result = service.import_csv(self.HEADER + "10,2024,天府,商业险,100,80,40,-1,10,20\n")
        lines = render_import_report(result).split("\n")

        assert "  line 2 [error] case_count: Value must not be negative." in lines
