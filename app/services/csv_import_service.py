"""
app/services/csv_import_service.py

Service layer for the CSV import workflow.

One call turns raw CSV text into the working record set:

    1. tokenize_csv         – header + rows; malformed lines become RowIssues
    2. RowNormalizer        – alias lookup, typed parsing, derivations
    3. ImportChecker        – blank, unparseable and negative measures per row;
                              week/year ranges and duplicate keys per dataset
    4. summarize_records    – row count, weeks and policy years
    5. build_quality_report – import-time quality report over the new dataset

Only a missing header is fatal (:class:`CSVHeaderError`). Only tokenizer
issues drop a row; checker findings are advisory. Row issues are logged when
enabled (info-level ones at INFO, the rest at WARNING) and capped at
``max_row_issues``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from app.config import get_csv_import_settings
from app.domain.insurance_record import DatasetSummary, ImportSummary, RowIssue
from app.logging_utils import log_event
from app.mappers.field_aliases import recognized_headers
from app.parsers.csv_tokenizer import tokenize_csv
from app.services.aggregation_service import summarize_records
from app.services.quality_service import QualityReport, build_quality_report
from app.validators.import_checks import ImportChecker, present_measures
from app.validators.row_normalizer import RowNormalizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    """
    Everything one import produces.
    """

    summary: ImportSummary
    dataset: DatasetSummary
    quality_report: QualityReport


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CSVImportService:
    """
    Coordinates CSV tokenizing, normalization, and the import-time report.
    """

    def __init__(
        self,
        *,
        max_row_issues: int,
        log_row_issues: bool,
        normalizer: RowNormalizer | None = None,
        checker: ImportChecker | None = None,
    ) -> None:
        self._max_row_issues = max(1, max_row_issues)
        self._log_row_issues = log_row_issues
        self._normalizer = normalizer or RowNormalizer()
        self._checker = checker or ImportChecker()

    def import_csv(self, text: str) -> ImportResult:
        """
        Parse *text* into a fresh, immutable record set.

        Raises
        ------
        CSVHeaderError
            If *text* is empty or has no header line.
        """
        tokenized = tokenize_csv(text)
        records = tuple(self._normalizer.normalize(row) for row in tokenized.rows)

        columns = present_measures(tokenized.headers)
        found: list[RowIssue] = list(tokenized.issues)
        found.extend(self._checker.check_headers(tokenized.headers, tokenized.header_row))
        for row, record, row_number in zip(tokenized.rows, records, tokenized.row_numbers):
            found.extend(
                self._checker.check_row(
                    row=row, record=record, row_number=row_number, columns=columns
                )
            )
        found.sort(key=lambda issue: issue.row_number)

        captured: list[RowIssue] = []
        for issue in found:
            self._record_issue(captured, issue)

        # Every tokenizer issue drops its line.
        rows_skipped = len(tokenized.issues)
        warnings = tuple(self._checker.check_dataset(records))
        for warning in warnings:
            logger.warning("CSV dataset warning: %s", warning)

        summary = ImportSummary(
            records=records,
            rows_read=len(records) + rows_skipped,
            rows_skipped=rows_skipped,
            issues=captured,
            warnings=warnings,
        )
        dataset = summarize_records(records)
        quality_report = build_quality_report(records)
        known_headers = recognized_headers()

        log_event(
            logger,
            logging.INFO,
            "csv_import_finished",
            rows_read=summary.rows_read,
            rows_imported=summary.rows_imported,
            rows_skipped=rows_skipped,
            issues=len(found),
            errors=sum(1 for issue in found if issue.level == "error"),
            dataset_warnings=len(warnings),
            weeks=list(dataset.weeks),
            quality_items=len(quality_report.items),
            unrecognized_headers=[h for h in tokenized.headers if h and h not in known_headers],
        )
        return ImportResult(summary=summary, dataset=dataset, quality_report=quality_report)

    def _record_issue(self, captured: list[RowIssue], issue: RowIssue) -> None:
        if self._log_row_issues:
            logger.log(
                logging.INFO if issue.level == "info" else logging.WARNING,
                "CSV row issue row=%s level=%s column=%s message=%s",
                issue.row_number,
                issue.level,
                issue.column,
                issue.message,
            )

        if len(captured) < self._max_row_issues:
            captured.append(issue)


# ---------------------------------------------------------------------------
# Text report
# ---------------------------------------------------------------------------


def render_import_report(result: ImportResult) -> str:
    """
    Render a plain-text validation report for one import.
    """

    summary = result.summary
    dataset = result.dataset
    lines = [
        "CSV import report",
        f"Rows read: {summary.rows_read}",
        f"Rows imported: {summary.rows_imported}",
        f"Rows skipped: {summary.rows_skipped}",
        f"Weeks: {', '.join(str(w) for w in dataset.weeks) or '-'}",
        f"Policy years: {', '.join(str(y) for y in dataset.years) or '-'}",
    ]

    if summary.issues:
        lines.append("")
        lines.append(f"Row issues ({len(summary.issues)}):")
        lines.extend(_format_issue(issue) for issue in summary.issues)

    if summary.warnings:
        lines.append("")
        lines.append(f"Dataset warnings ({len(summary.warnings)}):")
        lines.extend(f"  {warning}" for warning in summary.warnings)

    items = result.quality_report.items
    lines.append("")
    if items:
        lines.append(f"Quality findings ({len(items)}):")
        lines.extend(f"  [{item.type}] {item.metric}: {item.detail}" for item in items)
    else:
        lines.append("Quality findings: none")

    return "\n".join(lines)


def _format_issue(issue: RowIssue) -> str:
    prefix = f"  line {issue.row_number} [{issue.level}]"
    if issue.column:
        return f"{prefix} {issue.column}: {issue.message}"
    return f"{prefix} {issue.message}"


@lru_cache(maxsize=1)
def get_csv_import_service() -> CSVImportService:
    """
    Build and cache the import service with env-driven settings.
    """
    settings = get_csv_import_settings()
    return CSVImportService(
        max_row_issues=settings.max_row_issues,
        log_row_issues=settings.log_row_issues,
    )
