"""
app/validators/import_checks.py

Import-time sanity checks over tokenized rows and their normalized records.

Row checks (one RowIssue per row and column):
    - a checked measure whose cell is blank or not a number: warning
    - a negative policy or case count: error
    - any other negative checked amount: warning, possibly a reversal

A checked measure missing from the header is reported once, at info level,
on the header line.

Dataset checks (plain messages):
    - week numbers outside 1..53
    - policy years outside 2020..current year + 1
    - rows repeating a (year, week, third-level organization, insurance type) key

Findings are advisory: a flagged row stays in the dataset.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Final, Mapping, Sequence

from app.domain.insurance_record import InsuranceRecord, RowIssue
from app.mappers.field_aliases import FIELD_ALIASES, ZERO_DEFAULT_FIELDS, lookup_raw_value
from app.utils.numbers import is_finite_number

CHECKED_MEASURES: Final[tuple[str, ...]] = (
    "documented_premium_in_10k",
    "expired_net_premium_in_10k",
    "policy_count",
    "case_count",
    "total_claim_payment_in_10k",
    "row_expense_amount_in_10k",
)

NON_NEGATIVE_COUNTS: Final[frozenset[str]] = frozenset({"policy_count", "case_count"})

MIN_WEEK: Final[int] = 1
MAX_WEEK: Final[int] = 53
MIN_POLICY_YEAR: Final[int] = 2020

DUPLICATE_KEY_FIELDS: Final[tuple[str, ...]] = (
    "policy_start_year",
    "week_number",
    "third_level_organization",
    "insurance_type",
)


class ImportChecker:
    """
    Flags suspicious cells, rows and dataset ranges after normalization.
    """

    def __init__(self, current_year: int | None = None) -> None:
        self._current_year = current_year

    # ------------------------------------------------------------------
    # Header and row checks
    # ------------------------------------------------------------------

    def check_headers(self, headers: Sequence[str], header_row: int) -> list[RowIssue]:
        """
        Report every checked measure that no header spelling covers.
        """

        present = present_measures(headers)
        return [
            RowIssue(
                row_number=header_row,
                level="info",
                column=name,
                message="Column not found in header; values are treated as empty.",
            )
            for name in CHECKED_MEASURES
            if name not in present
        ]

    def check_row(
        self,
        *,
        row: Mapping[str, str],
        record: InsuranceRecord,
        row_number: int,
        columns: Sequence[str] = CHECKED_MEASURES,
    ) -> list[RowIssue]:
        """
        Check the measures named in *columns* for one row.

        A blank cell whose value the normalizer derived from other fields is
        not reported.
        """

        issues: list[RowIssue] = []
        for name in columns:
            value = getattr(record, name)

            if not self._is_number(lookup_raw_value(row, name)):
                if value is None or name in ZERO_DEFAULT_FIELDS:
                    issues.append(
                        RowIssue(
                            row_number=row_number,
                            level="warning",
                            column=name,
                            message="Value is empty or not a number.",
                        )
                    )
                continue

            if not is_finite_number(value) or value >= 0:
                continue
            if name in NON_NEGATIVE_COUNTS:
                issues.append(
                    RowIssue(
                        row_number=row_number,
                        level="error",
                        column=name,
                        message="Value must not be negative.",
                    )
                )
            else:
                issues.append(
                    RowIssue(
                        row_number=row_number,
                        level="warning",
                        column=name,
                        message="Negative value, possibly a reversal.",
                    )
                )
        return issues

    # ------------------------------------------------------------------
    # Dataset checks
    # ------------------------------------------------------------------

    def check_dataset(self, records: Sequence[InsuranceRecord]) -> list[str]:
        """
        Range and duplicate checks over the whole record set.

        Week and year ``0`` mean "not supplied" and are left out of the
        range checks.
        """

        warnings: list[str] = []

        weeks = [r.week_number for r in records if r.week_number]
        if weeks and (min(weeks) < MIN_WEEK or max(weeks) > MAX_WEEK):
            warnings.append(
                f"Week numbers span {min(weeks)}-{max(weeks)}, "
                f"outside {MIN_WEEK}-{MAX_WEEK}."
            )

        years = [r.policy_start_year for r in records if r.policy_start_year]
        max_year = self._resolve_current_year() + 1
        if years and (min(years) < MIN_POLICY_YEAR or max(years) > max_year):
            warnings.append(
                f"Policy years span {min(years)}-{max(years)}, "
                f"outside {MIN_POLICY_YEAR}-{max_year}."
            )

        seen: set[tuple[object, ...]] = set()
        duplicates = 0
        for record in records:
            key = tuple(getattr(record, name) for name in DUPLICATE_KEY_FIELDS)
            if key in seen:
                duplicates += 1
            else:
                seen.add(key)
        if duplicates:
            warnings.append(
                f"{duplicates} row(s) repeat an earlier "
                "(policy year, week, third-level organization, insurance type) key."
            )

        return warnings

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_current_year(self) -> int:
        if self._current_year is not None:
            return self._current_year
        return datetime.now().year

    @staticmethod
    def _is_number(raw: str | None) -> bool:
        if raw is None:
            return False
        try:
            value = float(raw)
        except ValueError:
            return False
        return math.isfinite(value)


def present_measures(headers: Sequence[str]) -> tuple[str, ...]:
    """
    Checked measures that at least one header spelling covers.
    """

    present = set(headers)
    return tuple(name for name in CHECKED_MEASURES if present.intersection(FIELD_ALIASES[name]))
