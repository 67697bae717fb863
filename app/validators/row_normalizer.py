"""
app/validators/row_normalizer.py

Maps one tokenized CSV row into a typed :class:`InsuranceRecord`.

Field lookup goes through the static alias table in
:mod:`app.mappers.field_aliases`. Values that are absent or fail to parse
fall back to the field default. Afterwards an ordered list of derivation
rules fills measures that can be computed from other fields, each one only
when its target was not supplied.

The mapping is pure: the same row always yields the same record, and
derivations return a new record instead of patching fields in place.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping

from app.domain.derivations import (
    derive_case_count,
    derive_expense_amount,
    derive_original_commercial_premium,
)
from app.domain.insurance_record import RECORD_FIELDS, InsuranceRecord
from app.mappers.field_aliases import ZERO_DEFAULT_FIELDS, field_kind, lookup_raw_value

TRUE_VALUES: frozenset[str] = frozenset({"true", "1", "yes", "是"})


@dataclass(frozen=True)
class DerivationRule:
    """
    One ``(applies, compute)`` pair filling *target* on a record.
    """

    target: str
    applies: Callable[[InsuranceRecord], bool]
    compute: Callable[[InsuranceRecord], float | int | None]


DERIVATION_RULES: tuple[DerivationRule, ...] = (
    DerivationRule(
        target="row_expense_amount_in_10k",
        applies=lambda r: r.row_expense_amount_in_10k is None and r.expense_ratio is not None,
        compute=lambda r: derive_expense_amount(r.documented_premium_in_10k, r.expense_ratio),
    ),
    DerivationRule(
        target="original_commercial_premium",
        applies=lambda r: (
            r.original_commercial_premium is None
            and r.is_commercial
            and r.commercial_auto_underwriting_factor is not None
        ),
        compute=lambda r: derive_original_commercial_premium(
            r.documented_premium_in_10k, r.commercial_auto_underwriting_factor
        ),
    ),
    DerivationRule(
        target="case_count",
        applies=lambda r: r.case_count is None and r.average_claim_payment is not None,
        compute=lambda r: derive_case_count(r.total_claim_payment_in_10k, r.average_claim_payment),
    ),
)


class RowNormalizer:
    """
    Parses alias-keyed string rows into normalized insurance records.
    """

    def __init__(self, rules: tuple[DerivationRule, ...] = DERIVATION_RULES) -> None:
        self._rules = rules

    def normalize(self, row: Mapping[str, str]) -> InsuranceRecord:
        """
        Parse every record field from *row*, then apply the derivation rules.
        """

        values = {name: self._parse_field(row, name) for name in RECORD_FIELDS}
        record = InsuranceRecord(**values)
        return self.apply_derivations(record)

    def apply_derivations(self, record: InsuranceRecord) -> InsuranceRecord:
        """
        Return a copy of *record* with every applicable derivation filled.

        Rules are evaluated against the record as parsed, so one derivation
        never feeds another.
        """

        updates: dict[str, Any] = {}
        for rule in self._rules:
            if not rule.applies(record):
                continue
            value = rule.compute(record)
            if value is not None:
                updates[rule.target] = value
        return replace(record, **updates) if updates else record

    # ------------------------------------------------------------------
    # Field parsing
    # ------------------------------------------------------------------

    def _parse_field(self, row: Mapping[str, str], name: str) -> Any:
        raw = lookup_raw_value(row, name)
        kind = field_kind(name)

        if kind == "text":
            return raw or ""
        if kind == "bool":
            return self._parse_bool(raw)
        if kind == "int":
            parsed = self._parse_number(raw)
            return int(parsed) if parsed is not None else 0

        if kind == "ratio":
            parsed = self._parse_ratio(raw)
        elif kind == "count":
            parsed = self._parse_count(raw)
        else:
            parsed = self._parse_number(raw)

        if parsed is None and name in ZERO_DEFAULT_FIELDS:
            return 0.0
        return parsed

    @staticmethod
    def _parse_bool(raw: str | None) -> bool:
        if raw is None:
            return False
        return raw.strip().lower() in TRUE_VALUES

    @staticmethod
    def _parse_number(raw: str | None) -> float | None:
        if raw is None:
            return None
        try:
            value = float(raw)
        except ValueError:
            return None
        return value if math.isfinite(value) else None

    def _parse_ratio(self, raw: str | None) -> float | None:
        if raw is None:
            return None
        text = raw.strip()
        if text.endswith("%"):
            value = self._parse_number(text[:-1].strip())
            return value / 100 if value is not None else None
        return self._parse_number(text)

    def _parse_count(self, raw: str | None) -> float | None:
        value = self._parse_number(raw)
        if value is None:
            return None
        return int(value) if value.is_integer() else value


_DEFAULT_NORMALIZER = RowNormalizer()


def normalize_row(row: Mapping[str, str]) -> InsuranceRecord:
    """
    Normalize one row with the default derivation rules.
    """

    return _DEFAULT_NORMALIZER.normalize(row)


def record_to_row(record: InsuranceRecord) -> dict[str, str]:
    """
    Serialize *record* back into a row keyed by internal field names.

    Feeding the result through :func:`normalize_row` yields an identical
    record: every derived value is written out as if it had been supplied.
    """

    row: dict[str, str] = {}
    for name in RECORD_FIELDS:
        value = getattr(record, name)
        if value is None:
            row[name] = ""
        elif isinstance(value, bool):
            row[name] = "true" if value else "false"
        else:
            row[name] = str(value)
    return row
