"""
app/services/aggregation_service.py

Base aggregation layer for KPI calculations.

Reduces a set of :class:`InsuranceRecord` rows to the eight summed
quantities every KPI is derived from. Ratios are never averaged here: the
KPI layer always divides summed numerators by summed denominators.

Sum names
---------
    sum_doc                  – Σ documented premium (10k)
    sum_expired              – Σ expired net premium (10k)
    sum_claim                – Σ total claim payment (10k)
    sum_case                 – Σ case count
    sum_policy               – Σ policy count
    sum_expense_amount       – Σ row expense amount (10k)
    sum_plan                 – Σ premium plan (10k)
    sum_commercial_original  – Σ pre-discount premium of commercial rows (10k)

Filtering
---------
Filters are passed explicitly as ``{dimension: [accepted values]}``. Values
are compared by their string form, so ``["10"]`` matches week ``10`` and
``["true"]`` matches a ``True`` flag. An empty value list does not filter.

No business logic lives here. Division, rounding, and result structuring
belong to :mod:`app.services.kpi_service`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from app.domain.derivations import derive_case_count, derive_original_commercial_premium
from app.domain.insurance_record import DIMENSION_FIELDS, DatasetSummary, InsuranceRecord
from app.utils.numbers import finite_or_zero, is_finite_number

logger = logging.getLogger(__name__)

FilterState = Mapping[str, Sequence[Any]]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class InvalidFilterError(ValueError):
    """
    Raised when a filter names a field that is not a record dimension.
    """


# ---------------------------------------------------------------------------
# Value object
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaseAggregates:
    """
    The eight summed quantities over one record subset.

    All zeros for an empty subset; turning "no data" into ``None`` metrics
    is the KPI layer's job.
    """

    sum_doc: float = 0.0
    sum_expired: float = 0.0
    sum_claim: float = 0.0
    sum_case: float = 0.0
    sum_policy: float = 0.0
    sum_expense_amount: float = 0.0
    sum_plan: float = 0.0
    sum_commercial_original: float = 0.0


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def _filter_key(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def validate_filters(filters: FilterState | None) -> dict[str, frozenset[str]]:
    """
    Check dimension names and pre-compute the accepted string keys.

    Raises
    ------
    InvalidFilterError
        If a key is not a dimension of :class:`InsuranceRecord`, or a value
        is a bare string instead of a list of values.
    """

    prepared: dict[str, frozenset[str]] = {}
    for dimension, values in (filters or {}).items():
        if dimension not in DIMENSION_FIELDS:
            raise InvalidFilterError(
                f"Unknown filter dimension {dimension!r}. "
                f"Valid dimensions: {sorted(DIMENSION_FIELDS)}"
            )
        if isinstance(values, (str, bytes)):
            raise InvalidFilterError(
                f"Filter {dimension!r} must be a list of values, not a single string."
            )
        accepted = frozenset(_filter_key(v) for v in values)
        if accepted:
            prepared[dimension] = accepted
    return prepared


def filter_records(
    records: Iterable[InsuranceRecord],
    *,
    week: int | None = None,
    filters: FilterState | None = None,
) -> list[InsuranceRecord]:
    """
    Return the records of *week* (all weeks when ``None``) matching every filter.
    """

    prepared = validate_filters(filters)
    selected: list[InsuranceRecord] = []
    for record in records:
        if week is not None and record.week_number != week:
            continue
        if all(_filter_key(getattr(record, dim)) in accepted for dim, accepted in prepared.items()):
            selected.append(record)
    return selected


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def record_case_count(record: InsuranceRecord) -> float | None:
    """
    Supplied case count when finite, else the claim ÷ average-claim derivation.
    """

    if is_finite_number(record.case_count):
        return record.case_count
    return derive_case_count(record.total_claim_payment_in_10k, record.average_claim_payment)


def record_commercial_original_premium(record: InsuranceRecord) -> float | None:
    """
    Supplied pre-discount premium when finite, else documented ÷ underwriting factor.

    Non-commercial rows never contribute.
    """

    if not record.is_commercial:
        return None
    if is_finite_number(record.original_commercial_premium):
        return record.original_commercial_premium
    return derive_original_commercial_premium(
        record.documented_premium_in_10k, record.commercial_auto_underwriting_factor
    )


def compute_base_aggregates(records: Sequence[InsuranceRecord]) -> BaseAggregates:
    """
    Sum the eight base quantities over *records*.

    Non-finite and absent values contribute 0. An empty sequence yields
    :class:`BaseAggregates` of all zeros.
    """

    aggregates = BaseAggregates(
        sum_doc=sum(finite_or_zero(r.documented_premium_in_10k) for r in records),
        sum_expired=sum(finite_or_zero(r.expired_net_premium_in_10k) for r in records),
        sum_claim=sum(finite_or_zero(r.total_claim_payment_in_10k) for r in records),
        sum_case=sum(finite_or_zero(record_case_count(r)) for r in records),
        sum_policy=sum(finite_or_zero(r.policy_count) for r in records),
        sum_expense_amount=sum(finite_or_zero(r.row_expense_amount_in_10k) for r in records),
        sum_plan=sum(finite_or_zero(r.premium_plan) for r in records),
        sum_commercial_original=sum(
            finite_or_zero(record_commercial_original_premium(r)) for r in records
        ),
    )
    logger.debug("compute_base_aggregates rows=%d → %s", len(records), aggregates)
    return aggregates


def aggregate_week(
    records: Iterable[InsuranceRecord],
    week: int,
    filters: FilterState | None = None,
) -> tuple[list[InsuranceRecord], BaseAggregates]:
    """
    Filter *records* to *week* and *filters*, then aggregate the subset.

    The subset is returned alongside the sums so callers can tell an empty
    period from a period whose sums are zero.
    """

    subset = filter_records(records, week=week, filters=filters)
    return subset, compute_base_aggregates(subset)


# ---------------------------------------------------------------------------
# Dataset shape
# ---------------------------------------------------------------------------


def available_weeks(records: Iterable[InsuranceRecord]) -> tuple[int, ...]:
    """Distinct non-zero week numbers, ascending."""
    return tuple(sorted({r.week_number for r in records if r.week_number}))


def summarize_records(records: Sequence[InsuranceRecord]) -> DatasetSummary:
    """
    Row count plus the distinct weeks and policy years present in *records*.
    """

    return DatasetSummary(
        row_count=len(records),
        weeks=available_weeks(records),
        years=tuple(sorted({r.policy_start_year for r in records if r.policy_start_year})),
    )
