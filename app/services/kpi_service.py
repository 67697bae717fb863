"""
app/services/kpi_service.py

Deterministic KPI calculation engine for weekly variable-cost analysis.

Computes the 16 canonical metrics for a reporting week and the week it is
compared against, then derives week-over-week deltas.

Pipeline per period::

    filter_records → compute_base_aggregates → VariableCostKPIFormula → rounding

Null semantics
--------------
``None`` means "undefined", never zero:

* a period without any matching record yields ``None`` for every metric;
* a zero denominator yields ``None`` for the affected ratio and every
  metric built on top of it;
* ``delta_abs`` is ``None`` when either side is ``None``;
* ``delta_pct`` is additionally ``None`` when the previous value is ``0``.

Rounding (half-up)
------------------
Monetary metrics and per-policy/per-case averages keep 4 decimals, ratios
keep 6, the case count is an integer. ``delta_abs`` follows the metric's
precision, ``delta_pct`` keeps 6 decimals.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Final, Iterable, Literal, Sequence

from app.domain.insurance_record import InsuranceRecord
from app.logging_utils import log_event
from app.services.aggregation_service import FilterState, aggregate_week
from app.utils.numbers import round_half_up, safe_divide
from kpi.base import BaseKPIFormula
from kpi.variable_cost import VariableCostKPIFormula

logger = logging.getLogger(__name__)

MetricUnit = Literal["10k_currency", "currency", "count", "ratio"]

_PLACES_BY_UNIT: Final[dict[str, int]] = {
    "10k_currency": 4,
    "currency": 4,
    "count": 0,
    "ratio": 6,
}

_DELTA_PCT_PLACES: Final[int] = 6


# ---------------------------------------------------------------------------
# Metric catalogue
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricDefinition:
    """Display name and unit of one canonical metric."""

    key: str
    name: str
    unit: MetricUnit

    @property
    def places(self) -> int:
        return _PLACES_BY_UNIT[self.unit]


METRIC_DEFINITIONS: Final[tuple[MetricDefinition, ...]] = (
    MetricDefinition("documented_premium", "Documented premium", "10k_currency"),
    MetricDefinition("expired_net_premium", "Expired net premium", "10k_currency"),
    MetricDefinition("average_premium_per_policy", "Average premium per policy", "currency"),
    MetricDefinition("original_commercial_premium", "Commercial premium before discount", "10k_currency"),
    MetricDefinition("total_claim_payment", "Total claim payment", "10k_currency"),
    MetricDefinition("average_claim_payment", "Average claim payment", "currency"),
    MetricDefinition("case_count", "Claim case count", "count"),
    MetricDefinition("claim_frequency", "Claim frequency", "ratio"),
    MetricDefinition("expense_amount", "Expense amount", "10k_currency"),
    MetricDefinition("marginal_contribution_amount", "Marginal contribution amount", "10k_currency"),
    MetricDefinition("premium_plan", "Premium plan", "10k_currency"),
    MetricDefinition("expense_ratio", "Expense ratio", "ratio"),
    MetricDefinition("expired_loss_ratio", "Expired loss ratio", "ratio"),
    MetricDefinition("variable_cost_ratio", "Variable cost ratio", "ratio"),
    MetricDefinition("marginal_contribution_ratio", "Marginal contribution ratio", "ratio"),
    MetricDefinition("plan_achievement_rate", "Plan achievement rate", "ratio"),
)

METRIC_KEYS: Final[tuple[str, ...]] = tuple(d.key for d in METRIC_DEFINITIONS)


# ---------------------------------------------------------------------------
# Output dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricValue:
    """
    One metric for the current and previous period plus its deltas.
    """

    key: str
    name: str
    unit: str
    current: float | None
    previous: float | None
    delta_abs: float | None = None
    delta_pct: float | None = None


@dataclass(frozen=True)
class KPIResult:
    """
    All 16 metrics for one week comparison, in canonical key order.
    """

    week: int
    previous_week: int
    metrics: tuple[MetricValue, ...]
    current_row_count: int = 0
    previous_row_count: int = 0
    computed_at: datetime = field(
        default_factory=lambda: datetime.now(tz=timezone.utc)
    )

    def get(self, key: str) -> MetricValue | None:
        """Return the metric stored under *key*, or ``None`` for an unknown key."""
        return next((m for m in self.metrics if m.key == key), None)

    def current_value(self, key: str) -> float | None:
        metric = self.get(key)
        return metric.current if metric is not None else None

    def to_dict(self) -> dict[str, object]:
        return {
            "week": self.week,
            "previous_week": self.previous_week,
            "metrics": [asdict(m) for m in self.metrics],
        }


# ---------------------------------------------------------------------------
# Delta helper
# ---------------------------------------------------------------------------


def calculate_delta(
    previous: float | None,
    current: float | None,
    places: int = _DELTA_PCT_PLACES,
) -> tuple[float | None, float | None]:
    """
    Return ``(delta_abs, delta_pct)`` with the previous period as base.

    ``delta_pct`` is ``None`` whenever ``previous`` is ``0``: a zero base
    never produces a percentage. A difference that overflows to ``inf``
    yields ``(None, None)``.
    """

    if previous is None or current is None:
        return None, None
    difference = current - previous
    if not math.isfinite(difference):
        return None, None
    delta_abs = round_half_up(difference, places)
    ratio = safe_divide(difference, previous)
    if ratio is None:
        return delta_abs, None
    return delta_abs, round_half_up(ratio, _DELTA_PCT_PLACES)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class KPIService:
    """
    Stateless, deterministic KPI calculation engine.

    Filters and the week selection are passed explicitly on every call; the
    service never reads shared state and never caches aggregates.

    Usage::

        service = KPIService()
        result = service.compute_kpis(records, week=10, previous_week=9)
        print(result.get("expense_ratio").current)
    """

    def __init__(self, formula: BaseKPIFormula | None = None) -> None:
        self._formula = formula or VariableCostKPIFormula()

    def compute_kpis(
        self,
        records: Sequence[InsuranceRecord],
        week: int,
        previous_week: int | None = None,
        filters: FilterState | None = None,
    ) -> KPIResult:
        """
        Compute all 16 metrics for *week* against *previous_week*.

        Parameters
        ----------
        records:
            The full working record set.
        week:
            Reporting week number.
        previous_week:
            Comparison week; defaults to ``week - 1``.
        filters:
            ``{dimension: [accepted values]}`` applied to both periods.

        Raises
        ------
        InvalidFilterError
            If *filters* names a field that is not a record dimension.
        """
        if previous_week is None:
            previous_week = week - 1

        current_rows, current = self.compute_period(records, week, filters)
        previous_rows, previous = self.compute_period(records, previous_week, filters)

        metrics = tuple(
            _build_metric_value(definition, current[definition.key], previous[definition.key])
            for definition in METRIC_DEFINITIONS
        )

        log_event(
            logger,
            logging.DEBUG,
            "kpis_computed",
            week=week,
            previous_week=previous_week,
            current_rows=current_rows,
            previous_rows=previous_rows,
            null_metrics=[m.key for m in metrics if m.current is None],
        )
        return KPIResult(
            week=week,
            previous_week=previous_week,
            metrics=metrics,
            current_row_count=current_rows,
            previous_row_count=previous_rows,
        )

    def compute_period(
        self,
        records: Iterable[InsuranceRecord],
        week: int,
        filters: FilterState | None = None,
    ) -> tuple[int, dict[str, float | None]]:
        """
        Return the matched row count and rounded metrics for one week.

        Every metric is ``None`` when no record matches.
        """
        subset, aggregates = aggregate_week(records, week, filters)
        if not subset:
            return 0, {key: None for key in METRIC_KEYS}

        raw = self._formula.calculate(asdict(aggregates))
        rounded = {
            definition.key: _round_metric(raw.get(definition.key), definition)
            for definition in METRIC_DEFINITIONS
        }
        return len(subset), rounded


def _round_metric(value: float | None, definition: MetricDefinition) -> float | int | None:
    if value is None:
        return None
    rounded = round_half_up(value, definition.places)
    if rounded is None or definition.places != 0:
        return rounded
    return int(rounded)


def _build_metric_value(
    definition: MetricDefinition,
    current: float | None,
    previous: float | None,
) -> MetricValue:
    delta_abs, delta_pct = calculate_delta(previous, current, definition.places)
    if delta_abs is not None and definition.places == 0:
        delta_abs = int(delta_abs)
    return MetricValue(
        key=definition.key,
        name=definition.name,
        unit=definition.unit,
        current=current,
        previous=previous,
        delta_abs=delta_abs,
        delta_pct=delta_pct,
    )


_DEFAULT_SERVICE = KPIService()


def compute_kpis(
    records: Sequence[InsuranceRecord],
    week: int,
    previous_week: int | None = None,
    filters: FilterState | None = None,
) -> KPIResult:
    """
    Module-level shortcut for :meth:`KPIService.compute_kpis`.
    """

    return _DEFAULT_SERVICE.compute_kpis(records, week, previous_week, filters)
