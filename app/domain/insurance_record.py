"""
app/domain/insurance_record.py

Domain models used by the CSV import and KPI flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Literal

COMMERCIAL_INSURANCE_TYPES: frozenset[str] = frozenset({"commercial", "商业险"})

IssueLevel = Literal["error", "warning", "info"]


@dataclass(frozen=True)
class InsuranceRecord:
    """
    One normalized CSV line of the weekly policy/claim extract.

    Monetary measures suffixed ``_in_10k`` are in ten-thousand currency
    units; ``average_*`` measures are in plain currency units.

    Optional measures are ``None`` when the source row did not supply them.
    Values filled by the normalizer's derivation rules are stored exactly
    like supplied values.
    """

    # Dimensions
    snapshot_date: str = ""
    policy_start_year: int = 0
    week_number: int = 0
    business_type_category: str = ""
    chengdu_branch: str = ""
    third_level_organization: str = ""
    customer_category_3: str = ""
    insurance_type: str = ""
    is_new_energy_vehicle: bool = False
    coverage_type: str = ""
    is_transferred_vehicle: bool = False
    renewal_status: str = ""
    vehicle_insurance_grade: str = ""
    highway_risk_grade: str = ""
    large_truck_score: str = ""
    small_truck_score: str = ""
    terminal_source: str = ""

    # Measures
    documented_premium_in_10k: float = 0.0
    expired_net_premium_in_10k: float = 0.0
    total_claim_payment_in_10k: float = 0.0
    average_premium_per_policy: float | None = None
    average_claim_payment: float | None = None
    case_count: float | None = None
    policy_count: float | None = None
    row_expense_amount_in_10k: float | None = None
    premium_plan: float | None = None
    original_commercial_premium: float | None = None
    marginal_contribution_amount_in_10k: float | None = None

    # Row-level ratios
    expense_ratio: float | None = None
    expired_loss_ratio: float | None = None
    claim_frequency: float | None = None
    variable_cost_ratio: float | None = None
    commercial_auto_underwriting_factor: float | None = None
    plan_achievement_rate: float | None = None
    marginal_contribution_ratio: float | None = None

    @property
    def is_commercial(self) -> bool:
        return self.insurance_type.strip().lower() in COMMERCIAL_INSURANCE_TYPES


RECORD_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(InsuranceRecord))

DIMENSION_FIELDS: tuple[str, ...] = RECORD_FIELDS[: RECORD_FIELDS.index("documented_premium_in_10k")]


@dataclass(frozen=True)
class RowIssue:
    """
    One row-scoped problem found while importing CSV text.
    """

    row_number: int
    message: str
    level: IssueLevel = "error"
    column: str | None = None


@dataclass(frozen=True)
class DatasetSummary:
    """
    Shape of a record set: size plus the weeks and policy years it covers.
    """

    row_count: int
    weeks: tuple[int, ...] = ()
    years: tuple[int, ...] = ()


@dataclass(frozen=True)
class ImportSummary:
    """
    End-of-run import summary.
    """

    records: tuple[InsuranceRecord, ...]
    rows_read: int
    rows_skipped: int
    issues: list[RowIssue] = field(default_factory=list)
    warnings: tuple[str, ...] = ()

    @property
    def rows_imported(self) -> int:
        return len(self.records)
