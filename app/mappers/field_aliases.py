"""
app/mappers/field_aliases.py

Static header alias table for the weekly policy/claim CSV extract.

Each logical record field maps to an ordered tuple of recognized header
spellings: the internal field name first, then the business-language
headers used by the reporting system export. Lookup takes the first
spelling that is present in the row with a non-empty value.
"""

from __future__ import annotations

from typing import Final, Literal, Mapping

FieldKind = Literal["text", "bool", "int", "count", "number", "ratio"]

FIELD_ALIASES: Final[dict[str, tuple[str, ...]]] = {
    # Dimensions
    "snapshot_date": ("snapshot_date", "数据统计刷新日期", "快照日期"),
    "policy_start_year": ("policy_start_year", "保单年度", "保单起期年度"),
    "week_number": ("week_number", "周序号", "周次"),
    "business_type_category": ("business_type_category", "业务类型", "业务类型分类"),
    "chengdu_branch": ("chengdu_branch", "机构地域属性", "成都分公司"),
    "third_level_organization": ("third_level_organization", "三级机构"),
    "customer_category_3": ("customer_category_3", "客户类别", "客户三级分类"),
    "insurance_type": ("insurance_type", "车险种类", "保险类型"),
    "is_new_energy_vehicle": ("is_new_energy_vehicle", "是否新能源车", "新能源车标识"),
    "coverage_type": ("coverage_type", "投保险别组合", "险种"),
    "is_transferred_vehicle": ("is_transferred_vehicle", "是否过户车辆", "过户车标识"),
    "renewal_status": ("renewal_status", "续保状态", "续期状态"),
    "vehicle_insurance_grade": ("vehicle_insurance_grade", "非营业客车风险评级", "车险等级"),
    "highway_risk_grade": ("highway_risk_grade", "高速行驶风险评级", "公路风险等级"),
    "large_truck_score": ("large_truck_score", "货车风险评级", "大货车分数"),
    "small_truck_score": ("small_truck_score", "小货车风险评级", "小货车分数"),
    "terminal_source": ("terminal_source", "投保终端来源", "终端来源"),
    # Measures
    "documented_premium_in_10k": ("documented_premium_in_10k", "跟单保费"),
    "expired_net_premium_in_10k": ("expired_net_premium_in_10k", "满期净保费"),
    "total_claim_payment_in_10k": ("total_claim_payment_in_10k", "总赔款"),
    "average_premium_per_policy": ("average_premium_per_policy", "单均保费"),
    "average_claim_payment": ("average_claim_payment", "案均赔款"),
    "case_count": ("case_count", "赔案件数"),
    "policy_count": ("policy_count", "保单件数"),
    "row_expense_amount_in_10k": ("row_expense_amount_in_10k", "费用金额"),
    "premium_plan": ("premium_plan", "保费计划"),
    "original_commercial_premium": ("original_commercial_premium", "商业险折前保费"),
    "marginal_contribution_amount_in_10k": ("marginal_contribution_amount_in_10k", "边际贡献额"),
    # Row-level ratios
    "expense_ratio": ("expense_ratio", "费用率"),
    "expired_loss_ratio": ("expired_loss_ratio", "满期赔付率"),
    "claim_frequency": ("claim_frequency", "满期出险率"),
    "variable_cost_ratio": ("variable_cost_ratio", "变动成本率"),
    "commercial_auto_underwriting_factor": ("commercial_auto_underwriting_factor", "商业险自主定价系数"),
    "plan_achievement_rate": ("plan_achievement_rate", "保费计划达成率"),
    "marginal_contribution_ratio": ("marginal_contribution_ratio", "边际贡献率"),
}

BOOL_FIELDS: Final[frozenset[str]] = frozenset({"is_new_energy_vehicle", "is_transferred_vehicle"})

INT_FIELDS: Final[frozenset[str]] = frozenset({"policy_start_year", "week_number"})

COUNT_FIELDS: Final[frozenset[str]] = frozenset({"case_count", "policy_count"})

# Accept a trailing "%" meaning "divide by 100".
RATIO_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "expense_ratio",
        "expired_loss_ratio",
        "claim_frequency",
        "variable_cost_ratio",
        "plan_achievement_rate",
        "marginal_contribution_ratio",
    }
)

NUMBER_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "documented_premium_in_10k",
        "expired_net_premium_in_10k",
        "total_claim_payment_in_10k",
        "average_premium_per_policy",
        "average_claim_payment",
        "row_expense_amount_in_10k",
        "premium_plan",
        "original_commercial_premium",
        "marginal_contribution_amount_in_10k",
        "commercial_auto_underwriting_factor",
    }
)

# Numeric fields that default to 0.0 instead of None when absent.
ZERO_DEFAULT_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "documented_premium_in_10k",
        "expired_net_premium_in_10k",
        "total_claim_payment_in_10k",
    }
)


def field_kind(name: str) -> FieldKind:
    """
    Return how the raw string for *name* must be parsed.
    """

    if name in BOOL_FIELDS:
        return "bool"
    if name in INT_FIELDS:
        return "int"
    if name in COUNT_FIELDS:
        return "count"
    if name in RATIO_FIELDS:
        return "ratio"
    if name in NUMBER_FIELDS:
        return "number"
    return "text"


def lookup_raw_value(row: Mapping[str, str], field_name: str) -> str | None:
    """
    Return the first non-empty value among the aliases of *field_name*.
    """

    for alias in FIELD_ALIASES[field_name]:
        value = row.get(alias)
        if value is not None and value.strip() != "":
            return value.strip()
    return None


def recognized_headers() -> frozenset[str]:
    """
    Every header spelling the alias table understands.
    """

    return frozenset(alias for aliases in FIELD_ALIASES.values() for alias in aliases)

