"""
app/schemas/analysis.py

Request and response schemas for the weekly analysis endpoint.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

FilterValue = str | int | float | bool


class AnalysisRequest(BaseModel):
    """
    CSV text plus the week selection and dimension filters to analyse.
    """

    csv_text: str = Field(..., min_length=1)
    week: int | None = Field(
        default=None,
        description="Reporting week; defaults to the latest week present in the data.",
    )
    previous_week: int | None = Field(
        default=None,
        description="Comparison week; defaults to week - 1.",
    )
    filters: dict[str, list[FilterValue]] = Field(default_factory=dict)


class RowIssueResponse(BaseModel):
    """
    API response model for one row-level import issue.
    """

    row_number: int = Field(..., ge=1)
    level: Literal["error", "warning", "info"]
    message: str
    column: str | None = None


class ImportSummaryResponse(BaseModel):
    rows_read: int = Field(..., ge=0)
    rows_imported: int = Field(..., ge=0)
    rows_skipped: int = Field(..., ge=0)
    weeks: list[int] = Field(default_factory=list)
    years: list[int] = Field(default_factory=list)
    row_issues: list[RowIssueResponse] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class MetricValueResponse(BaseModel):
    key: str
    name: str
    unit: str
    current: float | None = None
    previous: float | None = None
    delta_abs: float | None = None
    delta_pct: float | None = None


class KPIResultResponse(BaseModel):
    """
    All 16 metrics for one week comparison, in canonical key order.
    """

    week: int
    previous_week: int
    current_row_count: int = Field(..., ge=0)
    previous_row_count: int = Field(..., ge=0)
    computed_at: datetime
    metrics: list[MetricValueResponse] = Field(default_factory=list)


class QualityIssueResponse(BaseModel):
    level: Literal["error", "warning", "info"]
    metric: str
    message: str
    type: Literal["denominator", "abnormal", "info"]


class QualityItemResponse(BaseModel):
    type: Literal["denominator", "abnormal", "info"]
    metric: str
    detail: str


class QualityReportResponse(BaseModel):
    """
    Import-time quality report over the whole dataset.
    """

    total: int = Field(..., ge=0)
    weeks: int = Field(..., ge=0)
    items: list[QualityItemResponse] = Field(default_factory=list)


class InsightResponse(BaseModel):
    report: str
    anomalies: list[str] = Field(default_factory=list)


class AnalysisResponse(BaseModel):
    """
    API response model for one analysis run.
    """

    import_summary: ImportSummaryResponse
    quality_report: QualityReportResponse
    kpis: KPIResultResponse
    completeness: list[QualityIssueResponse] = Field(default_factory=list)
    insights: InsightResponse
    filters_query: str = Field(
        default="",
        description="Shareable query string for the applied filters.",
    )
