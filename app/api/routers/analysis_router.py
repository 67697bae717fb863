"""
app/api/routers/analysis_router.py

Weekly analysis HTTP endpoint: CSV text in, KPIs, quality advisory and
insight text out.
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.parsers.csv_tokenizer import CSVHeaderError
from app.schemas.analysis import (
    AnalysisRequest,
    AnalysisResponse,
    ImportSummaryResponse,
    InsightResponse,
    KPIResultResponse,
    MetricValueResponse,
    QualityIssueResponse,
    QualityItemResponse,
    QualityReportResponse,
    RowIssueResponse,
)
from app.services.aggregation_service import InvalidFilterError, filter_records
from app.services.csv_import_service import CSVImportService, get_csv_import_service
from app.services.kpi_service import compute_kpis
from app.services.quality_service import assess_completeness
from app.utils.filter_serialization import decode_filters_from_query, encode_filters_to_query
from insight.variable_cost_rules import generate_insights

router = APIRouter(tags=["analysis"])


@router.post("/analysis", response_model=AnalysisResponse)
def run_analysis(
    payload: AnalysisRequest,
    request: Request,
    import_service: CSVImportService = Depends(get_csv_import_service),
) -> AnalysisResponse:
    """
    Import CSV text and analyse one week against its comparison week.

    Filters come from the request body; when the body carries none, a
    shared ``?filters=`` query parameter is used instead.
    """

    filters = payload.filters or decode_filters_from_query(request.url.query) or {}

    try:
        result = import_service.import_csv(payload.csv_text)
    except CSVHeaderError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "csv_header", "message": str(exc)},
        ) from exc

    week = payload.week
    if week is None:
        if not result.dataset.weeks:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "code": "week_required",
                    "message": "week is required when the data carries no week numbers.",
                },
            )
        week = result.dataset.weeks[-1]

    records = result.summary.records
    try:
        kpi_result = compute_kpis(records, week, payload.previous_week, filters)
        visible = filter_records(records, week=week, filters=filters)
    except InvalidFilterError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "invalid_filter", "message": str(exc)},
        ) from exc

    insights = generate_insights(kpi_result)

    return AnalysisResponse(
        import_summary=ImportSummaryResponse(
            rows_read=result.summary.rows_read,
            rows_imported=result.summary.rows_imported,
            rows_skipped=result.summary.rows_skipped,
            weeks=list(result.dataset.weeks),
            years=list(result.dataset.years),
            row_issues=[
                RowIssueResponse(
                    row_number=issue.row_number,
                    level=issue.level,
                    message=issue.message,
                    column=issue.column,
                )
                for issue in result.summary.issues
            ],
            warnings=list(result.summary.warnings),
        ),
        quality_report=QualityReportResponse(
            total=result.quality_report.summary.total,
            weeks=result.quality_report.summary.weeks,
            items=[QualityItemResponse(**asdict(item)) for item in result.quality_report.items],
        ),
        kpis=KPIResultResponse(
            week=kpi_result.week,
            previous_week=kpi_result.previous_week,
            current_row_count=kpi_result.current_row_count,
            previous_row_count=kpi_result.previous_row_count,
            computed_at=kpi_result.computed_at,
            metrics=[MetricValueResponse(**asdict(metric)) for metric in kpi_result.metrics],
        ),
        completeness=[QualityIssueResponse(**asdict(issue)) for issue in assess_completeness(visible)],
        insights=InsightResponse(
            report=insights.report,
            anomalies=list(insights.anomalies),
        ),
        filters_query=encode_filters_to_query(filters) if filters else "",
    )
