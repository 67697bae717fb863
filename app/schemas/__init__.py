"""
app/schemas package marker.
"""

from app.schemas.analysis import (
    AnalysisRequest,
    AnalysisResponse,
    KPIResultResponse,
    MetricValueResponse,
    QualityIssueResponse,
    QualityReportResponse,
    RowIssueResponse,
)

__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "KPIResultResponse",
    "MetricValueResponse",
    "QualityIssueResponse",
    "QualityReportResponse",
    "RowIssueResponse",
]
