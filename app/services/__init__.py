"""
app/services package marker.
"""

from app.services.aggregation_service import InvalidFilterError
from app.services.csv_import_service import (
    CSVImportService,
    ImportResult,
    get_csv_import_service,
    render_import_report,
)
from app.services.kpi_service import KPIResult, KPIService, MetricValue, compute_kpis
from app.services.quality_service import (
    QualityIssue,
    QualityReport,
    assess_completeness,
    build_quality_report,
)

__all__ = [
    "CSVImportService",
    "ImportResult",
    "get_csv_import_service",
    "render_import_report",
    "InvalidFilterError",
    "KPIResult",
    "KPIService",
    "MetricValue",
    "compute_kpis",
    "QualityIssue",
    "QualityReport",
    "assess_completeness",
    "build_quality_report",
]
