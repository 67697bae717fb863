"""
app/domain package marker.
"""

from app.domain.insurance_record import (
    DIMENSION_FIELDS,
    RECORD_FIELDS,
    DatasetSummary,
    ImportSummary,
    InsuranceRecord,
    RowIssue,
)

__all__ = [
    "DIMENSION_FIELDS",
    "DatasetSummary",
    "ImportSummary",
    "InsuranceRecord",
    "RECORD_FIELDS",
    "RowIssue",
]
