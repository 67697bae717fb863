"""
app/validators package marker.
"""

from app.validators.import_checks import ImportChecker
from app.validators.row_normalizer import RowNormalizer, normalize_row, record_to_row

__all__ = [
    "ImportChecker",
    "RowNormalizer",
    "normalize_row",
    "record_to_row",
]
