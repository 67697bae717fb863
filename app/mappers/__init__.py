"""
app/mappers package marker.
"""

from app.mappers.field_aliases import FIELD_ALIASES, lookup_raw_value

__all__ = [
    "FIELD_ALIASES",
    "lookup_raw_value",
]
