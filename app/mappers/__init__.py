"""
app/mappers package marker.
"""

from app.mappers.column_mapper import (
    CANONICAL_FIELDS,
    ColumnMapper,
    ColumnMapping,
    detect_and_map,
    normalize_header,
)

__all__ = [
    "CANONICAL_FIELDS",
    "ColumnMapper",
    "ColumnMapping",
    "detect_and_map",
    "normalize_header",
]
