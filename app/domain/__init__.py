"""
app/domain package marker.
"""

from app.domain.catalog import CatalogItem, CatalogLookup, CatalogLookupError
from app.domain.csv_document import CsvRow, RawCsvDocument
from app.domain.watchlist_import import (
    DUPLICATE_POLICIES,
    DetectedSource,
    DuplicatePolicy,
    ImportOutcome,
    ImportRowError,
    ImportRowWarning,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "CatalogItem",
    "CatalogLookup",
    "CatalogLookupError",
    "CsvRow",
    "DUPLICATE_POLICIES",
    "DetectedSource",
    "DuplicatePolicy",
    "ImportOutcome",
    "ImportRowError",
    "ImportRowWarning",
    "RawCsvDocument",
    "ValidationIssue",
    "ValidationResult",
]
