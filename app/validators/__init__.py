"""
app/validators package marker.
"""

from app.validators.csv_validator import WatchlistCSVValidator, validate
from app.validators.mapping_validator import MappingValidator

__all__ = [
    "MappingValidator",
    "WatchlistCSVValidator",
    "validate",
]
