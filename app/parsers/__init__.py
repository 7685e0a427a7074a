"""
app/parsers package marker.
"""

from app.parsers.csv_parser import CSVParseError, parse_csv

__all__ = [
    "CSVParseError",
    "parse_csv",
]
