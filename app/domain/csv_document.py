"""
app/domain/csv_document.py

Parsed CSV document shared by the watchlist import stages.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType


class CsvRow(Mapping[str, str]):
    """
    Read-only header -> value mapping for one CSV record.

    ``row_number`` is the 1-based file line on which the record starts, so
    the header is row 1 and messages can be correlated with the source file.
    """

    __slots__ = ("row_number", "_values")

    def __init__(self, row_number: int, values: Mapping[str, str]) -> None:
        self.row_number = row_number
        self._values = MappingProxyType(dict(values))

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"CsvRow(row_number={self.row_number}, values={dict(self._values)!r})"

    def value(self, header: str | None) -> str:
        """
        Return the stripped value under ``header``, or "" when unmapped/missing.
        """

        if header is None:
            return ""
        return (self._values.get(header) or "").strip()

    def to_dict(self) -> dict[str, str]:
        return dict(self._values)


@dataclass(frozen=True)
class RawCsvDocument:
    """
    Headers exactly as they appear (trimmed, not deduplicated) plus data rows.
    """

    headers: tuple[str, ...]
    rows: tuple[CsvRow, ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)
