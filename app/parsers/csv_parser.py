"""
app/parsers/csv_parser.py

Tokenizes raw CSV text into a RawCsvDocument.

Responsibilities:
  - UTF-8 decoding with optional BOM
  - RFC4180 quoting (embedded commas, newlines and doubled quotes)
  - header trimming, blank-line skipping, row alignment to the header
"""

from __future__ import annotations

import csv
import io

from app.domain.csv_document import CsvRow, RawCsvDocument


class CSVParseError(ValueError):
    """
    Raised when the whole file must be rejected before mapping.
    """


def parse_csv(content: str | bytes) -> RawCsvDocument:
    """
    Parse CSV content into headers and aligned rows.

    Short rows are padded with "", values beyond the header width are
    ignored, and for repeated header names the first column wins.
    """

    text = _decode(content)
    reader = csv.reader(io.StringIO(text, newline=""))

    headers: tuple[str, ...] | None = None
    rows: list[CsvRow] = []
    lines_consumed = 0

    try:
        for values in reader:
            start_line = lines_consumed + 1
            lines_consumed = reader.line_num

            if headers is None:
                if _is_empty_line(values):
                    continue
                headers = tuple(value.strip() for value in values)
                if not any(headers):
                    raise CSVParseError("CSV header row is empty.")
                continue

            if _is_blank(values):
                continue

            rows.append(CsvRow(start_line, _align(headers, values)))
    except csv.Error as exc:
        raise CSVParseError(f"Invalid CSV format: {exc}") from exc

    if headers is None:
        raise CSVParseError("CSV file is empty.")
    if not rows:
        raise CSVParseError("CSV file contains no data rows.")

    return RawCsvDocument(headers=headers, rows=tuple(rows))


def _align(headers: tuple[str, ...], values: list[str]) -> dict[str, str]:
    aligned: dict[str, str] = {}
    for index, header in enumerate(headers):
        if header in aligned:
            continue
        aligned[header] = values[index].strip() if index < len(values) else ""
    return aligned


def _is_empty_line(values: list[str]) -> bool:
    return not values or (len(values) == 1 and not values[0].strip())


def _is_blank(values: list[str]) -> bool:
    return all(not value.strip() for value in values)


def _decode(content: str | bytes) -> str:
    if isinstance(content, bytes):
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CSVParseError("CSV must be UTF-8 encoded.") from exc
    if content.startswith("\ufeff"):
        return content[1:]
    return content
