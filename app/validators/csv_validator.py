"""
app/validators/csv_validator.py

Document-level validation for watchlist CSV imports.
"""

from __future__ import annotations

from app.config import get_watchlist_import_settings
from app.domain.csv_document import CsvRow, RawCsvDocument
from app.domain.watchlist_import import DetectedSource, ValidationIssue, ValidationResult
from app.mappers.column_mapper import ColumnMapping
from app.validators.field_parsers import (
    is_imdb_id,
    parse_catalog_url,
    parse_date,
    parse_external_id,
    parse_media_type,
    parse_order,
    parse_year,
)
from app.validators.mapping_validator import MappingValidator

DATE_FIELD_LABELS: dict[str, str] = {
    "releaseDate": "release date",
    "firstAirDate": "first air date",
}


class WatchlistCSVValidator:
    """
    Checks a mapped document before any write happens.

    Errors block the import; warnings are informational and the affected
    values fall back to defaults during reconciliation.
    """

    def __init__(
        self,
        *,
        sample_rows: int | None = None,
        max_missing_title_ratio: float | None = None,
        mapping_validator: MappingValidator | None = None,
    ) -> None:
        settings = get_watchlist_import_settings()
        self._sample_rows = max(0, sample_rows if sample_rows is not None else settings.sample_rows)
        self._max_missing_title_ratio = (
            max_missing_title_ratio
            if max_missing_title_ratio is not None
            else settings.max_missing_title_ratio
        )
        self._mapping_validator = mapping_validator or MappingValidator()

    def validate(self, document: RawCsvDocument, mapping: ColumnMapping) -> ValidationResult:
        errors: list[ValidationIssue] = list(self._mapping_validator.validate(mapping))
        warnings: list[ValidationIssue] = []
        rows = document.rows

        if not rows:
            errors.append(ValidationIssue(message="CSV file contains no data rows."))

        if mapping.has("title") and rows:
            errors.extend(self._check_title_coverage(rows, mapping, warnings))

        if self._expects_type_column(mapping):
            warnings.append(
                ValidationIssue(message="No type column found; every row will be imported as a movie.")
            )

        seen: dict[tuple[str, str], int] = {}
        for row in rows:
            warnings.extend(self._check_row(row, mapping))
            duplicate = self._check_duplicate(row, mapping, seen)
            if duplicate is not None:
                warnings.append(duplicate)

        return ValidationResult(
            error_issues=tuple(errors),
            warning_issues=tuple(warnings),
            sample_rows=tuple(rows[: self._sample_rows]),
        )

    def _check_title_coverage(
        self,
        rows: tuple[CsvRow, ...],
        mapping: ColumnMapping,
        warnings: list[ValidationIssue],
    ) -> list[ValidationIssue]:
        missing = [row for row in rows if not mapping.value(row, "title")]
        if len(missing) == len(rows):
            return [ValidationIssue(message="No usable rows: every row is missing a title.")]

        ratio = len(missing) / len(rows)
        if ratio > self._max_missing_title_ratio:
            return [
                ValidationIssue(
                    message=(
                        f"{len(missing)} of {len(rows)} rows are missing a title "
                        f"(at most {self._max_missing_title_ratio:.0%} allowed)."
                    )
                )
            ]

        warnings.extend(
            ValidationIssue(message="Missing title.", row_number=row.row_number) for row in missing
        )
        return []

    @staticmethod
    def _expects_type_column(mapping: ColumnMapping) -> bool:
        if mapping.source not in {DetectedSource.GENERIC, DetectedSource.TMDB}:
            return False
        return not mapping.has("mediaType") and not mapping.has("url")

    def _check_row(self, row: CsvRow, mapping: ColumnMapping) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        row_number = row.row_number

        # IMDb types are resolved through the catalog lookup instead.
        if mapping.has("mediaType") and mapping.source != DetectedSource.IMDB:
            raw_type = mapping.value(row, "mediaType")
            if not raw_type:
                if parse_catalog_url(mapping.value(row, "url")) is None:
                    issues.append(
                        ValidationIssue(message="Missing type; defaulting to movie.", row_number=row_number)
                    )
            elif parse_media_type(raw_type) is None:
                issues.append(
                    ValidationIssue(
                        message=f"Unrecognized type '{raw_type}'; defaulting to movie.",
                        row_number=row_number,
                    )
                )

        for field_name, label in DATE_FIELD_LABELS.items():
            raw_date = mapping.value(row, field_name)
            if raw_date and parse_date(raw_date) is None:
                issues.append(
                    ValidationIssue(
                        message=f"Unparseable {label} '{raw_date}' will be ignored.",
                        row_number=row_number,
                    )
                )

        raw_year = mapping.value(row, "year")
        if raw_year and parse_year(raw_year) is None:
            issues.append(
                ValidationIssue(message=f"Unparseable year '{raw_year}' will be ignored.", row_number=row_number)
            )

        if mapping.source == DetectedSource.IMDB and not is_imdb_id(mapping.value(row, "imdbId")):
            issues.append(
                ValidationIssue(message="Invalid or missing IMDb ID in Const column.", row_number=row_number)
            )

        raw_external_id = mapping.value(row, "externalId")
        if raw_external_id and parse_external_id(raw_external_id) is None:
            issues.append(
                ValidationIssue(message=f"Invalid TMDB ID '{raw_external_id}'.", row_number=row_number)
            )

        raw_order = mapping.value(row, "order")
        if raw_order and parse_order(raw_order) is None:
            issues.append(
                ValidationIssue(
                    message=f"Invalid order value '{raw_order}'; position will be assigned automatically.",
                    row_number=row_number,
                )
            )

        return issues

    @staticmethod
    def _check_duplicate(
        row: CsvRow,
        mapping: ColumnMapping,
        seen: dict[tuple[str, str], int],
    ) -> ValidationIssue | None:
        title = mapping.value(row, "title")
        if not title:
            return None
        key = (title.casefold(), duplicate_identifier(row, mapping))
        first_row = seen.get(key)
        if first_row is None:
            seen[key] = row.row_number
            return None
        return ValidationIssue(
            message=f"Duplicate of row {first_row} ('{title}').",
            row_number=row.row_number,
        )


def duplicate_identifier(row: CsvRow, mapping: ColumnMapping) -> str:
    """
    Identifier half of the in-file duplicate key: external id, URL id or IMDb id.
    """

    external_id = parse_external_id(mapping.value(row, "externalId"))
    if external_id is not None:
        return str(external_id)
    from_url = parse_catalog_url(mapping.value(row, "url"))
    if from_url is not None:
        return str(from_url[1])
    return mapping.value(row, "imdbId").lower()


def validate(document: RawCsvDocument, mapping: ColumnMapping) -> ValidationResult:
    return WatchlistCSVValidator().validate(document, mapping)
