"""
app/validators/mapping_validator.py

Checks that a column mapping carries the columns its source needs.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from app.domain.watchlist_import import DetectedSource, ValidationIssue
from app.mappers.column_mapper import ColumnMapping

FIELD_LABELS: dict[str, str] = {
    "title": "Title",
    "mediaType": "Type",
    "externalId": "TMDB ID",
    "imdbId": "IMDb ID",
    "url": "URL",
}

# Each inner tuple is an any-of group: at least one field of the group must be mapped.
REQUIRED_FIELDS_BY_SOURCE: dict[str, tuple[tuple[str, ...], ...]] = {
    DetectedSource.NATIVE: (("title",), ("mediaType",), ("url", "externalId")),
    DetectedSource.IMDB: (("title",), ("imdbId",)),
    DetectedSource.TMDB: (("title",), ("externalId",)),
    DetectedSource.GENERIC: (("title",),),
}


class MappingValidator:
    """
    Reports unmapped required columns as file-level validation errors.
    """

    def __init__(
        self,
        *,
        required_fields: Mapping[str, Sequence[Sequence[str]]] | None = None,
    ) -> None:
        self._required_fields = {
            source: tuple(tuple(group) for group in groups)
            for source, groups in (required_fields or REQUIRED_FIELDS_BY_SOURCE).items()
        }

    def validate(self, mapping: ColumnMapping) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        groups = self._required_fields.get(
            mapping.source,
            self._required_fields.get(DetectedSource.GENERIC, ()),
        )
        for group in groups:
            if any(mapping.has(field_name) for field_name in group):
                continue
            labels = " or ".join(FIELD_LABELS.get(name, name) for name in group)
            issues.append(ValidationIssue(message=f"Missing required column: {labels}"))
        return issues
