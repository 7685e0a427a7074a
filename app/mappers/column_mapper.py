"""
app/mappers/column_mapper.py

Source detection and column mapping for watchlist CSV imports.

Known exports (native, IMDb, TMDB) are recognised from a required header
signature and mapped through a fixed table. Anything else is treated as a
generic CSV and mapped by alias and fuzzy matching.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Mapping, Sequence

from app.domain.csv_document import CsvRow, RawCsvDocument
from app.domain.watchlist_import import DetectedSource

CANONICAL_FIELDS: tuple[str, ...] = (
    "title",
    "mediaType",
    "externalId",
    "imdbId",
    "url",
    "order",
    "note",
    "releaseDate",
    "firstAirDate",
    "year",
    "posterPath",
    "backdropPath",
)

# Tested in this order; the first source whose signature is fully present wins.
SOURCE_SIGNATURES: tuple[tuple[str, frozenset[str]], ...] = (
    (DetectedSource.NATIVE, frozenset({"order", "title", "type", "url", "datecreated"})),
    (DetectedSource.IMDB, frozenset({"const", "title", "titletype"})),
    (DetectedSource.TMDB, frozenset({"tmdbid", "type", "name"})),
)

# canonical field -> normalized header names, in preference order
SOURCE_COLUMN_TABLES: dict[str, dict[str, tuple[str, ...]]] = {
    DetectedSource.NATIVE: {
        "title": ("title",),
        "mediaType": ("type",),
        "externalId": ("tmdbid",),
        "imdbId": ("imdbid",),
        "url": ("url",),
        "order": ("order",),
        "note": ("note",),
        "releaseDate": ("releasedate",),
        "year": ("year",),
    },
    DetectedSource.IMDB: {
        "title": ("title",),
        "mediaType": ("titletype",),
        "imdbId": ("const",),
        "url": ("url",),
        "order": ("position",),
        "note": ("description",),
        "releaseDate": ("releasedate",),
        "year": ("year",),
    },
    DetectedSource.TMDB: {
        "title": ("name",),
        "mediaType": ("type",),
        "externalId": ("tmdbid",),
        "imdbId": ("imdbid",),
        "releaseDate": ("releasedate",),
    },
}

DEFAULT_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("name", "movie title", "tv title", "show title", "film"),
    "mediaType": ("type", "media type", "kind", "category", "title type"),
    "externalId": ("tmdb id", "tmdb", "themoviedb id", "movie id"),
    "imdbId": ("imdb id", "imdb", "const", "imdb const"),
    "url": ("link", "tmdb url"),
    "order": ("rank", "position", "sort order", "priority"),
    "note": ("notes", "comment", "comments", "description", "remarks"),
    "firstAirDate": ("first air date", "air date", "first aired"),
    "releaseDate": ("release date", "released", "date released", "premiere date"),
    "year": ("release year", "yr"),
    "posterPath": ("poster", "poster path", "poster url"),
    "backdropPath": ("backdrop", "backdrop path", "backdrop url"),
}

_NORMALIZE_PATTERN = re.compile(r"[\s_\-]+")
_MIN_CONTAINMENT_LENGTH = 4
# Source names alone are too broad to anchor a substring match ("TMDB Rating").
_BARE_SOURCE_NAMES = frozenset({"tmdb", "imdb"})
# Headers describing a measurement never map to an identifier or a date.
_MEASUREMENT_TOKENS: tuple[str, ...] = ("rating", "score", "vote")


def normalize_header(value: str) -> str:
    """
    Lowercase and drop whitespace, underscores and hyphens.
    """

    return _NORMALIZE_PATTERN.sub("", value.strip().lower())


@dataclass(frozen=True)
class ColumnMapping:
    """
    Canonical field -> header found in the document. Read-only once built.
    """

    source: str
    canonical_to_source: dict[str, str] = field(default_factory=dict)
    match_strategies: dict[str, str] = field(default_factory=dict)

    def get(self, canonical_field: str) -> str | None:
        return self.canonical_to_source.get(canonical_field)

    def has(self, canonical_field: str) -> bool:
        return canonical_field in self.canonical_to_source

    def value(self, row: CsvRow, canonical_field: str) -> str:
        """
        Stripped row value for ``canonical_field``; "" when the field is unmapped.
        """

        return row.value(self.get(canonical_field))


class ColumnMapper:
    """
    Detects the originating export format and maps its headers onto
    canonical field names. Never raises; unmatched fields stay absent.
    """

    def __init__(
        self,
        *,
        aliases: Mapping[str, Sequence[str]] | None = None,
        fuzzy_threshold: float = 0.84,
    ) -> None:
        self._aliases: dict[str, tuple[str, ...]] = {
            canonical: tuple(values)
            for canonical, values in (aliases or DEFAULT_COLUMN_ALIASES).items()
        }
        self._fuzzy_threshold = max(0.0, min(1.0, fuzzy_threshold))

    def detect_and_map(self, document: RawCsvDocument) -> tuple[str, ColumnMapping]:
        source = self.detect_source(document.headers)
        if source == DetectedSource.GENERIC:
            mapping = self._map_generic(document.headers)
        else:
            mapping = self._map_known_source(source, document.headers)
        return source, mapping

    def detect_source(self, headers: Sequence[str]) -> str:
        normalized = {normalize_header(header) for header in headers if header.strip()}
        for source, signature in SOURCE_SIGNATURES:
            if signature <= normalized:
                return source
        return DetectedSource.GENERIC

    def _map_known_source(self, source: str, headers: Sequence[str]) -> ColumnMapping:
        lookup = _header_lookup(headers)
        resolved: dict[str, str] = {}
        strategies: dict[str, str] = {}
        for canonical_field, candidates in SOURCE_COLUMN_TABLES[source].items():
            for candidate in candidates:
                header = lookup.get(candidate)
                if header is not None:
                    resolved[canonical_field] = header
                    strategies[canonical_field] = "signature"
                    break
        return ColumnMapping(
            source=source,
            canonical_to_source=resolved,
            match_strategies=strategies,
        )

    def _map_generic(self, headers: Sequence[str]) -> ColumnMapping:
        lookup = _header_lookup(headers)
        resolved: dict[str, str] = {}
        strategies: dict[str, str] = {}
        used_headers: set[str] = set()

        # Exact/alias matches are claimed first so fuzzy guesses cannot steal them.
        for canonical_field in CANONICAL_FIELDS:
            exact = self._find_exact_or_alias_match(
                canonical_field=canonical_field,
                lookup=lookup,
                used_headers=used_headers,
            )
            if exact is not None:
                resolved[canonical_field] = exact
                strategies[canonical_field] = "exact_or_alias"
                used_headers.add(exact)

        for canonical_field in CANONICAL_FIELDS:
            if canonical_field in resolved:
                continue
            fuzzy_match = self._find_best_fuzzy_match(
                canonical_field=canonical_field,
                lookup=lookup,
                used_headers=used_headers,
            )
            if fuzzy_match is not None:
                resolved[canonical_field] = fuzzy_match
                strategies[canonical_field] = "fuzzy"
                used_headers.add(fuzzy_match)

        return ColumnMapping(
            source=DetectedSource.GENERIC,
            canonical_to_source=resolved,
            match_strategies=strategies,
        )

    def _candidates(self, canonical_field: str) -> list[str]:
        return [
            normalize_header(item)
            for item in (canonical_field, *self._aliases.get(canonical_field, ()))
            if normalize_header(item)
        ]

    def _find_exact_or_alias_match(
        self,
        *,
        canonical_field: str,
        lookup: Mapping[str, str],
        used_headers: set[str],
    ) -> str | None:
        for candidate in self._candidates(canonical_field):
            match = lookup.get(candidate)
            if match is not None and match not in used_headers:
                return match
        return None

    def _find_best_fuzzy_match(
        self,
        *,
        canonical_field: str,
        lookup: Mapping[str, str],
        used_headers: set[str],
    ) -> str | None:
        candidates = self._candidates(canonical_field)

        best_header: str | None = None
        best_score = 0.0
        for header_norm, header_raw in lookup.items():
            if header_raw in used_headers or _is_measurement(header_norm):
                continue
            for candidate in candidates:
                score = SequenceMatcher(None, header_norm, candidate).ratio()
                if _contains(header_norm, candidate):
                    score = max(score, 0.9)
                if score > best_score:
                    best_score = score
                    best_header = header_raw

        if best_header is not None and best_score >= self._fuzzy_threshold:
            return best_header
        return None


def _is_measurement(header_norm: str) -> bool:
    return any(token in header_norm for token in _MEASUREMENT_TOKENS)


def _contains(header_norm: str, candidate: str) -> bool:
    shorter, longer = sorted((header_norm, candidate), key=len)
    if len(shorter) < _MIN_CONTAINMENT_LENGTH or shorter in _BARE_SOURCE_NAMES:
        return False
    return shorter in longer


def _header_lookup(headers: Sequence[str]) -> dict[str, str]:
    lookup: dict[str, str] = {}
    for header in headers:
        normalized = normalize_header(header)
        if normalized and normalized not in lookup:
            lookup[normalized] = header
    return lookup


def detect_and_map(document: RawCsvDocument) -> tuple[str, ColumnMapping]:
    """
    Module-level convenience wrapper around a default ColumnMapper.
    """

    return ColumnMapper().detect_and_map(document)
