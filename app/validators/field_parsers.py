"""
app/validators/field_parsers.py

Lenient value parsers shared by the validator and the import reconciler.
Every parser returns None instead of raising on bad input.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from db.models.watchlist_entry import MediaType

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
)

_MOVIE_MARKERS = frozenset(
    {"movie", "movies", "film", "feature", "featurefilm", "tvmovie", "short", "video", "documentary"}
)
_TV_MARKERS = frozenset(
    {"tv", "tvshow", "tvshows", "tvseries", "series", "show", "tvminiseries", "miniseries", "tvspecial"}
)

_CATALOG_URL_PATTERN = re.compile(r"/(movie|tv)/(\d+)(?:[/?#-]|$)")
_IMDB_ID_PATTERN = re.compile(r"^tt\d+$")
_YEAR_PATTERN = re.compile(r"^\d{4}$")


def parse_media_type(raw: str | None) -> str | None:
    """
    Map free-form type labels ("Movie", "TV Show", "tvSeries", ...) to movie/tv.
    """

    if raw is None:
        return None
    normalized = re.sub(r"[^a-z]", "", raw.lower())
    if not normalized:
        return None
    if normalized in _MOVIE_MARKERS:
        return MediaType.MOVIE
    if normalized in _TV_MARKERS:
        return MediaType.TV
    if "movie" in normalized or "film" in normalized:
        return MediaType.MOVIE
    if normalized.startswith("tv") or "series" in normalized or "show" in normalized:
        return MediaType.TV
    return None


def parse_date(raw: str | None) -> date | None:
    if raw is None or not raw.strip():
        return None
    value = raw.strip()
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def parse_year(raw: str | None) -> int | None:
    if raw is None:
        return None
    value = raw.strip()
    if not _YEAR_PATTERN.match(value):
        return None
    year = int(value)
    if 1870 <= year <= 2100:
        return year
    return None


def parse_external_id(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value > 0 else None


def parse_order(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value >= 0 else None


def parse_catalog_url(raw: str | None) -> tuple[str, int] | None:
    """
    Extract (media_type, external_id) from a native export URL like ".../movie/27205".
    """

    if raw is None:
        return None
    match = _CATALOG_URL_PATTERN.search(raw.strip())
    if match is None:
        return None
    return match.group(1), int(match.group(2))


def is_imdb_id(raw: str | None) -> bool:
    return bool(raw) and bool(_IMDB_ID_PATTERN.match(raw.strip()))
