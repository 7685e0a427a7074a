"""
app/services/export_service.py

Native-format watchlist export.

The column set doubles as the native import signature, so an exported file
is recognised as ``native`` when it is imported again.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from functools import lru_cache

from sqlalchemy.orm import Session

from app.config import get_app_settings
from app.connectors.tmdb_connector import get_catalog_lookup
from app.domain.catalog import CatalogItem, CatalogLookup, CatalogLookupError
from app.repositories.watchlist_repository import WatchlistRepository
from app.services import reorder_engine
from db.models.watchlist_entry import MediaType, WatchlistEntry

logger = logging.getLogger(__name__)

# (CSV header, NativeExportRow attribute)
NATIVE_EXPORT_COLUMNS: tuple[tuple[str, str], ...] = (
    ("Order", "order"),
    ("Title", "title"),
    ("Type", "type"),
    ("URL", "url"),
    ("IMDB ID", "imdb_id"),
    ("Release Date", "release_date"),
    ("Year", "year"),
    ("Genre", "genre"),
    ("Description", "description"),
    ("Directors/Creators", "directors_creators"),
    ("Runtime", "runtime"),
    ("IMDB Rating", "imdb_rating"),
    ("Note", "note"),
    ("Date Created", "date_created"),
    ("Date Modified", "date_modified"),
)

MEDIA_TYPE_LABELS = {
    MediaType.MOVIE: "Movie",
    MediaType.TV: "TV Show",
}


@dataclass(frozen=True)
class NativeExportRow:
    order: int
    title: str
    type: str
    url: str
    imdb_id: str = ""
    release_date: str = ""
    year: str = ""
    genre: str = ""
    description: str = ""
    directors_creators: str = ""
    runtime: str = ""
    imdb_rating: str = ""
    note: str = ""
    date_created: str = ""
    date_modified: str = ""

    def to_dict(self) -> dict[str, object]:
        return asdict(self)

    def cells(self) -> list[str]:
        return [str(getattr(self, attribute)) for _, attribute in NATIVE_EXPORT_COLUMNS]


def format_runtime(minutes: int | None) -> str:
    if not minutes or minutes <= 0:
        return ""
    return f"{minutes // 60}h {minutes % 60}m"


def format_rating(vote_average: float | None) -> str:
    return f"{vote_average:.1f}" if vote_average else ""


def _iso_day(value: datetime | None) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date().isoformat()


def render_native_csv(rows: Sequence[NativeExportRow]) -> str:
    """
    Serialize rows as RFC4180 CSV with every cell quoted.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow([header for header, _ in NATIVE_EXPORT_COLUMNS])
    for row in rows:
        writer.writerow(row.cells())
    return buffer.getvalue()


class WatchlistExportService:
    """
    Builds native export rows for one owner in list order.
    """

    def __init__(self, *, public_base_url: str, catalog: CatalogLookup | None = None) -> None:
        self._public_base_url = public_base_url.rstrip("/")
        self._catalog = catalog

    def export_native(self, *, db: Session, owner_id: str) -> list[NativeExportRow]:
        entries = reorder_engine.full_sequence(WatchlistRepository(db).list_for_owner(owner_id))
        rows = [self.build_row(entry) for entry in entries]
        logger.info("Watchlist export built owner_id=%s rows=%s", owner_id, len(rows))
        return rows

    def build_row(self, entry: WatchlistEntry) -> NativeExportRow:
        display_date = entry.display_date
        basic = NativeExportRow(
            order=entry.order,
            title=entry.title,
            type=MEDIA_TYPE_LABELS.get(entry.media_type, entry.media_type),
            url=f"{self._public_base_url}/{entry.media_type}/{entry.external_id}",
            release_date=display_date.isoformat() if display_date else "",
            year=str(display_date.year) if display_date else "",
            note=entry.note or "",
            date_created=_iso_day(entry.created_at),
            date_modified=_iso_day(entry.updated_at),
        )

        item = self._details_for(entry)
        if item is None:
            return basic
        return NativeExportRow(
            **{
                **basic.to_dict(),
                "imdb_id": item.imdb_id or "",
                "genre": ", ".join(item.genres),
                "description": item.overview or "",
                "directors_creators": ", ".join(item.people),
                "runtime": format_runtime(item.runtime_minutes),
                "imdb_rating": format_rating(item.vote_average),
            }
        )

    def _details_for(self, entry: WatchlistEntry) -> CatalogItem | None:
        if self._catalog is None:
            return None
        try:
            return self._catalog.get_details(entry.external_id, entry.media_type)
        except CatalogLookupError as exc:
            logger.warning(
                "Export catalog lookup failed external_id=%s media_type=%s error=%s",
                entry.external_id,
                entry.media_type,
                exc,
            )
            return None


@lru_cache(maxsize=1)
def get_watchlist_export_service() -> WatchlistExportService:
    return WatchlistExportService(
        public_base_url=get_app_settings().public_base_url,
        catalog=get_catalog_lookup(),
    )
