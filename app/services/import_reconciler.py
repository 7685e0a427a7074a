"""
app/services/import_reconciler.py

Reconciles a validated watchlist CSV against the owner's persisted entries.

Rows are processed strictly in file order. Every row is written and committed
on its own, so a failing row never rolls back rows that already succeeded.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from app.domain.catalog import CatalogItem, CatalogLookup, CatalogLookupError
from app.domain.csv_document import CsvRow, RawCsvDocument
from app.domain.watchlist_import import DuplicatePolicy, ImportOutcome
from app.mappers.column_mapper import ColumnMapping
from app.repositories.watchlist_repository import WatchlistPersistenceError, WatchlistRepository
from app.services.write_retry import WriteRetryExhaustedError, WriteRetryPolicy, run_with_write_retry
from app.validators.field_parsers import (
    is_imdb_id,
    parse_catalog_url,
    parse_date,
    parse_external_id,
    parse_media_type,
    parse_order,
    parse_year,
)
from db.models.watchlist_entry import MediaType, WatchlistEntry

logger = logging.getLogger(__name__)


class RowRejectedError(ValueError):
    """
    Raised while resolving one row; recorded as a row error, never propagated.
    """


@dataclass(frozen=True)
class ImportCandidate:
    """
    Fully resolved entry values for one CSV row.
    """

    external_id: int
    media_type: str
    title: str
    catalog_item: CatalogItem | None = None


class _RowResult:
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"


class ImportReconciler:
    """
    Applies one mapped document to the owner's watchlist under a duplicate policy.
    """

    def __init__(
        self,
        repository: WatchlistRepository,
        *,
        catalog: CatalogLookup | None = None,
        retry_policy: WriteRetryPolicy | None = None,
        log_row_errors: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._repository = repository
        self._catalog = catalog
        self._retry_policy = retry_policy or WriteRetryPolicy.from_settings()
        self._log_row_errors = log_row_errors
        self._sleep = sleep

    def reconcile(
        self,
        owner_id: str,
        document: RawCsvDocument,
        mapping: ColumnMapping,
        policy: str = DuplicatePolicy.SKIP,
    ) -> ImportOutcome:
        if policy not in {DuplicatePolicy.SKIP, DuplicatePolicy.UPDATE}:
            raise ValueError(f"Unsupported duplicate policy: {policy}")

        outcome = ImportOutcome()
        for row in document.rows:
            try:
                result = self._reconcile_row(owner_id, row, mapping, policy, outcome)
            except RowRejectedError as exc:
                self._record_error(outcome, owner_id, row.row_number, str(exc))
                continue
            except WriteRetryExhaustedError as exc:
                self._record_error(
                    outcome,
                    owner_id,
                    row.row_number,
                    f"Could not save entry after {exc.attempts} attempts because of concurrent changes.",
                )
                continue
            except WatchlistPersistenceError as exc:
                self._record_error(outcome, owner_id, row.row_number, f"Could not save entry: {exc}")
                continue

            if result == _RowResult.SKIPPED:
                outcome.skipped += 1
            else:
                outcome.imported += 1

        return outcome

    def _reconcile_row(
        self,
        owner_id: str,
        row: CsvRow,
        mapping: ColumnMapping,
        policy: str,
        outcome: ImportOutcome,
    ) -> str:
        candidate = self.resolve_candidate(row, mapping)
        explicit_order = self._explicit_order(row, mapping)
        enrichment: dict[str, CatalogItem | None] = {}

        def write() -> str:
            existing = self._repository.find(owner_id, candidate.external_id, candidate.media_type)
            if existing is not None:
                if policy == DuplicatePolicy.SKIP:
                    return _RowResult.SKIPPED
                self._apply_update(existing, row, mapping, candidate)
                self._repository.save(existing)
                return _RowResult.UPDATED

            if "item" not in enrichment:
                enrichment["item"] = self._enrichment_for(row, mapping, candidate, outcome)
            order = explicit_order if explicit_order == 0 else self._repository.max_order(owner_id) + 1
            self._insert(owner_id, row, mapping, candidate, enrichment["item"], order)
            return _RowResult.INSERTED

        return run_with_write_retry(
            write,
            policy=self._retry_policy,
            description=f"import row {row.row_number}",
            sleep=self._sleep,
        )

    def resolve_candidate(self, row: CsvRow, mapping: ColumnMapping) -> ImportCandidate:
        """
        Resolve catalog id, media type and title for one row.

        Resolution order: TMDB id column, native URL, IMDb id lookup, title search.
        """

        title = mapping.value(row, "title")
        if not title:
            raise RowRejectedError("Missing title.")

        row_media_type = parse_media_type(mapping.value(row, "mediaType"))

        raw_external_id = mapping.value(row, "externalId")
        if raw_external_id:
            external_id = parse_external_id(raw_external_id)
            if external_id is None:
                raise RowRejectedError(f"Invalid TMDB ID '{raw_external_id}'.")
            return ImportCandidate(
                external_id=external_id,
                media_type=row_media_type or MediaType.MOVIE,
                title=title,
            )

        from_url = parse_catalog_url(mapping.value(row, "url"))
        if from_url is not None:
            media_type, external_id = from_url
            return ImportCandidate(external_id=external_id, media_type=media_type, title=title)

        imdb_id = mapping.value(row, "imdbId")
        if is_imdb_id(imdb_id):
            item = self._lookup(lambda catalog: catalog.find_by_imdb_id(imdb_id))
            if item is not None:
                return ImportCandidate(
                    external_id=item.external_id,
                    media_type=item.media_type,
                    title=title,
                    catalog_item=item,
                )

        year = parse_year(mapping.value(row, "year"))
        if year is None:
            row_date = parse_date(mapping.value(row, "releaseDate")) or parse_date(
                mapping.value(row, "firstAirDate")
            )
            year = row_date.year if row_date is not None else None

        item = self._lookup(
            lambda catalog: catalog.search_title(title, media_type=row_media_type, year=year)
        )
        if item is None:
            raise RowRejectedError(f"No catalog match found for '{title}'.")
        return ImportCandidate(
            external_id=item.external_id,
            media_type=item.media_type,
            title=title,
            catalog_item=item,
        )

    def _lookup(self, call: Callable[[CatalogLookup], CatalogItem | None]) -> CatalogItem | None:
        if self._catalog is None:
            raise RowRejectedError("Row has no TMDB ID or URL and catalog lookup is not configured.")
        try:
            return call(self._catalog)
        except CatalogLookupError as exc:
            raise RowRejectedError(f"Catalog lookup failed: {exc}") from exc

    @staticmethod
    def _explicit_order(row: CsvRow, mapping: ColumnMapping) -> int | None:
        return parse_order(mapping.value(row, "order"))

    def _enrichment_for(
        self,
        row: CsvRow,
        mapping: ColumnMapping,
        candidate: ImportCandidate,
        outcome: ImportOutcome,
    ) -> CatalogItem | None:
        """
        Catalog details for a fresh insert that lacks artwork; None when not needed.
        """

        if mapping.value(row, "posterPath") and mapping.value(row, "backdropPath"):
            return None
        if candidate.catalog_item is not None:
            return candidate.catalog_item
        if self._catalog is None:
            return None
        try:
            item = self._catalog.get_details(candidate.external_id, candidate.media_type)
        except CatalogLookupError as exc:
            outcome.add_warning(row.row_number, f"Could not fetch poster for '{candidate.title}': {exc}")
            return None
        if item is None:
            outcome.add_warning(row.row_number, f"No catalog details found for '{candidate.title}'.")
        return item

    def _insert(
        self,
        owner_id: str,
        row: CsvRow,
        mapping: ColumnMapping,
        candidate: ImportCandidate,
        item: CatalogItem | None,
        order: int,
    ) -> WatchlistEntry:
        row_date = _row_date(row, mapping, candidate.media_type)
        if row_date is None and item is not None:
            row_date = item.release_date
        is_tv = candidate.media_type == MediaType.TV

        return self._repository.insert(
            owner_id,
            external_id=candidate.external_id,
            media_type=candidate.media_type,
            title=candidate.title,
            order=order,
            poster_path=mapping.value(row, "posterPath") or (item.poster_path if item else None),
            backdrop_path=mapping.value(row, "backdropPath") or (item.backdrop_path if item else None),
            release_date=None if is_tv else row_date,
            first_air_date=row_date if is_tv else None,
            note=mapping.value(row, "note") or None,
        )

    @staticmethod
    def _apply_update(
        entry: WatchlistEntry,
        row: CsvRow,
        mapping: ColumnMapping,
        candidate: ImportCandidate,
    ) -> None:
        entry.title = candidate.title
        if mapping.has("note"):
            entry.note = mapping.value(row, "note") or None

        row_date = _row_date(row, mapping, candidate.media_type)
        if row_date is not None:
            if candidate.media_type == MediaType.TV:
                entry.first_air_date = row_date
            else:
                entry.release_date = row_date

        poster_path = mapping.value(row, "posterPath")
        if poster_path:
            entry.poster_path = poster_path
        backdrop_path = mapping.value(row, "backdropPath")
        if backdrop_path:
            entry.backdrop_path = backdrop_path

    def _record_error(self, outcome: ImportOutcome, owner_id: str, row_number: int, message: str) -> None:
        outcome.add_error(row_number, message)
        if self._log_row_errors:
            logger.info(
                "Import row rejected owner_id=%s row=%s error=%s",
                owner_id,
                row_number,
                message,
            )


def _row_date(row: CsvRow, mapping: ColumnMapping, media_type: str) -> date | None:
    if media_type == MediaType.TV:
        return parse_date(mapping.value(row, "firstAirDate")) or parse_date(mapping.value(row, "releaseDate"))
    return parse_date(mapping.value(row, "releaseDate")) or parse_date(mapping.value(row, "firstAirDate"))
