"""
app/services/watchlist_import_service.py

Service layer for the watchlist CSV import workflow.

    parse -> detect source / map columns -> validate -> reconcile

Parse and validation failures abort before anything is written. Only one
import per owner runs at a time; a second concurrent request is rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from fastapi import UploadFile
from sqlalchemy.orm import Session

from app.config import get_watchlist_import_settings
from app.connectors.tmdb_connector import get_catalog_lookup
from app.domain.catalog import CatalogLookup
from app.domain.csv_document import RawCsvDocument
from app.domain.watchlist_import import DUPLICATE_POLICIES, ImportOutcome, ValidationResult
from app.mappers.column_mapper import ColumnMapper, ColumnMapping
from app.parsers.csv_parser import CSVParseError, parse_csv
from app.repositories.watchlist_repository import WatchlistRepository
from app.services.import_reconciler import ImportReconciler
from app.services.owner_locks import OwnerLockRegistry, owner_locks
from app.services.write_retry import WriteRetryPolicy
from app.validators.csv_validator import WatchlistCSVValidator

logger = logging.getLogger(__name__)

IMPORT_LOCK_SCOPE = "watchlist-import"
HEADER_ROW_NUMBER = 1


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CSVUploadTooLargeError(CSVParseError):
    """
    Raised when the uploaded file exceeds the configured size limit.
    """


class CSVValidationFailedError(ValueError):
    """
    Raised when validation reports blocking errors; nothing has been written.
    """

    def __init__(self, validation: ValidationResult, preview: ImportPreview | None = None) -> None:
        super().__init__("; ".join(validation.errors) or "CSV validation failed.")
        self.validation = validation
        self.preview = preview


class ImportInProgressError(RuntimeError):
    """
    Raised when another import for the same owner is still running.
    """


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportPreview:
    """
    Everything the client needs to show before confirming an import.
    """

    document: RawCsvDocument
    detected_source: str
    mapping: ColumnMapping
    validation: ValidationResult

    def to_dict(self) -> dict[str, object]:
        return {
            "detectedSource": self.detected_source,
            "columnMapping": dict(self.mapping.canonical_to_source),
            "isValid": self.validation.is_valid,
            "errors": list(self.validation.errors),
            "warnings": list(self.validation.warnings),
            "sampleRows": [row.to_dict() for row in self.validation.sample_rows],
        }


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class WatchlistImportService:
    """
    Coordinates CSV parsing, mapping, validation and reconciliation.
    """

    def __init__(
        self,
        *,
        max_upload_bytes: int,
        log_row_errors: bool,
        catalog: CatalogLookup | None = None,
        mapper: ColumnMapper | None = None,
        validator: WatchlistCSVValidator | None = None,
        retry_policy: WriteRetryPolicy | None = None,
        locks: OwnerLockRegistry | None = None,
    ) -> None:
        self._max_upload_bytes = max(1, max_upload_bytes)
        self._log_row_errors = log_row_errors
        self._catalog = catalog
        self._mapper = mapper or ColumnMapper()
        self._validator = validator or WatchlistCSVValidator()
        self._retry_policy = retry_policy or WriteRetryPolicy.from_settings()
        self._locks = locks or owner_locks

    def read_upload(self, upload_file: UploadFile) -> bytes:
        raw_file = upload_file.file
        raw_file.seek(0)
        content = raw_file.read(self._max_upload_bytes + 1)
        if len(content) > self._max_upload_bytes:
            raise CSVUploadTooLargeError(
                f"CSV file exceeds the {self._max_upload_bytes} byte upload limit."
            )
        return content

    def preview(self, content: str | bytes) -> ImportPreview:
        """
        Parse, detect, map and validate without touching the database.
        """

        document = parse_csv(content)
        detected_source, mapping = self._mapper.detect_and_map(document)
        validation = self._validator.validate(document, mapping)
        return ImportPreview(
            document=document,
            detected_source=detected_source,
            mapping=mapping,
            validation=validation,
        )

    def import_csv(
        self,
        *,
        content: str | bytes,
        db: Session,
        owner_id: str,
        duplicate_action: str,
    ) -> ImportOutcome:
        """
        Run the full pipeline for one file and return the per-row summary.

        Validation warnings are carried into the summary next to the row
        warnings raised while reconciling.
        """

        if duplicate_action not in DUPLICATE_POLICIES:
            raise ValueError(f"duplicateAction must be one of: {', '.join(sorted(DUPLICATE_POLICIES))}")

        preview = self.preview(content)
        if not preview.validation.is_valid:
            logger.info(
                "Watchlist import rejected owner_id=%s source=%s errors=%s",
                owner_id,
                preview.detected_source,
                len(preview.validation.errors),
            )
            raise CSVValidationFailedError(preview.validation, preview)

        with self._locks.hold(IMPORT_LOCK_SCOPE, owner_id, blocking=False) as acquired:
            if not acquired:
                raise ImportInProgressError("An import is already running for this watchlist.")

            logger.info(
                "Watchlist import started owner_id=%s source=%s rows=%s policy=%s",
                owner_id,
                preview.detected_source,
                preview.document.row_count,
                duplicate_action,
            )
            reconciler = ImportReconciler(
                WatchlistRepository(db),
                catalog=self._catalog,
                retry_policy=self._retry_policy,
                log_row_errors=self._log_row_errors,
            )
            outcome = ImportOutcome()
            # File-level warnings are reported against the header row.
            for issue in preview.validation.warning_issues:
                outcome.add_warning(issue.row_number or HEADER_ROW_NUMBER, issue.message)

            result = reconciler.reconcile(
                owner_id,
                preview.document,
                preview.mapping,
                duplicate_action,
            )

        outcome.imported = result.imported
        outcome.skipped = result.skipped
        outcome.errors.extend(result.errors)
        outcome.warnings.extend(result.warnings)
        logger.info(
            "Watchlist import finished owner_id=%s imported=%s skipped=%s errors=%s warnings=%s",
            owner_id,
            outcome.imported,
            outcome.skipped,
            len(outcome.errors),
            len(outcome.warnings),
        )
        return outcome


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_watchlist_import_service() -> WatchlistImportService:
    """
    Build and cache the import service with env-driven settings.
    """
    settings = get_watchlist_import_settings()
    return WatchlistImportService(
        max_upload_bytes=settings.max_upload_bytes,
        log_row_errors=settings.log_row_errors,
        catalog=get_catalog_lookup(),
    )
