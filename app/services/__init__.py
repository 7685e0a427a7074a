"""
app/services package marker.
"""

from app.services.export_service import (
    NativeExportRow,
    WatchlistExportService,
    get_watchlist_export_service,
    render_native_csv,
)
from app.services.import_reconciler import ImportReconciler
from app.services.watchlist_import_service import (
    CSVUploadTooLargeError,
    CSVValidationFailedError,
    ImportInProgressError,
    ImportPreview,
    WatchlistImportService,
    get_watchlist_import_service,
)
from app.services.watchlist_service import WatchlistEntryNotFoundError, WatchlistService
from app.services.write_retry import WriteRetryExhaustedError, WriteRetryPolicy, run_with_write_retry

__all__ = [
    "NativeExportRow",
    "WatchlistExportService",
    "get_watchlist_export_service",
    "render_native_csv",
    "ImportReconciler",
    "CSVUploadTooLargeError",
    "CSVValidationFailedError",
    "ImportInProgressError",
    "ImportPreview",
    "WatchlistImportService",
    "get_watchlist_import_service",
    "WatchlistEntryNotFoundError",
    "WatchlistService",
    "WriteRetryExhaustedError",
    "WriteRetryPolicy",
    "run_with_write_retry",
]
