"""
app/schemas package marker.
"""

from app.schemas.watchlist import (
    ImportPreviewResponse,
    ImportRowErrorResponse,
    ImportRowWarningResponse,
    NativeExportRowResponse,
    ReorderRequest,
    ReorderResponse,
    WatchlistEntryCreateRequest,
    WatchlistEntryResponse,
    WatchlistEntryUpdateRequest,
    WatchlistExportResponse,
    WatchlistImportSummaryResponse,
    WatchlistListResponse,
)

__all__ = [
    "ImportPreviewResponse",
    "ImportRowErrorResponse",
    "ImportRowWarningResponse",
    "NativeExportRowResponse",
    "ReorderRequest",
    "ReorderResponse",
    "WatchlistEntryCreateRequest",
    "WatchlistEntryResponse",
    "WatchlistEntryUpdateRequest",
    "WatchlistExportResponse",
    "WatchlistImportSummaryResponse",
    "WatchlistListResponse",
]
