"""
app/api/routers/watchlist_import.py

Watchlist CSV import and export HTTP endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Form, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_csv_upload, get_owner_id
from app.domain.watchlist_import import DuplicatePolicy
from app.parsers.csv_parser import CSVParseError
from app.repositories.watchlist_repository import WatchlistPersistenceError
from app.schemas.watchlist import (
    ImportPreviewResponse,
    ImportRowErrorResponse,
    ImportRowWarningResponse,
    NativeExportRowResponse,
    WatchlistExportResponse,
    WatchlistImportSummaryResponse,
)
from app.services.export_service import (
    WatchlistExportService,
    get_watchlist_export_service,
    render_native_csv,
)
from app.services.watchlist_import_service import (
    CSVUploadTooLargeError,
    CSVValidationFailedError,
    ImportInProgressError,
    WatchlistImportService,
    get_watchlist_import_service,
)
from db.session import get_db

router = APIRouter(prefix="/watchlist", tags=["watchlist-import"])


@router.post("/import", response_model=WatchlistImportSummaryResponse)
def import_watchlist_csv(
    file: UploadFile = Depends(get_csv_upload),
    duplicate_action: str = Form(default=DuplicatePolicy.SKIP, alias="duplicateAction"),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
    import_service: WatchlistImportService = Depends(get_watchlist_import_service),
) -> WatchlistImportSummaryResponse:
    """
    Import one CSV file into the caller's watchlist.
    """

    try:
        content = import_service.read_upload(file)
        outcome = import_service.import_csv(
            content=content,
            db=db,
            owner_id=owner_id,
            duplicate_action=duplicate_action.strip().lower(),
        )
    except CSVUploadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except CSVParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except CSVValidationFailedError as exc:
        detail: dict[str, object] = {"message": "CSV validation failed."}
        if exc.preview is not None:
            detail.update(exc.preview.to_dict())
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        ) from exc
    except ImportInProgressError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except WatchlistPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to import watchlist.",
        ) from exc
    finally:
        file.file.close()

    return WatchlistImportSummaryResponse(
        imported=outcome.imported,
        skipped=outcome.skipped,
        errors=[ImportRowErrorResponse(row=item.row, error=item.error) for item in outcome.errors],
        warnings=[ImportRowWarningResponse(row=item.row, warning=item.warning) for item in outcome.warnings],
    )


@router.post(
    "/import/preview",
    response_model=ImportPreviewResponse,
    dependencies=[Depends(get_owner_id)],
)
def preview_watchlist_csv(
    file: UploadFile = Depends(get_csv_upload),
    import_service: WatchlistImportService = Depends(get_watchlist_import_service),
) -> ImportPreviewResponse:
    """
    Detect, map and validate a CSV file without importing it.
    """

    try:
        preview = import_service.preview(import_service.read_upload(file))
    except CSVUploadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except CSVParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        file.file.close()

    return ImportPreviewResponse(**preview.to_dict())


@router.get("/export", response_model=WatchlistExportResponse)
def export_watchlist(
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
    export_service: WatchlistExportService = Depends(get_watchlist_export_service),
) -> WatchlistExportResponse:
    """
    Return the caller's watchlist as native export rows.
    """

    rows = export_service.export_native(db=db, owner_id=owner_id)
    return WatchlistExportResponse(items=[NativeExportRowResponse(**row.to_dict()) for row in rows])


@router.get("/export.csv")
def export_watchlist_csv(
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
    export_service: WatchlistExportService = Depends(get_watchlist_export_service),
) -> Response:
    """
    Download the caller's watchlist as a native CSV file.
    """

    rows = export_service.export_native(db=db, owner_id=owner_id)
    filename = f"watchlist-{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=render_native_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Row-Count": str(len(rows)),
        },
    )
