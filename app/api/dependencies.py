"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import Depends, File, Header, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.repositories.watchlist_repository import WatchlistRepository
from app.services.watchlist_service import WatchlistService
from db.session import get_db

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "text/plain",
}

OWNER_ID_HEADER = "X-Owner-Id"


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").split(";")[0].strip().lower()

    if not filename.endswith(".csv") and content_type not in CSV_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed.",
        )

    return file


def get_owner_id(x_owner_id: str | None = Header(default=None, alias=OWNER_ID_HEADER)) -> str:
    """
    Resolve the watchlist owner from the header set by the upstream auth proxy.
    """

    owner_id = (x_owner_id or "").strip()
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return owner_id


def get_watchlist_service(db: Session = Depends(get_db)) -> WatchlistService:
    return WatchlistService(WatchlistRepository(db))
