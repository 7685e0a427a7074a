"""
app/api/routers/watchlist.py

Single-item watchlist and reorder HTTP endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.dependencies import get_owner_id, get_watchlist_service
from app.repositories.watchlist_repository import WatchlistPersistenceError
from app.schemas.watchlist import (
    ReorderRequest,
    ReorderResponse,
    WatchlistEntryCreateRequest,
    WatchlistEntryResponse,
    WatchlistEntryUpdateRequest,
    WatchlistListResponse,
)
from app.services.watchlist_service import WatchlistEntryNotFoundError, WatchlistService
from app.services.write_retry import WriteRetryExhaustedError

router = APIRouter(prefix="/watchlist", tags=["watchlist"])


def _persistence_failure(exc: Exception) -> HTTPException:
    if isinstance(exc, WriteRetryExhaustedError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Watchlist was modified concurrently; please retry.",
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Unable to update watchlist.",
    )


@router.get("", response_model=WatchlistListResponse)
def list_watchlist(
    owner_id: str = Depends(get_owner_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> WatchlistListResponse:
    entries = service.list_entries(owner_id)
    return WatchlistListResponse(items=[WatchlistEntryResponse.model_validate(entry) for entry in entries])


@router.post("", response_model=WatchlistEntryResponse)
def add_to_watchlist(
    payload: WatchlistEntryCreateRequest,
    response: Response,
    owner_id: str = Depends(get_owner_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> WatchlistEntryResponse:
    """
    Add one title; an existing entry is returned unchanged with 200.
    """

    try:
        entry, created = service.add_entry(
            owner_id,
            external_id=payload.external_id,
            media_type=payload.media_type,
            title=payload.title,
            poster_path=payload.poster_path,
            backdrop_path=payload.backdrop_path,
            release_date=payload.release_date,
            first_air_date=payload.first_air_date,
            note=payload.note,
        )
    except (WriteRetryExhaustedError, WatchlistPersistenceError) as exc:
        raise _persistence_failure(exc) from exc

    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return WatchlistEntryResponse.model_validate(entry)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_watchlist(
    external_id: int = Query(..., gt=0, alias="externalId"),
    media_type: str = Query(..., pattern="^(movie|tv)$", alias="mediaType"),
    owner_id: str = Depends(get_owner_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> Response:
    try:
        removed = service.remove_entry(owner_id, external_id, media_type)
    except WatchlistPersistenceError as exc:
        raise _persistence_failure(exc) from exc
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found in watchlist.",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{item_id}", response_model=WatchlistEntryResponse)
def update_watchlist_entry(
    item_id: uuid.UUID,
    payload: WatchlistEntryUpdateRequest,
    owner_id: str = Depends(get_owner_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> WatchlistEntryResponse:
    """
    Update the note and/or position of one entry.
    """

    changes: dict[str, object] = {}
    if "order" in payload.model_fields_set and payload.order is not None:
        changes["order"] = payload.order
    if "note" in payload.model_fields_set:
        changes["note"] = payload.note
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to update; provide order and/or note.",
        )

    try:
        entry = service.update_entry(owner_id, item_id, **changes)
    except WatchlistEntryNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Watchlist item not found.",
        ) from exc
    except WatchlistPersistenceError as exc:
        raise _persistence_failure(exc) from exc

    return WatchlistEntryResponse.model_validate(entry)


@router.post("/reorder", response_model=ReorderResponse)
def reorder_watchlist(
    payload: ReorderRequest,
    owner_id: str = Depends(get_owner_id),
    service: WatchlistService = Depends(get_watchlist_service),
) -> ReorderResponse:
    """
    Apply a drag-and-drop move and return the authoritative list order.
    """

    try:
        result = service.move_entry(
            owner_id,
            payload.item_id,
            from_index=payload.from_index,
            to_index=payload.to_index,
            view_sequence=payload.view_sequence,
            sort_mode=payload.sort,
        )
    except WatchlistEntryNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Watchlist item not found.",
        ) from exc
    except WatchlistPersistenceError as exc:
        raise _persistence_failure(exc) from exc

    return ReorderResponse(
        applied=result.applied,
        items=[WatchlistEntryResponse.model_validate(entry) for entry in result.sequence],
    )
