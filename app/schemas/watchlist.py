"""
app/schemas/watchlist.py

Request and response schemas for watchlist endpoints. JSON keys are camelCase.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ImportRowErrorResponse(_CamelModel):
    row: int = Field(..., ge=1)
    error: str


class ImportRowWarningResponse(_CamelModel):
    row: int = Field(..., ge=1)
    warning: str


class WatchlistImportSummaryResponse(_CamelModel):
    """
    API response model for one completed import run.
    """

    imported: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    errors: list[ImportRowErrorResponse] = Field(default_factory=list)
    warnings: list[ImportRowWarningResponse] = Field(default_factory=list)


class ImportPreviewResponse(_CamelModel):
    """
    Detection, mapping and validation result shown before confirming an import.
    """

    detected_source: str = Field(..., alias="detectedSource")
    column_mapping: dict[str, str] = Field(default_factory=dict, alias="columnMapping")
    is_valid: bool = Field(..., alias="isValid")
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    sample_rows: list[dict[str, str]] = Field(default_factory=list, alias="sampleRows")


class WatchlistEntryResponse(_CamelModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: uuid.UUID
    external_id: int = Field(..., alias="externalId")
    media_type: str = Field(..., alias="mediaType")
    title: str
    poster_path: str | None = Field(default=None, alias="posterPath")
    backdrop_path: str | None = Field(default=None, alias="backdropPath")
    release_date: date | None = Field(default=None, alias="releaseDate")
    first_air_date: date | None = Field(default=None, alias="firstAirDate")
    note: str | None = None
    order: int = Field(..., ge=0)
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class WatchlistListResponse(_CamelModel):
    items: list[WatchlistEntryResponse] = Field(default_factory=list)


class WatchlistEntryCreateRequest(_CamelModel):
    external_id: int = Field(..., gt=0, alias="externalId")
    media_type: Literal["movie", "tv"] = Field(..., alias="mediaType")
    title: str = Field(..., min_length=1, max_length=500)
    poster_path: str | None = Field(default=None, alias="posterPath")
    backdrop_path: str | None = Field(default=None, alias="backdropPath")
    release_date: date | None = Field(default=None, alias="releaseDate")
    first_air_date: date | None = Field(default=None, alias="firstAirDate")
    note: str | None = None


class WatchlistEntryUpdateRequest(_CamelModel):
    """
    Partial update; an omitted ``note`` is left alone, an explicit null clears it.
    """

    order: int | None = Field(default=None, ge=0)
    note: str | None = None


class ReorderRequest(_CamelModel):
    item_id: uuid.UUID = Field(..., alias="itemId")
    from_index: int = Field(..., ge=0, alias="fromIndex")
    to_index: int = Field(..., ge=0, alias="toIndex")
    view_sequence: list[uuid.UUID] | None = Field(default=None, alias="viewSequence")
    sort: str = "order"


class ReorderResponse(_CamelModel):
    applied: bool
    items: list[WatchlistEntryResponse] = Field(default_factory=list)


class NativeExportRowResponse(_CamelModel):
    order: int
    title: str
    type: str
    url: str
    imdb_id: str = Field(default="", alias="imdbId")
    release_date: str = Field(default="", alias="releaseDate")
    year: str = ""
    genre: str = ""
    description: str = ""
    directors_creators: str = Field(default="", alias="directorsCreators")
    runtime: str = ""
    imdb_rating: str = Field(default="", alias="imdbRating")
    note: str = ""
    date_created: str = Field(default="", alias="dateCreated")
    date_modified: str = Field(default="", alias="dateModified")


class WatchlistExportResponse(_CamelModel):
    items: list[NativeExportRowResponse] = Field(default_factory=list)
