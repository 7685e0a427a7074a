"""
db/models/watchlist_entry.py

One movie or TV show on an owner's watchlist.
"""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import CheckConstraint, Date, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class MediaType:
    MOVIE = "movie"
    TV = "tv"


MEDIA_TYPES = frozenset({MediaType.MOVIE, MediaType.TV})

WATCHLIST_DEDUPE_CONSTRAINT = "uq_watchlist_entries_owner_external_media"


class WatchlistEntry(Base, TimestampMixin):
    __tablename__ = "watchlist_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    owner_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="Internal owner id resolved from the authenticated request",
    )
    external_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Catalog (TMDB) identifier",
    )
    media_type: Mapped[str] = mapped_column(
        String(8),
        nullable=False,
        comment="movie, tv",
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    poster_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    backdrop_path: Mapped[str | None] = mapped_column(String(255), nullable=True)
    release_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    first_air_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(
        "order",
        Integer,
        nullable=False,
        default=0,
        comment="0 = unordered; positive values form a contiguous 1..k ranking",
    )

    __table_args__ = (
        UniqueConstraint(
            "owner_id",
            "external_id",
            "media_type",
            name=WATCHLIST_DEDUPE_CONSTRAINT,
        ),
        CheckConstraint("\"order\" >= 0", name="ck_watchlist_entries_order_non_negative"),
        CheckConstraint("media_type IN ('movie', 'tv')", name="ck_watchlist_entries_media_type"),
        Index("ix_watchlist_entries_owner_id", "owner_id"),
        Index("ix_watchlist_entries_owner_order", "owner_id", "order"),
    )

    @property
    def display_date(self) -> date | None:
        """
        The release date matching this entry's media type.
        """

        if self.media_type == MediaType.TV:
            return self.first_air_date
        return self.release_date
