"""create watchlist_entries table

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "watchlist_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("owner_id", sa.String(length=128), nullable=False),
        sa.Column("external_id", sa.Integer(), nullable=False),
        sa.Column("media_type", sa.String(length=8), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("poster_path", sa.String(length=255), nullable=True),
        sa.Column("backdrop_path", sa.String(length=255), nullable=True),
        sa.Column("release_date", sa.Date(), nullable=True),
        sa.Column("first_air_date", sa.Date(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "owner_id",
            "external_id",
            "media_type",
            name="uq_watchlist_entries_owner_external_media",
        ),
        sa.CheckConstraint("\"order\" >= 0", name="ck_watchlist_entries_order_non_negative"),
        sa.CheckConstraint("media_type IN ('movie', 'tv')", name="ck_watchlist_entries_media_type"),
    )
    op.create_index("ix_watchlist_entries_owner_id", "watchlist_entries", ["owner_id"], unique=False)
    op.create_index(
        "ix_watchlist_entries_owner_order",
        "watchlist_entries",
        ["owner_id", "order"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_watchlist_entries_owner_order", table_name="watchlist_entries")
    op.drop_index("ix_watchlist_entries_owner_id", table_name="watchlist_entries")
    op.drop_table("watchlist_entries")
