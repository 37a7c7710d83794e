"""create workspace, artist, upload, stream_weekly and watchlist tables

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
        "workspaces",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "artists",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("workspace_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["workspace_id"], ["workspaces.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("workspace_id", "name", name="uq_artists_workspace_name"),
    )
    op.create_index("ix_artists_workspace_id", "artists", ["workspace_id"], unique=False)

    op.create_table(
        "uploads",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("workspace_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("uploaded_by", sa.String(length=255), nullable=True),
        sa.Column("file_name", sa.String(length=512), nullable=True),
        sa.Column("source", sa.String(length=50), nullable=False),
        sa.Column("row_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["workspace_id"], ["workspaces.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_uploads_workspace_id", "uploads", ["workspace_id"], unique=False)
    op.create_index(
        "ix_uploads_workspace_created_at",
        "uploads",
        ["workspace_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "stream_weekly",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("upload_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("source", sa.String(length=50), nullable=False),
        sa.Column("region", sa.String(length=50), nullable=True),
        sa.Column("streams", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("streams >= 0", name="ck_stream_weekly_streams_non_negative"),
        sa.ForeignKeyConstraint(["artist_id"], ["artists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["upload_id"], ["uploads.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "artist_id",
            "week_start",
            "source",
            name="uq_stream_weekly_artist_week_source",
        ),
    )
    op.create_index("ix_stream_weekly_week_start", "stream_weekly", ["week_start"], unique=False)
    op.create_index("ix_stream_weekly_upload_id", "stream_weekly", ["upload_id"], unique=False)
    op.create_index(
        "ix_stream_weekly_artist_week",
        "stream_weekly",
        ["artist_id", "week_start"],
        unique=False,
    )

    op.create_table(
        "watchlist_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("starred_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["artist_id"], ["artists.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "artist_id", name="uq_watchlist_entries_user_artist"),
    )
    op.create_index(
        "ix_watchlist_entries_user_starred_at",
        "watchlist_entries",
        ["user_id", "starred_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_watchlist_entries_user_starred_at", table_name="watchlist_entries")
    op.drop_table("watchlist_entries")
    op.drop_index("ix_stream_weekly_artist_week", table_name="stream_weekly")
    op.drop_index("ix_stream_weekly_upload_id", table_name="stream_weekly")
    op.drop_index("ix_stream_weekly_week_start", table_name="stream_weekly")
    op.drop_table("stream_weekly")
    op.drop_index("ix_uploads_workspace_created_at", table_name="uploads")
    op.drop_index("ix_uploads_workspace_id", table_name="uploads")
    op.drop_table("uploads")
    op.drop_index("ix_artists_workspace_id", table_name="artists")
    op.drop_table("artists")
    op.drop_table("workspaces")
