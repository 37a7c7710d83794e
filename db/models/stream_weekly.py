"""
db/models/stream_weekly.py

StreamWeekly model: one artist's stream count for one week from one source.

(artist_id, week_start, source) is unique; re-importing the same file hits
the constraint instead of creating duplicates.
"""

import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, CheckConstraint, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.artist import Artist
    from db.models.upload import Upload

STREAM_WEEKLY_UNIQUE_CONSTRAINT = "uq_stream_weekly_artist_week_source"


class StreamWeekly(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Weekly stream fact. Aggregates are computed on read, never stored.
    """

    __tablename__ = "stream_weekly"

    artist_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("artists.id", ondelete="CASCADE"),
        nullable=False,
    )

    upload_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("uploads.id", ondelete="CASCADE"),
        nullable=True,
    )

    week_start: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    source: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Lower-cased source/region tag (e.g. us, global)",
    )

    region: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    streams: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    artist: Mapped["Artist"] = relationship(
        "Artist",
        back_populates="stream_facts",
    )

    upload: Mapped["Upload | None"] = relationship(
        "Upload",
        back_populates="stream_facts",
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        UniqueConstraint(
            "artist_id",
            "week_start",
            "source",
            name=STREAM_WEEKLY_UNIQUE_CONSTRAINT,
        ),
        CheckConstraint("streams >= 0", name="ck_stream_weekly_streams_non_negative"),
        Index("ix_stream_weekly_week_start", "week_start"),
        Index("ix_stream_weekly_upload_id", "upload_id"),
        Index("ix_stream_weekly_artist_week", "artist_id", "week_start"),
    )

    def __repr__(self) -> str:
        return (
            f"<StreamWeekly artist_id={self.artist_id} week_start={self.week_start} "
            f"source={self.source!r} streams={self.streams}>"
        )
