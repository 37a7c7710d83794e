"""
db/models/watchlist_entry.py

WatchlistEntry model: an artist starred by one user.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, UUIDPrimaryKeyMixin


class WatchlistEntry(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "watchlist_entries"

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    artist_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("artists.id", ondelete="CASCADE"),
        nullable=False,
    )

    starred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "artist_id", name="uq_watchlist_entries_user_artist"),
        Index("ix_watchlist_entries_user_starred_at", "user_id", "starred_at"),
    )

    def __repr__(self) -> str:
        return f"<WatchlistEntry user_id={self.user_id!r} artist_id={self.artist_id}>"
