"""
db/models/artist.py

Artist model: one tracked artist inside a workspace, unique by name.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.stream_weekly import StreamWeekly
    from db.models.workspace import Workspace


class Artist(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Artists are created on first import and reused by (workspace_id, name).
    """

    __tablename__ = "artists"

    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    workspace: Mapped["Workspace"] = relationship(
        "Workspace",
        back_populates="artists",
    )

    stream_facts: Mapped[list["StreamWeekly"]] = relationship(
        "StreamWeekly",
        back_populates="artist",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        UniqueConstraint("workspace_id", "name", name="uq_artists_workspace_name"),
        Index("ix_artists_workspace_id", "workspace_id"),
    )

    def __repr__(self) -> str:
        return f"<Artist id={self.id} name={self.name!r} workspace_id={self.workspace_id}>"
