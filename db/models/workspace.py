"""
db/models/workspace.py

Workspace model: the tenant boundary. Every artist, upload and stream fact
belongs to exactly one workspace.
"""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.artist import Artist
    from db.models.upload import Upload


class Workspace(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    One tenant of the dashboard.
    """

    __tablename__ = "workspaces"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    artists: Mapped[list["Artist"]] = relationship(
        "Artist",
        back_populates="workspace",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    uploads: Mapped[list["Upload"]] = relationship(
        "Upload",
        back_populates="workspace",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Workspace id={self.id} name={self.name!r}>"
