"""
db/models/upload.py

Upload model: one committed import. Every stream fact written by the import
is tagged with its upload id so the whole batch can be deleted at once.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.stream_weekly import StreamWeekly
    from db.models.workspace import Workspace


class Upload(UUIDPrimaryKeyMixin, CreatedAtMixin, Base):
    """
    Provenance record for one import run.
    """

    __tablename__ = "uploads"

    workspace_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
    )

    uploaded_by: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Identifier of the user who committed the import",
    )

    file_name: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
    )

    source: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Lower-cased source/region tag applied to every fact (e.g. us, global)",
    )

    row_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    workspace: Mapped["Workspace"] = relationship(
        "Workspace",
        back_populates="uploads",
    )

    stream_facts: Mapped[list["StreamWeekly"]] = relationship(
        "StreamWeekly",
        back_populates="upload",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_uploads_workspace_id", "workspace_id"),
        Index("ix_uploads_workspace_created_at", "workspace_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Upload id={self.id} workspace_id={self.workspace_id} "
            f"source={self.source!r} row_count={self.row_count}>"
        )
