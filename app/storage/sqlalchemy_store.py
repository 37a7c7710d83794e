"""
app/storage/sqlalchemy_store.py

SQLAlchemy/PostgreSQL implementation of StreamFactStore.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.streams import ConflictPolicy, FactWriteResult, StreamFactInput, StreamFactView
from app.storage.base import StreamFactStore, StreamStorageError, UploadNotFoundError
from db.models.artist import Artist
from db.models.stream_weekly import STREAM_WEEKLY_UNIQUE_CONSTRAINT, StreamWeekly
from db.models.upload import Upload
from db.models.workspace import Workspace

logger = logging.getLogger(__name__)

_DEFAULT_BATCH_SIZE = 1000


class SQLAlchemyStreamFactStore(StreamFactStore):
    """
    Persist stream facts through a caller-owned session.

    Writes are flushed but not committed; the import service calls commit()
    once the whole file has been written.
    """

    def __init__(self, session: Session, *, batch_size: int = _DEFAULT_BATCH_SIZE) -> None:
        self._session = session
        self._batch_size = max(1, batch_size)

    def workspace_exists(self, workspace_id: uuid.UUID) -> bool:
        try:
            return self._session.get(Workspace, workspace_id) is not None
        except SQLAlchemyError as exc:
            raise StreamStorageError("Failed to resolve workspace.") from exc

    def ensure_artist(self, workspace_id: uuid.UUID, name: str) -> tuple[uuid.UUID, bool]:
        cleaned = name.strip()
        try:
            existing = self._session.scalars(
                select(Artist.id)
                .where(Artist.workspace_id == workspace_id)
                .where(func.lower(Artist.name) == cleaned.lower())
                .limit(1)
            ).first()
            if existing is not None:
                return existing, False

            stmt = (
                insert(Artist)
                .values(id=uuid.uuid4(), workspace_id=workspace_id, name=cleaned)
                .on_conflict_do_nothing(constraint="uq_artists_workspace_name")
                .returning(Artist.id)
            )
            created_id = self._session.scalars(stmt).first()
            if created_id is not None:
                return created_id, True

            # Lost a race with a concurrent import of the same name.
            winner = self._session.scalars(
                select(Artist.id)
                .where(Artist.workspace_id == workspace_id)
                .where(Artist.name == cleaned)
            ).one()
            return winner, False
        except SQLAlchemyError as exc:
            raise StreamStorageError(f"Failed to upsert artist {cleaned!r}.") from exc

    def create_upload(
        self,
        *,
        workspace_id: uuid.UUID,
        source: str,
        uploaded_by: str | None = None,
        file_name: str | None = None,
        row_count: int = 0,
    ) -> uuid.UUID:
        upload = Upload(
            id=uuid.uuid4(),
            workspace_id=workspace_id,
            source=source,
            uploaded_by=uploaded_by,
            file_name=file_name,
            row_count=row_count,
        )
        try:
            self._session.add(upload)
            self._session.flush()
        except SQLAlchemyError as exc:
            raise StreamStorageError("Failed to create upload record.") from exc
        return upload.id

    def write_facts(
        self,
        facts: Sequence[StreamFactInput],
        policy: ConflictPolicy,
    ) -> FactWriteResult:
        """
        Insert facts with ON CONFLICT DO NOTHING; conflicting keys are then
        updated when the policy is OVERWRITE and the stream count differs.
        """

        if not facts:
            return FactWriteResult()

        result = FactWriteResult()
        try:
            for start in range(0, len(facts), self._batch_size):
                chunk = facts[start : start + self._batch_size]
                result = result + self._write_chunk(chunk, policy)
        except SQLAlchemyError as exc:
            raise StreamStorageError("Failed to persist stream facts.") from exc
        return result

    def _write_chunk(
        self,
        chunk: Sequence[StreamFactInput],
        policy: ConflictPolicy,
    ) -> FactWriteResult:
        payloads: list[dict[str, Any]] = [
            {
                "id": uuid.uuid4(),
                "artist_id": fact.artist_id,
                "upload_id": fact.upload_id,
                "week_start": fact.week_start,
                "source": fact.source,
                "region": fact.region,
                "streams": fact.streams,
            }
            for fact in chunk
        ]
        stmt = (
            insert(StreamWeekly)
            .values(payloads)
            .on_conflict_do_nothing(constraint=STREAM_WEEKLY_UNIQUE_CONSTRAINT)
            .returning(StreamWeekly.artist_id, StreamWeekly.week_start, StreamWeekly.source)
        )
        inserted = {tuple(row) for row in self._session.execute(stmt).all()}
        created = len(inserted)
        conflicts = [fact for fact in chunk if fact.key not in inserted]

        if policy is not ConflictPolicy.OVERWRITE:
            return FactWriteResult(created=created, skipped=len(conflicts))

        updated = 0
        for fact in conflicts:
            outcome = self._session.execute(
                update(StreamWeekly)
                .where(StreamWeekly.artist_id == fact.artist_id)
                .where(StreamWeekly.week_start == fact.week_start)
                .where(StreamWeekly.source == fact.source)
                .where(StreamWeekly.streams != fact.streams)
                .values(
                    streams=fact.streams,
                    upload_id=fact.upload_id,
                    region=fact.region,
                    updated_at=func.now(),
                )
            )
            updated += outcome.rowcount or 0

        return FactWriteResult(
            created=created,
            skipped=len(conflicts) - updated,
            updated=updated,
        )

    def list_facts(
        self,
        workspace_id: uuid.UUID,
        *,
        artist_ids: Sequence[uuid.UUID] | None = None,
        source: str | None = None,
    ) -> list[StreamFactView]:
        stmt = (
            select(
                StreamWeekly.artist_id,
                Artist.name,
                StreamWeekly.week_start,
                StreamWeekly.source,
                StreamWeekly.streams,
                StreamWeekly.upload_id,
            )
            .join(Artist, Artist.id == StreamWeekly.artist_id)
            .where(Artist.workspace_id == workspace_id)
        )
        if artist_ids is not None:
            if not artist_ids:
                return []
            stmt = stmt.where(StreamWeekly.artist_id.in_(list(artist_ids)))
        if source is not None:
            stmt = stmt.where(StreamWeekly.source == source)
        stmt = stmt.order_by(StreamWeekly.week_start, Artist.name, StreamWeekly.source)

        try:
            rows = self._session.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise StreamStorageError("Failed to read stream facts.") from exc

        return [
            StreamFactView(
                artist_id=artist_id,
                artist_name=artist_name,
                week_start=week_start,
                source=fact_source,
                streams=int(streams),
                upload_id=upload_id,
            )
            for artist_id, artist_name, week_start, fact_source, streams, upload_id in rows
        ]

    def delete_upload(self, workspace_id: uuid.UUID, upload_id: uuid.UUID) -> int:
        try:
            upload = self._session.scalars(
                select(Upload).where(Upload.id == upload_id).where(Upload.workspace_id == workspace_id)
            ).first()
            if upload is None:
                raise UploadNotFoundError(f"Upload '{upload_id}' was not found.")

            outcome = self._session.execute(
                delete(StreamWeekly).where(StreamWeekly.upload_id == upload_id)
            )
            self._session.execute(delete(Upload).where(Upload.id == upload_id))
            self._session.flush()
        except SQLAlchemyError as exc:
            raise StreamStorageError(f"Failed to delete upload '{upload_id}'.") from exc
        return outcome.rowcount or 0

    def list_sources(
        self,
        workspace_id: uuid.UUID,
        *,
        artist_ids: Sequence[uuid.UUID] | None = None,
    ) -> list[str]:
        stmt = (
            select(StreamWeekly.source)
            .join(Artist, Artist.id == StreamWeekly.artist_id)
            .where(Artist.workspace_id == workspace_id)
            .distinct()
            .order_by(StreamWeekly.source)
        )
        if artist_ids is not None:
            stmt = stmt.where(StreamWeekly.artist_id.in_(list(artist_ids)))
        try:
            return list(self._session.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise StreamStorageError("Failed to read stream sources.") from exc

    def count_uploads(self, workspace_id: uuid.UUID) -> int:
        try:
            return int(
                self._session.scalar(
                    select(func.count()).select_from(Upload).where(Upload.workspace_id == workspace_id)
                )
                or 0
            )
        except SQLAlchemyError as exc:
            raise StreamStorageError("Failed to count uploads.") from exc

    def commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StreamStorageError("Failed to commit stream import.") from exc

    def rollback(self) -> None:
        self._session.rollback()
