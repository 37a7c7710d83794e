"""
app/storage/memory_store.py

Dict-backed StreamFactStore with the same uniqueness semantics as the
database. Used by tests and local tooling.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone

from app.domain.streams import ConflictPolicy, FactWriteResult, StreamFactInput, StreamFactView
from app.storage.base import StreamFactStore, UploadNotFoundError


@dataclass(frozen=True)
class _StoredUpload:
    id: uuid.UUID
    workspace_id: uuid.UUID
    source: str
    uploaded_by: str | None
    file_name: str | None
    row_count: int
    created_at: datetime


class InMemoryStreamFactStore(StreamFactStore):
    """
    In-process store keyed exactly like the ``stream_weekly`` table.
    """

    def __init__(self) -> None:
        self._workspaces: dict[uuid.UUID, str] = {}
        self._artists: dict[uuid.UUID, tuple[uuid.UUID, str]] = {}
        self._uploads: dict[uuid.UUID, _StoredUpload] = {}
        self._facts: dict[tuple[uuid.UUID, date, str], StreamFactInput] = {}

    def add_workspace(self, name: str = "workspace", *, workspace_id: uuid.UUID | None = None) -> uuid.UUID:
        key = workspace_id or uuid.uuid4()
        self._workspaces[key] = name
        return key

    @property
    def facts(self) -> list[StreamFactInput]:
        return list(self._facts.values())

    def workspace_exists(self, workspace_id: uuid.UUID) -> bool:
        return workspace_id in self._workspaces

    def ensure_artist(self, workspace_id: uuid.UUID, name: str) -> tuple[uuid.UUID, bool]:
        wanted = name.strip().lower()
        for artist_id, (owner, artist_name) in self._artists.items():
            if owner == workspace_id and artist_name.lower() == wanted:
                return artist_id, False
        artist_id = uuid.uuid4()
        self._artists[artist_id] = (workspace_id, name.strip())
        return artist_id, True

    def create_upload(
        self,
        *,
        workspace_id: uuid.UUID,
        source: str,
        uploaded_by: str | None = None,
        file_name: str | None = None,
        row_count: int = 0,
    ) -> uuid.UUID:
        upload_id = uuid.uuid4()
        self._uploads[upload_id] = _StoredUpload(
            id=upload_id,
            workspace_id=workspace_id,
            source=source,
            uploaded_by=uploaded_by,
            file_name=file_name,
            row_count=row_count,
            created_at=datetime.now(timezone.utc),
        )
        return upload_id

    def write_facts(
        self,
        facts: Sequence[StreamFactInput],
        policy: ConflictPolicy,
    ) -> FactWriteResult:
        created = skipped = updated = 0
        for fact in facts:
            existing = self._facts.get(fact.key)
            if existing is None:
                self._facts[fact.key] = fact
                created += 1
            elif policy is ConflictPolicy.OVERWRITE and existing.streams != fact.streams:
                self._facts[fact.key] = replace(
                    existing,
                    streams=fact.streams,
                    upload_id=fact.upload_id,
                    region=fact.region,
                )
                updated += 1
            else:
                skipped += 1
        return FactWriteResult(created=created, skipped=skipped, updated=updated)

    def list_facts(
        self,
        workspace_id: uuid.UUID,
        *,
        artist_ids: Sequence[uuid.UUID] | None = None,
        source: str | None = None,
    ) -> list[StreamFactView]:
        wanted = set(artist_ids) if artist_ids is not None else None
        views: list[StreamFactView] = []
        for fact in self._facts.values():
            owner, artist_name = self._artists[fact.artist_id]
            if owner != workspace_id:
                continue
            if wanted is not None and fact.artist_id not in wanted:
                continue
            if source is not None and fact.source != source:
                continue
            views.append(
                StreamFactView(
                    artist_id=fact.artist_id,
                    artist_name=artist_name,
                    week_start=fact.week_start,
                    source=fact.source,
                    streams=fact.streams,
                    upload_id=fact.upload_id,
                )
            )
        views.sort(key=lambda view: (view.week_start, view.artist_name, view.source))
        return views

    def delete_upload(self, workspace_id: uuid.UUID, upload_id: uuid.UUID) -> int:
        upload = self._uploads.get(upload_id)
        if upload is None or upload.workspace_id != workspace_id:
            raise UploadNotFoundError(f"Upload '{upload_id}' was not found.")

        doomed = [key for key, fact in self._facts.items() if fact.upload_id == upload_id]
        for key in doomed:
            del self._facts[key]
        del self._uploads[upload_id]
        return len(doomed)

    def list_sources(
        self,
        workspace_id: uuid.UUID,
        *,
        artist_ids: Sequence[uuid.UUID] | None = None,
    ) -> list[str]:
        return sorted({view.source for view in self.list_facts(workspace_id, artist_ids=artist_ids)})

    def count_uploads(self, workspace_id: uuid.UUID) -> int:
        return sum(1 for upload in self._uploads.values() if upload.workspace_id == workspace_id)
