"""
app/services/stream_import_service.py

Commit mode for parsed stream rows.

An import creates one Upload record, upserts artists by (workspace, name)
and writes one StreamWeekly fact per (artist, week, source). Existing facts
are skipped or overwritten according to the ConflictPolicy. Re-importing the
same file under the default SKIP policy creates nothing and reports every row
as skipped.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Iterable, Sequence

from app.config import get_stream_ingestion_settings
from app.domain.streams import (
    ConflictPolicy,
    FactWriteResult,
    ImportSummary,
    NormalizedRow,
    StreamFactInput,
)
from app.logging_utils import log_event
from app.services.stream_preview_service import (
    StreamPreviewService,
    apply_week_start_to_missing,
    get_stream_preview_service,
    rows_missing_week,
)
from app.storage.base import StreamFactStore, StreamStorageError
from app.validators.value_coercers import clamp_streams, parse_iso_date, week_start_of

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "us"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class StreamImportError(ValueError):
    """
    Raised when an import request cannot be accepted.
    """


class MissingWeekError(StreamImportError):
    """
    Raised when rows still lack a week after the fallback week was applied.
    """

    def __init__(self, *, row_count: int) -> None:
        super().__init__(
            f"{row_count} row(s) have no week. Provide a week start date and retry."
        )
        self.row_count = row_count


class EmptyImportError(StreamImportError):
    """
    Raised when there is nothing to import.
    """


class StreamPersistenceError(RuntimeError):
    """
    Raised when valid rows cannot be persisted.
    """


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class StreamImportService:
    """
    Coordinates artist upserts, fact building and persistence for one import.
    """

    def __init__(
        self,
        store: StreamFactStore,
        *,
        conflict_policy: ConflictPolicy | str = ConflictPolicy.SKIP,
        default_source: str = DEFAULT_SOURCE,
        align_week_start: bool = False,
        batch_size: int = 1000,
        preview_service: StreamPreviewService | None = None,
    ) -> None:
        self._store = store
        self._conflict_policy = ConflictPolicy.parse(conflict_policy)
        self._default_source = (default_source or DEFAULT_SOURCE).strip().lower()
        self._align_week_start = align_week_start
        self._batch_size = max(1, batch_size)
        self._preview_service = preview_service or StreamPreviewService()

    def import_rows(
        self,
        *,
        workspace_id: uuid.UUID,
        rows: Iterable[NormalizedRow],
        fallback_week: str | None = None,
        source: str | None = None,
        region: str | None = None,
        uploaded_by: str | None = None,
        file_name: str | None = None,
        conflict_policy: ConflictPolicy | str | None = None,
    ) -> ImportSummary:
        """
        Persist previewed rows.

        Raises EmptyImportError when ``rows`` is empty and MissingWeekError
        when any row still lacks a week after ``fallback_week`` is applied.
        Nothing is written in either case.
        """

        materialized = list(rows)
        if not materialized:
            raise EmptyImportError("No rows provided.")

        policy = ConflictPolicy.parse(conflict_policy, self._conflict_policy)
        complete = [row for row in materialized if row.is_complete]
        incomplete = len(materialized) - len(complete)

        try:
            filled = apply_week_start_to_missing(complete, fallback_week)
        except ValueError as exc:
            raise StreamImportError(str(exc)) from exc

        missing = rows_missing_week(filled)
        if missing:
            raise MissingWeekError(row_count=len(missing))
        if not filled:
            raise EmptyImportError("No complete rows to import.")

        self._store.require_workspace(workspace_id)
        source_tag = self._resolve_source(source, region)
        region_tag = region.strip() if region and region.strip() else None

        try:
            upload_id = self._store.create_upload(
                workspace_id=workspace_id,
                source=source_tag,
                uploaded_by=uploaded_by,
                file_name=file_name,
                row_count=len(materialized),
            )
            artist_ids, artists_created = self._resolve_artists(workspace_id, filled)
            facts = self._build_facts(
                filled,
                artist_ids=artist_ids,
                source=source_tag,
                region=region_tag,
                upload_id=upload_id,
            )
            unique_facts, duplicates = self._collapse_duplicates(facts, policy)
            result = self._write(unique_facts, policy)
            self._store.commit()
        except StreamStorageError as exc:
            self._store.rollback()
            log_event(
                logger,
                logging.ERROR,
                "stream_import_failed",
                workspace_id=workspace_id,
                file_name=file_name,
                error=str(exc),
            )
            raise StreamPersistenceError("Failed to persist stream facts.") from exc

        summary = ImportSummary(
            upload_id=upload_id,
            created=result.created,
            skipped=result.skipped + duplicates + incomplete,
            updated=result.updated,
            total=len(materialized),
            artists_created=artists_created,
        )
        log_event(
            logger,
            logging.INFO,
            "stream_import_committed",
            workspace_id=workspace_id,
            upload_id=upload_id,
            source=source_tag,
            policy=policy.value,
            created=summary.created,
            skipped=summary.skipped,
            updated=summary.updated,
            total=summary.total,
            artists_created=artists_created,
        )
        return summary

    def import_file(
        self,
        *,
        workspace_id: uuid.UUID,
        file_bytes: bytes,
        week_format: str | None = None,
        fallback_week: str | None = None,
        source: str | None = None,
        region: str | None = None,
        uploaded_by: str | None = None,
        file_name: str | None = None,
        conflict_policy: ConflictPolicy | str | None = None,
    ) -> ImportSummary:
        """
        Parse a file buffer and import its included rows in one call.

        Preview warnings are carried on the returned summary.
        """

        preview = self._preview_service.parse(file_bytes, week_format=week_format)
        if not preview.included:
            raise EmptyImportError("No importable rows found in file.")

        summary = self.import_rows(
            workspace_id=workspace_id,
            rows=preview.included,
            fallback_week=fallback_week,
            source=source,
            region=region,
            uploaded_by=uploaded_by,
            file_name=file_name,
            conflict_policy=conflict_policy,
        )
        return replace(summary, warnings=list(preview.warnings))

    def delete_upload(self, *, workspace_id: uuid.UUID, upload_id: uuid.UUID) -> int:
        """
        Delete an upload and every fact it created. Returns the fact count.
        """

        self._store.require_workspace(workspace_id)
        try:
            deleted = self._store.delete_upload(workspace_id, upload_id)
            self._store.commit()
        except StreamStorageError as exc:
            self._store.rollback()
            raise StreamPersistenceError(f"Failed to delete upload '{upload_id}'.") from exc

        log_event(
            logger,
            logging.INFO,
            "stream_upload_deleted",
            workspace_id=workspace_id,
            upload_id=upload_id,
            deleted_rows=deleted,
        )
        return deleted

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_source(self, source: str | None, region: str | None) -> str:
        for candidate in (source, region):
            if candidate and candidate.strip():
                return candidate.strip().lower()
        return self._default_source

    def _resolve_artists(
        self,
        workspace_id: uuid.UUID,
        rows: Sequence[NormalizedRow],
    ) -> tuple[dict[str, uuid.UUID], int]:
        # Keyed by lower-cased name so "Drake" and "drake" share one artist.
        cache: dict[str, uuid.UUID] = {}
        created = 0
        for row in rows:
            key = row.artist.strip().lower()
            if key in cache:
                continue
            artist_id, was_created = self._store.ensure_artist(workspace_id, row.artist.strip())
            cache[key] = artist_id
            created += int(was_created)
        return cache, created

    def _build_facts(
        self,
        rows: Sequence[NormalizedRow],
        *,
        artist_ids: dict[str, uuid.UUID],
        source: str,
        region: str | None,
        upload_id: uuid.UUID,
    ) -> list[StreamFactInput]:
        facts: list[StreamFactInput] = []
        for row in rows:
            week_iso = week_start_of(row.week) if self._align_week_start else row.week
            facts.append(
                StreamFactInput(
                    artist_id=artist_ids[row.artist.strip().lower()],
                    week_start=parse_iso_date(week_iso),
                    source=source,
                    streams=clamp_streams(row.streams),
                    upload_id=upload_id,
                    region=region,
                )
            )
        return facts

    @staticmethod
    def _collapse_duplicates(
        facts: Sequence[StreamFactInput],
        policy: ConflictPolicy,
    ) -> tuple[list[StreamFactInput], int]:
        """
        Keep one fact per key. SKIP keeps the first occurrence, OVERWRITE the
        last. Returns the kept facts and how many were dropped.
        """

        kept: dict[tuple, StreamFactInput] = {}
        for fact in facts:
            if fact.key in kept and policy is not ConflictPolicy.OVERWRITE:
                continue
            kept[fact.key] = fact
        return list(kept.values()), len(facts) - len(kept)

    def _write(
        self,
        facts: Sequence[StreamFactInput],
        policy: ConflictPolicy,
    ) -> FactWriteResult:
        result = FactWriteResult()
        for start in range(0, len(facts), self._batch_size):
            chunk = facts[start : start + self._batch_size]
            result = result + self._store.write_facts(chunk, policy)
        return result


def build_stream_import_service(store: StreamFactStore) -> StreamImportService:
    """
    Build an import service bound to ``store`` with env-driven settings.
    """

    settings = get_stream_ingestion_settings()
    return StreamImportService(
        store,
        conflict_policy=settings.conflict_policy,
        default_source=settings.default_source,
        align_week_start=settings.align_week_start,
        batch_size=settings.batch_size,
        preview_service=get_stream_preview_service(),
    )
