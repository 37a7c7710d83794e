"""
app/storage/base.py

Storage interface for workspace-scoped artists, uploads and weekly stream
facts.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence

from app.domain.streams import ConflictPolicy, FactWriteResult, StreamFactInput, StreamFactView


class WorkspaceNotFoundError(LookupError):
    """
    Raised when a workspace id does not resolve to a workspace.
    """


class UploadNotFoundError(LookupError):
    """
    Raised when an upload does not exist inside the given workspace.
    """


class StreamStorageError(RuntimeError):
    """
    Raised when the backing store fails for a reason other than a uniqueness
    conflict.
    """


class StreamFactStore(ABC):
    """
    Storage abstraction used by the import and analytics services.

    Facts are unique by (artist_id, week_start, source). Writes that hit an
    existing key are resolved by the ConflictPolicy passed to write_facts.
    """

    @abstractmethod
    def workspace_exists(self, workspace_id: uuid.UUID) -> bool:
        """
        Return True when the workspace exists.
        """

    @abstractmethod
    def ensure_artist(self, workspace_id: uuid.UUID, name: str) -> tuple[uuid.UUID, bool]:
        """
        Return the id of the artist with this name (case-insensitive),
        creating it when missing. The flag is True when it was created.
        """

    @abstractmethod
    def create_upload(
        self,
        *,
        workspace_id: uuid.UUID,
        source: str,
        uploaded_by: str | None = None,
        file_name: str | None = None,
        row_count: int = 0,
    ) -> uuid.UUID:
        """
        Create the provenance record for one import and return its id.
        """

    @abstractmethod
    def write_facts(
        self,
        facts: Sequence[StreamFactInput],
        policy: ConflictPolicy,
    ) -> FactWriteResult:
        """
        Persist facts. Keys are expected to be unique within ``facts``.
        """

    @abstractmethod
    def list_facts(
        self,
        workspace_id: uuid.UUID,
        *,
        artist_ids: Sequence[uuid.UUID] | None = None,
        source: str | None = None,
    ) -> list[StreamFactView]:
        """
        Return the workspace's facts ordered by week, optionally filtered.
        """

    @abstractmethod
    def delete_upload(self, workspace_id: uuid.UUID, upload_id: uuid.UUID) -> int:
        """
        Delete an upload and every fact tagged with it. Returns the number of
        facts deleted.
        """

    @abstractmethod
    def list_sources(
        self,
        workspace_id: uuid.UUID,
        *,
        artist_ids: Sequence[uuid.UUID] | None = None,
    ) -> list[str]:
        """
        Return the distinct source tags present in the workspace, sorted.
        """

    @abstractmethod
    def count_uploads(self, workspace_id: uuid.UUID) -> int:
        """
        Return how many uploads the workspace has.
        """

    def commit(self) -> None:
        return None

    def rollback(self) -> None:
        return None

    def require_workspace(self, workspace_id: uuid.UUID) -> None:
        if not self.workspace_exists(workspace_id):
            raise WorkspaceNotFoundError(f"Workspace '{workspace_id}' was not found.")
