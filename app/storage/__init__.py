"""
app/storage package marker.
"""

from app.storage.base import (
    StreamFactStore,
    StreamStorageError,
    UploadNotFoundError,
    WorkspaceNotFoundError,
)
from app.storage.memory_store import InMemoryStreamFactStore
from app.storage.sqlalchemy_store import SQLAlchemyStreamFactStore

__all__ = [
    "InMemoryStreamFactStore",
    "SQLAlchemyStreamFactStore",
    "StreamFactStore",
    "StreamStorageError",
    "UploadNotFoundError",
    "WorkspaceNotFoundError",
]
