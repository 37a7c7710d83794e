"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.artist import Artist
from db.models.stream_weekly import STREAM_WEEKLY_UNIQUE_CONSTRAINT, StreamWeekly
from db.models.upload import Upload
from db.models.watchlist_entry import WatchlistEntry
from db.models.workspace import Workspace

__all__ = [
    "Workspace",
    "Artist",
    "Upload",
    "StreamWeekly",
    "WatchlistEntry",
    "STREAM_WEEKLY_UNIQUE_CONSTRAINT",
]
