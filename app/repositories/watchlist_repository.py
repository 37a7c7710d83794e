"""
app/repositories/watchlist_repository.py

Persistence helpers for per-user starred artists.
"""

from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from db.models.artist import Artist
from db.models.watchlist_entry import WatchlistEntry

DEFAULT_WATCHLIST_LIMIT = 24


class WatchlistRepository:
    """
    Repository for starring, unstarring and listing watched artists.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def artist_in_workspace(self, *, workspace_id: uuid.UUID, artist_id: uuid.UUID) -> bool:
        stmt = (
            select(Artist.id)
            .where(Artist.id == artist_id)
            .where(Artist.workspace_id == workspace_id)
        )
        return self._session.execute(stmt).scalars().first() is not None

    def list_artist_ids(
        self,
        *,
        user_id: str,
        workspace_id: uuid.UUID,
        limit: int | None = DEFAULT_WATCHLIST_LIMIT,
    ) -> list[uuid.UUID]:
        """
        Return starred artist ids for one user, newest star first.
        """

        stmt = (
            select(WatchlistEntry.artist_id)
            .join(Artist, Artist.id == WatchlistEntry.artist_id)
            .where(WatchlistEntry.user_id == user_id)
            .where(Artist.workspace_id == workspace_id)
            .order_by(WatchlistEntry.starred_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(max(1, limit))
        return list(self._session.execute(stmt).scalars().all())

    def is_starred(self, *, user_id: str, artist_id: uuid.UUID) -> bool:
        stmt = (
            select(WatchlistEntry.id)
            .where(WatchlistEntry.user_id == user_id)
            .where(WatchlistEntry.artist_id == artist_id)
        )
        return self._session.execute(stmt).scalars().first() is not None

    def set_star(self, *, user_id: str, artist_id: uuid.UUID, star: bool | None = None) -> bool:
        """
        Star or unstar an artist. ``star=None`` toggles the current state.

        Returns the resulting starred state. The caller owns the commit.
        """

        want = (not self.is_starred(user_id=user_id, artist_id=artist_id)) if star is None else star

        if want:
            self._session.execute(
                insert(WatchlistEntry)
                .values(id=uuid.uuid4(), user_id=user_id, artist_id=artist_id)
                .on_conflict_do_nothing(constraint="uq_watchlist_entries_user_artist")
            )
        else:
            self._session.execute(
                delete(WatchlistEntry)
                .where(WatchlistEntry.user_id == user_id)
                .where(WatchlistEntry.artist_id == artist_id)
            )
        return want
