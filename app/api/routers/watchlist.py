"""
app/api/routers/watchlist.py

Per-user watchlist endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_aggregation_service, get_watchlist_repository
from app.api.routers.stream_analytics import aggregate_list_response
from app.repositories.watchlist_repository import DEFAULT_WATCHLIST_LIMIT, WatchlistRepository
from app.schemas.streams import StarRequest, StarResponse, WeeklyAggregateListResponse
from app.services.aggregation_service import AggregationService
from app.storage.base import WorkspaceNotFoundError
from db.session import get_db

router = APIRouter(prefix="/workspaces/{workspace_id}/watchlist", tags=["watchlist"])


@router.get("", response_model=WeeklyAggregateListResponse)
def get_watchlist(
    workspace_id: uuid.UUID,
    user_id: str = Query(..., min_length=1),
    full: bool = Query(default=False, description="Return every starred artist instead of the newest 24"),
    source: str | None = Query(default=None),
    repository: WatchlistRepository = Depends(get_watchlist_repository),
    aggregation_service: AggregationService = Depends(get_aggregation_service),
) -> WeeklyAggregateListResponse:
    """
    Aggregates for a user's starred artists, newest star first.

    Week boundaries are the two latest weeks across the watchlist itself.
    """

    artist_ids = repository.list_artist_ids(
        user_id=user_id,
        workspace_id=workspace_id,
        limit=None if full else DEFAULT_WATCHLIST_LIMIT,
    )
    try:
        result = aggregation_service.aggregate_watchlist(workspace_id, artist_ids, source=source)
    except WorkspaceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return aggregate_list_response(result)


@router.post("/star", response_model=StarResponse)
def star_artist(
    workspace_id: uuid.UUID,
    body: StarRequest,
    repository: WatchlistRepository = Depends(get_watchlist_repository),
    db: Session = Depends(get_db),
) -> StarResponse:
    """
    Star, unstar or toggle one artist for one user.
    """

    if not repository.artist_in_workspace(workspace_id=workspace_id, artist_id=body.artist_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Artist '{body.artist_id}' was not found in this workspace.",
        )

    try:
        starred = repository.set_star(user_id=body.user_id, artist_id=body.artist_id, star=body.star)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to update watchlist.",
        ) from exc

    return StarResponse(starred=starred)
