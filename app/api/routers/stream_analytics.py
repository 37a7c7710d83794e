"""
app/api/routers/stream_analytics.py

Read-side endpoints: artist aggregates, outliers, series and workspace stats.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_aggregation_service, get_outlier_service
from app.config import get_analytics_settings
from app.schemas.streams import (
    ArtistSeriesResponse,
    OutlierListResponse,
    OutlierResponse,
    SeriesPointResponse,
    WeeklyAggregateListResponse,
    WeeklyAggregateResponse,
    WorkspaceStatsResponse,
)
from app.services.aggregation_service import AggregationResult, AggregationService, round_growth
from app.services.outlier_service import OutlierService
from app.storage.base import WorkspaceNotFoundError

router = APIRouter(prefix="/workspaces/{workspace_id}", tags=["analytics"])


def aggregate_list_response(result: AggregationResult) -> WeeklyAggregateListResponse:
    decimals = get_analytics_settings().growth_display_decimals
    return WeeklyAggregateListResponse(
        items=[
            WeeklyAggregateResponse(
                artist_id=item.artist_id,
                name=item.artist_name,
                total_streams=item.total_streams,
                this_week=item.this_week,
                prev_week=item.prev_week,
                growth_rate_pct=round_growth(item.growth_rate_pct, decimals),
                rising=item.rising,
                sources=list(item.sources),
                mixed_sources=item.mixed_sources,
            )
            for item in result.items
        ],
        latest_week=result.boundaries.latest_week,
        previous_week=result.boundaries.previous_week,
        sources=list(result.sources),
        mixed_sources=result.mixed_sources,
    )


@router.get("/artists/aggregates", response_model=WeeklyAggregateListResponse)
def list_artist_aggregates(
    workspace_id: uuid.UUID,
    source: str | None = Query(default=None, description="Restrict totals to one source tag"),
    aggregation_service: AggregationService = Depends(get_aggregation_service),
) -> WeeklyAggregateListResponse:
    """
    Per-artist totals, latest/previous week and growth for the workspace.
    """

    try:
        result = aggregation_service.aggregate_workspace(workspace_id, source=source)
    except WorkspaceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return aggregate_list_response(result)


@router.get("/outliers", response_model=OutlierListResponse)
def list_outliers(
    workspace_id: uuid.UUID,
    source: str | None = Query(default=None),
    outlier_service: OutlierService = Depends(get_outlier_service),
) -> OutlierListResponse:
    """
    Artists ranked by the z-score of their latest week-over-week change.
    """

    try:
        scores = outlier_service.rank_workspace(workspace_id, source=source)
    except WorkspaceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return OutlierListResponse(
        items=[
            OutlierResponse(
                artist_id=score.artist_id,
                artist=score.artist_name,
                latest_week=score.latest_week,
                streams=score.streams,
                wow_change=score.wow_change,
                pct_change=score.pct_change,
                z_score=score.z_score,
            )
            for score in scores
        ]
    )


@router.get("/artists/{artist_id}/series", response_model=ArtistSeriesResponse)
def get_artist_series(
    workspace_id: uuid.UUID,
    artist_id: uuid.UUID,
    region: str | None = Query(default=None, description="Source tag, e.g. us or global"),
    aggregation_service: AggregationService = Depends(get_aggregation_service),
) -> ArtistSeriesResponse:
    try:
        series = aggregation_service.artist_series(workspace_id, artist_id, source=region)
    except WorkspaceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return ArtistSeriesResponse(
        points=[SeriesPointResponse(week_start=point.week_start, streams=point.streams) for point in series.points],
        source_used=series.source_used,
        available_sources=list(series.available_sources),
        has_mixed_sources_in_result=series.mixed,
    )


@router.get("/stats", response_model=WorkspaceStatsResponse)
def get_workspace_stats(
    workspace_id: uuid.UUID,
    aggregation_service: AggregationService = Depends(get_aggregation_service),
) -> WorkspaceStatsResponse:
    try:
        summary = aggregation_service.summarize(workspace_id)
    except WorkspaceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return WorkspaceStatsResponse(
        artists=summary.artists,
        uploads=summary.uploads,
        total_rows=summary.total_rows,
    )
