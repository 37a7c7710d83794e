"""
app/schemas/streams.py

Request and response schemas for stream import and analytics endpoints.
"""

from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field


class HeaderMappingResponse(BaseModel):
    artist_key: str | None = None
    streams_key: str | None = None
    week_key: str | None = None


class NormalizedRowResponse(BaseModel):
    """
    API response model for one parsed row.
    """

    artist: str
    streams: int | None = None
    week: str | None = None
    row_number: int | None = None


class StreamPreviewResponse(BaseModel):
    """
    API response model for a parse/preview run. Nothing has been stored.
    """

    included: list[NormalizedRowResponse] = Field(default_factory=list)
    excluded: list[NormalizedRowResponse] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    header_mapping: HeaderMappingResponse = Field(default_factory=HeaderMappingResponse)
    delimiter: str | None = None
    rows_missing_week: int = Field(0, ge=0)


class StreamImportResponse(BaseModel):
    """
    API response model for a committed import.
    """

    upload_id: uuid.UUID | None = None
    created: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    updated: int = Field(0, ge=0)
    total: int = Field(..., ge=0)
    artists_created: int = Field(0, ge=0)
    warnings: list[str] = Field(default_factory=list)


class UploadDeleteResponse(BaseModel):
    deleted_rows: int = Field(..., ge=0)
    deleted_upload: uuid.UUID


class WeeklyAggregateResponse(BaseModel):
    """
    API response model for one artist's weekly aggregate.

    ``growth_rate_pct`` is rounded for display and is None when the previous
    week had no streams.
    """

    artist_id: uuid.UUID
    name: str
    total_streams: int = Field(..., ge=0)
    this_week: int = Field(..., ge=0)
    prev_week: int = Field(..., ge=0)
    growth_rate_pct: float | None = None
    rising: bool = False
    sources: list[str] = Field(default_factory=list)
    mixed_sources: bool = False


class WeeklyAggregateListResponse(BaseModel):
    items: list[WeeklyAggregateResponse] = Field(default_factory=list)
    latest_week: date | None = None
    previous_week: date | None = None
    sources: list[str] = Field(default_factory=list)
    mixed_sources: bool = False


class OutlierResponse(BaseModel):
    artist_id: uuid.UUID
    artist: str
    latest_week: date
    streams: int = Field(..., ge=0)
    wow_change: int
    pct_change: float
    z_score: float


class OutlierListResponse(BaseModel):
    items: list[OutlierResponse] = Field(default_factory=list)


class StarRequest(BaseModel):
    """
    Star or unstar an artist. Omitting ``star`` toggles the current state.
    """

    user_id: str = Field(..., min_length=1)
    artist_id: uuid.UUID
    star: bool | None = None


class StarResponse(BaseModel):
    ok: bool = True
    starred: bool


class SeriesPointResponse(BaseModel):
    week_start: date
    streams: int = Field(..., ge=0)


class ArtistSeriesResponse(BaseModel):
    points: list[SeriesPointResponse] = Field(default_factory=list)
    source_used: str
    available_sources: list[str] = Field(default_factory=list)
    has_mixed_sources_in_result: bool = False


class WorkspaceStatsResponse(BaseModel):
    artists: int = Field(..., ge=0)
    uploads: int = Field(..., ge=0)
    total_rows: int = Field(..., ge=0)
