"""
app/schemas package marker.
"""

from app.schemas.streams import (
    ArtistSeriesResponse,
    NormalizedRowResponse,
    OutlierListResponse,
    StarRequest,
    StarResponse,
    StreamImportResponse,
    StreamPreviewResponse,
    UploadDeleteResponse,
    WeeklyAggregateListResponse,
    WorkspaceStatsResponse,
)

__all__ = [
    "ArtistSeriesResponse",
    "NormalizedRowResponse",
    "OutlierListResponse",
    "StarRequest",
    "StarResponse",
    "StreamImportResponse",
    "StreamPreviewResponse",
    "UploadDeleteResponse",
    "WeeklyAggregateListResponse",
    "WorkspaceStatsResponse",
]
