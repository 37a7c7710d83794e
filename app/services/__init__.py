"""
app/services package marker.
"""

from app.services.aggregation_service import (
    AggregationResult,
    AggregationService,
    ArtistSeries,
    WorkspaceSummary,
    build_artist_series,
    compute_growth_rate,
    resolve_week_boundaries,
    round_growth,
    summarize_workspace,
)
from app.services.outlier_service import OutlierService, score_history
from app.services.stream_preview_service import (
    StreamFileDecodeError,
    StreamPreviewService,
    apply_week_start_to_missing,
    get_stream_preview_service,
    parse_stream_csv,
    rows_missing_week,
)
from app.services.stream_import_service import (
    EmptyImportError,
    MissingWeekError,
    StreamImportError,
    StreamImportService,
    StreamPersistenceError,
    build_stream_import_service,
)

__all__ = [
    "AggregationResult",
    "AggregationService",
    "ArtistSeries",
    "WorkspaceSummary",
    "build_artist_series",
    "compute_growth_rate",
    "resolve_week_boundaries",
    "round_growth",
    "summarize_workspace",
    "OutlierService",
    "score_history",
    "StreamFileDecodeError",
    "StreamPreviewService",
    "apply_week_start_to_missing",
    "get_stream_preview_service",
    "parse_stream_csv",
    "rows_missing_week",
    "EmptyImportError",
    "MissingWeekError",
    "StreamImportError",
    "StreamImportService",
    "StreamPersistenceError",
    "build_stream_import_service",
]
