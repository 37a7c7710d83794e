"""
app/domain package marker.
"""

from app.domain.streams import (
    CanonicalFields,
    ConflictPolicy,
    FactWriteResult,
    HeaderMapping,
    ImportSummary,
    NormalizedRow,
    OutlierScore,
    PreviewResult,
    RawRow,
    RowWarning,
    StreamFactInput,
    StreamFactView,
    WeekBoundaries,
    WeeklyAggregate,
)

__all__ = [
    "CanonicalFields",
    "ConflictPolicy",
    "FactWriteResult",
    "HeaderMapping",
    "ImportSummary",
    "NormalizedRow",
    "OutlierScore",
    "PreviewResult",
    "RawRow",
    "RowWarning",
    "StreamFactInput",
    "StreamFactView",
    "WeekBoundaries",
    "WeeklyAggregate",
]
