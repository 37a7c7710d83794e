"""
app/domain/streams.py

Domain models shared by the stream ingestion and analytics flows.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Mapping

RawRow = Mapping[str, Any]
"""One tokenized CSV data row keyed by its (trimmed) header cell."""

MAX_ARTIST_NAME_LENGTH = 255
"""Longest artist name the artists table stores."""


class ConflictPolicy(str, Enum):
    """
    What to do when a fact for (artist, week, source) already exists.
    """

    SKIP = "skip"
    OVERWRITE = "overwrite"

    @classmethod
    def parse(cls, value: str | ConflictPolicy | None, default: ConflictPolicy | None = None) -> ConflictPolicy:
        if isinstance(value, ConflictPolicy):
            return value
        fallback = default or cls.SKIP
        if value is None:
            return fallback
        normalized = str(value).strip().lower()
        if normalized in {"update", "upsert"}:
            return cls.OVERWRITE
        for member in cls:
            if member.value == normalized:
                return member
        return fallback


@dataclass(frozen=True)
class HeaderMapping:
    """
    Raw header chosen for each canonical field, or None when no alias matched.
    """

    artist_key: str | None = None
    streams_key: str | None = None
    week_key: str | None = None


@dataclass(frozen=True)
class CanonicalFields:
    """
    Raw (uncoerced) cell values for the three canonical fields of one row.
    """

    artist: Any = None
    streams: Any = None
    week: Any = None


@dataclass(frozen=True)
class NormalizedRow:
    """
    One parsed row. Included rows always carry a non-empty artist of at most
    ``MAX_ARTIST_NAME_LENGTH`` characters and a stream count.
    """

    artist: str
    streams: int | None
    week: str | None = None
    row_number: int | None = None

    @property
    def is_complete(self) -> bool:
        return (
            bool(self.artist)
            and len(self.artist) <= MAX_ARTIST_NAME_LENGTH
            and self.streams is not None
        )


@dataclass(frozen=True)
class RowWarning:
    """
    One row-level parse problem.
    """

    row_number: int | None
    message: str
    column: str | None = None
    value: str | None = None


@dataclass(frozen=True)
class PreviewResult:
    """
    Output of the parse/preview pipeline.
    """

    included: list[NormalizedRow] = field(default_factory=list)
    excluded: list[NormalizedRow] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    header_mapping: HeaderMapping = field(default_factory=HeaderMapping)
    row_warnings: list[RowWarning] = field(default_factory=list)
    delimiter: str | None = None


@dataclass(frozen=True)
class StreamFactInput:
    """
    Typed stream fact prepared for persistence.
    """

    artist_id: uuid.UUID
    week_start: date
    source: str
    streams: int
    upload_id: uuid.UUID | None = None
    region: str | None = None

    @property
    def key(self) -> tuple[uuid.UUID, date, str]:
        return (self.artist_id, self.week_start, self.source)


@dataclass(frozen=True)
class FactWriteResult:
    """
    Counts reported by a store after writing one batch of facts.
    """

    created: int = 0
    skipped: int = 0
    updated: int = 0

    def __add__(self, other: FactWriteResult) -> FactWriteResult:
        return FactWriteResult(
            created=self.created + other.created,
            skipped=self.skipped + other.skipped,
            updated=self.updated + other.updated,
        )


@dataclass(frozen=True)
class ImportSummary:
    """
    End-of-run import summary.
    """

    upload_id: uuid.UUID | None
    created: int
    skipped: int
    updated: int = 0
    total: int = 0
    artists_created: int = 0
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class StreamFactView:
    """
    Read shape of one stored fact, as consumed by the analytics services.
    """

    artist_id: uuid.UUID
    artist_name: str
    week_start: date
    source: str
    streams: int
    upload_id: uuid.UUID | None = None


@dataclass(frozen=True)
class WeekBoundaries:
    """
    The two most recent distinct weeks in a scope.
    """

    latest_week: date | None = None
    previous_week: date | None = None


@dataclass(frozen=True)
class WeeklyAggregate:
    """
    Per-artist totals computed on read.
    """

    artist_id: uuid.UUID
    artist_name: str
    total_streams: int
    this_week: int
    prev_week: int
    growth_rate_pct: float | None
    rising: bool = False
    sources: tuple[str, ...] = ()
    mixed_sources: bool = False

    @property
    def growth_rate_display(self) -> float | None:
        if self.growth_rate_pct is None:
            return None
        return float(Decimal(str(self.growth_rate_pct)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class OutlierScore:
    """
    Z-score of an artist's latest week-over-week change.
    """

    artist_id: uuid.UUID
    artist_name: str
    latest_week: date
    streams: int
    wow_change: int
    pct_change: float
    z_score: float
