"""
app/services/aggregation_service.py

Weekly aggregation layer for the artist dashboard.

Turns StreamFactView rows into per-artist WeeklyAggregate values. Nothing is
stored: every request recomputes from the current facts.

Week boundaries
---------------
The "latest" and "previous" weeks are the two most recent distinct
``week_start`` values across the whole scope (workspace or watchlist), not
per artist. An artist with no fact in the latest week therefore reports
``this_week == 0``.

Sources
-------
One artist/week may carry several source tags (``us``, ``global``, ...).
Unless a source filter is requested, totals are summed across all of them
and the result is flagged with ``mixed_sources`` so callers never present a
mixed total as single-region data.

Query design
------------
Scope reads go through ``StreamFactStore.list_facts`` once per request. All
grouping happens in Python over that one result set; there are no per-artist
follow-up queries.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Final, Iterable, Sequence

from app.domain.streams import StreamFactView, WeekBoundaries, WeeklyAggregate
from app.logging_utils import timed_event
from app.storage.base import StreamFactStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_RISING_THRESHOLD_PCT: Final[float] = 30.0
"""Growth (in percent) at or above which an artist is flagged as rising."""

PREFERRED_SERIES_SOURCES: Final[tuple[str, ...]] = ("us", "global")
"""Source tags tried, in order, when a series request names no source."""

MIXED_SOURCE: Final[str] = "mixed"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AggregationResult:
    """
    Aggregates for one scope plus the context they were computed in.
    """

    items: list[WeeklyAggregate] = field(default_factory=list)
    boundaries: WeekBoundaries = field(default_factory=WeekBoundaries)
    sources: tuple[str, ...] = ()
    mixed_sources: bool = False


@dataclass(frozen=True)
class WorkspaceSummary:
    artists: int
    uploads: int
    total_rows: int


@dataclass(frozen=True)
class SeriesPoint:
    week_start: date
    streams: int


@dataclass(frozen=True)
class ArtistSeries:
    """
    Weekly stream series for one artist.

    ``source_used`` is the source tag the points were restricted to, or
    ``"mixed"`` when they sum every source.
    """

    points: list[SeriesPoint] = field(default_factory=list)
    source_used: str = MIXED_SOURCE
    available_sources: tuple[str, ...] = ()
    mixed: bool = False


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def resolve_week_boundaries(facts: Iterable[StreamFactView]) -> WeekBoundaries:
    """
    Return the two most recent distinct weeks present in ``facts``.
    """

    weeks = sorted({fact.week_start for fact in facts}, reverse=True)
    return WeekBoundaries(
        latest_week=weeks[0] if weeks else None,
        previous_week=weeks[1] if len(weeks) > 1 else None,
    )


def compute_growth_rate(this_week: int, prev_week: int) -> float | None:
    """
    Week-over-week growth in percent.

    Returns None when ``prev_week`` is zero or negative: growth from nothing
    is undefined, never 0% and never infinite.
    """

    if prev_week <= 0:
        return None
    return ((this_week - prev_week) / prev_week) * 100


def round_growth(pct: float | None, decimals: int = 1) -> float | None:
    """
    Round a growth percentage half-up for display.
    """

    if pct is None:
        return None
    quantum = Decimal(1).scaleb(-max(0, decimals))
    return float(Decimal(str(pct)).quantize(quantum, rounding=ROUND_HALF_UP))


def summarize_workspace(facts: Sequence[StreamFactView], *, uploads: int) -> WorkspaceSummary:
    """
    Headline counts: artists with at least one fact, uploads, fact rows.
    """

    return WorkspaceSummary(
        artists=len({fact.artist_id for fact in facts}),
        uploads=uploads,
        total_rows=len(facts),
    )


def build_artist_series(
    facts: Iterable[StreamFactView],
    artist_id: uuid.UUID,
    *,
    source: str | None = None,
) -> ArtistSeries:
    """
    Build one artist's ascending weekly series.

    With no ``source``, the series prefers ``us``, then ``global``, and
    otherwise sums every source per week (``mixed``).
    """

    own = [fact for fact in facts if fact.artist_id == artist_id]
    available = tuple(sorted({fact.source for fact in own}))

    chosen: str | None = None
    if source:
        chosen = source.strip().lower()
    else:
        chosen = next((tag for tag in PREFERRED_SERIES_SOURCES if tag in available), None)

    per_week: dict[date, int] = defaultdict(int)
    for fact in own:
        if chosen is None or fact.source == chosen:
            per_week[fact.week_start] += fact.streams

    points = [SeriesPoint(week_start=week, streams=per_week[week]) for week in sorted(per_week)]
    return ArtistSeries(
        points=points,
        source_used=chosen or MIXED_SOURCE,
        available_sources=available,
        mixed=chosen is None and len(available) > 1,
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AggregationService:
    """
    Computes WeeklyAggregate values for a workspace or a watchlist.

    Parameters
    ----------
    store:
        Fact store used by the ``*_workspace`` / ``*_watchlist`` readers.
        Not needed when calling :meth:`aggregate` with facts directly.
    rising_threshold_pct:
        Growth percentage at or above which ``rising`` is set.
    """

    def __init__(
        self,
        store: StreamFactStore | None = None,
        *,
        rising_threshold_pct: float = DEFAULT_RISING_THRESHOLD_PCT,
    ) -> None:
        self._store = store
        self._rising_threshold_pct = rising_threshold_pct

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def aggregate(
        self,
        facts: Sequence[StreamFactView],
        *,
        latest_week: date | None = None,
        previous_week: date | None = None,
        source: str | None = None,
        artist_order: Sequence[uuid.UUID] | None = None,
    ) -> AggregationResult:
        """
        Aggregate ``facts`` per artist.

        Parameters
        ----------
        facts:
            Every fact in the scope.
        latest_week, previous_week:
            Explicit boundaries. When both are omitted they are resolved from
            ``facts`` (after the source filter).
        source:
            Restrict every sum to one source tag.
        artist_order:
            Output order (and membership) for watchlists. Artists listed here
            with no facts are reported with zero totals. Without it, items are
            ordered by total streams descending, then name.

        Returns
        -------
        AggregationResult
        """

        scoped = self._filter_source(facts, source)
        if latest_week is None and previous_week is None:
            boundaries = resolve_week_boundaries(scoped)
        else:
            boundaries = WeekBoundaries(latest_week=latest_week, previous_week=previous_week)

        names: dict[uuid.UUID, str] = {}
        totals: dict[uuid.UUID, int] = defaultdict(int)
        current: dict[uuid.UUID, int] = defaultdict(int)
        previous: dict[uuid.UUID, int] = defaultdict(int)
        artist_sources: dict[uuid.UUID, set[str]] = defaultdict(set)

        for fact in scoped:
            names.setdefault(fact.artist_id, fact.artist_name)
            totals[fact.artist_id] += fact.streams
            artist_sources[fact.artist_id].add(fact.source)
            if boundaries.latest_week is not None and fact.week_start == boundaries.latest_week:
                current[fact.artist_id] += fact.streams
            if boundaries.previous_week is not None and fact.week_start == boundaries.previous_week:
                previous[fact.artist_id] += fact.streams

        if artist_order is not None:
            ordered_ids = list(dict.fromkeys(artist_order))
        else:
            ordered_ids = sorted(totals, key=lambda key: (-totals[key], names[key].lower()))

        items = [
            self._build_item(
                artist_id=artist_id,
                name=names.get(artist_id, "Unknown"),
                total=totals.get(artist_id, 0),
                this_week=current.get(artist_id, 0),
                prev_week=previous.get(artist_id, 0),
                sources=artist_sources.get(artist_id, set()),
            )
            for artist_id in ordered_ids
        ]

        all_sources = tuple(sorted({fact.source for fact in scoped}))
        result = AggregationResult(
            items=items,
            boundaries=boundaries,
            sources=all_sources,
            mixed_sources=source is None and len(all_sources) > 1,
        )
        logger.debug(
            "Aggregated artists=%d latest_week=%s previous_week=%s sources=%s",
            len(items),
            boundaries.latest_week,
            boundaries.previous_week,
            ",".join(all_sources),
        )
        return result

    def aggregate_workspace(
        self,
        workspace_id: uuid.UUID,
        *,
        source: str | None = None,
    ) -> AggregationResult:
        """
        Aggregate every artist with facts in the workspace.
        """

        store = self._require_store()
        store.require_workspace(workspace_id)
        normalized = self._normalize_source(source)
        with timed_event(
            logger,
            "workspace_aggregated",
            level=logging.DEBUG,
            workspace_id=workspace_id,
            source=normalized,
        ) as context:
            facts = store.list_facts(workspace_id, source=normalized)
            result = self.aggregate(facts, source=normalized)
            context["facts"] = len(facts)
            context["artists"] = len(result.items)
        return result

    def aggregate_watchlist(
        self,
        workspace_id: uuid.UUID,
        artist_ids: Sequence[uuid.UUID],
        *,
        source: str | None = None,
    ) -> AggregationResult:
        """
        Aggregate a watchlist, preserving its order.

        Week boundaries are resolved across the watchlist's own facts.
        """

        if not artist_ids:
            return AggregationResult()

        store = self._require_store()
        store.require_workspace(workspace_id)
        normalized = self._normalize_source(source)
        facts = store.list_facts(workspace_id, artist_ids=artist_ids, source=normalized)
        return self.aggregate(facts, source=normalized, artist_order=artist_ids)

    def summarize(self, workspace_id: uuid.UUID) -> WorkspaceSummary:
        store = self._require_store()
        store.require_workspace(workspace_id)
        return summarize_workspace(
            store.list_facts(workspace_id),
            uploads=store.count_uploads(workspace_id),
        )

    def artist_series(
        self,
        workspace_id: uuid.UUID,
        artist_id: uuid.UUID,
        *,
        source: str | None = None,
    ) -> ArtistSeries:
        store = self._require_store()
        store.require_workspace(workspace_id)
        facts = store.list_facts(workspace_id, artist_ids=[artist_id])
        return build_artist_series(facts, artist_id, source=source)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_item(
        self,
        *,
        artist_id: uuid.UUID,
        name: str,
        total: int,
        this_week: int,
        prev_week: int,
        sources: set[str],
    ) -> WeeklyAggregate:
        growth = compute_growth_rate(this_week, prev_week)
        return WeeklyAggregate(
            artist_id=artist_id,
            artist_name=name,
            total_streams=total,
            this_week=this_week,
            prev_week=prev_week,
            growth_rate_pct=growth,
            rising=growth is not None and growth >= self._rising_threshold_pct,
            sources=tuple(sorted(sources)),
            mixed_sources=len(sources) > 1,
        )

    def _filter_source(
        self,
        facts: Sequence[StreamFactView],
        source: str | None,
    ) -> list[StreamFactView]:
        normalized = self._normalize_source(source)
        if normalized is None:
            return list(facts)
        return [fact for fact in facts if fact.source == normalized]

    @staticmethod
    def _normalize_source(source: str | None) -> str | None:
        if source is None or not source.strip():
            return None
        return source.strip().lower()

    def _require_store(self) -> StreamFactStore:
        if self._store is None:
            raise RuntimeError("AggregationService was created without a store.")
        return self._store
