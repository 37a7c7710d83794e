"""
tests/test_aggregation_service.py

Unit tests for app/services/aggregation_service.py.

Coverage
--------
- Growth rate edge cases and display rounding
- Scope-wide week boundaries
- Source filtering and mixed-source flags
- Rising threshold
- Watchlist ordering
- Series source preference
- Workspace summary through the in-memory store
"""

from __future__ import annotations

import uuid
from datetime import date

import pytest

from app.domain.streams import ConflictPolicy, StreamFactInput, StreamFactView
from app.services.aggregation_service import (
    MIXED_SOURCE,
    AggregationService,
    build_artist_series,
    compute_growth_rate,
    resolve_week_boundaries,
    round_growth,
)
from app.storage.base import WorkspaceNotFoundError
from app.storage.memory_store import InMemoryStreamFactStore

W1 = date(2025, 1, 6)
W2 = date(2025, 1, 13)
W3 = date(2025, 1, 20)

ARTIST_A = uuid.UUID(int=1)
ARTIST_B = uuid.UUID(int=2)
ARTIST_C = uuid.UUID(int=3)


def _fact(artist_id: uuid.UUID, name: str, week: date, streams: int, source: str = "us") -> StreamFactView:
    return StreamFactView(artist_id=artist_id, artist_name=name, week_start=week, source=source, streams=streams)


@pytest.fixture()
def service() -> AggregationService:
    return AggregationService()


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestGrowthRate:
    def test_regular_growth(self) -> None:
        assert compute_growth_rate(120, 100) == pytest.approx(20.0)

    def test_drop_to_zero(self) -> None:
        assert compute_growth_rate(0, 100) == pytest.approx(-100.0)

    def test_no_previous_week_is_undefined(self) -> None:
        assert compute_growth_rate(50, 0) is None
        assert compute_growth_rate(0, 0) is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(12.345, 12.3), (0.05, 0.1), (-2.25, -2.3), (None, None)],
    )
    def test_round_growth_half_up(self, raw, expected) -> None:
        assert round_growth(raw) == expected


def test_week_boundaries() -> None:
    facts = [_fact(ARTIST_A, "A", W1, 1), _fact(ARTIST_B, "B", W3, 1), _fact(ARTIST_A, "A", W2, 1)]

    boundaries = resolve_week_boundaries(facts)

    assert (boundaries.latest_week, boundaries.previous_week) == (W3, W2)


def test_single_week_has_no_previous() -> None:
    boundaries = resolve_week_boundaries([_fact(ARTIST_A, "A", W1, 1)])

    assert (boundaries.latest_week, boundaries.previous_week) == (W1, None)


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


class TestAggregate:
    FACTS = [
        _fact(ARTIST_A, "A", W1, 100),
        _fact(ARTIST_A, "A", W2, 150),
        _fact(ARTIST_B, "B", W2, 50),
        _fact(ARTIST_C, "C", W1, 30),
    ]

    def test_per_artist_values(self, service: AggregationService) -> None:
        result = service.aggregate(self.FACTS)
        items = {item.artist_name: item for item in result.items}

        assert (items["A"].this_week, items["A"].prev_week, items["A"].total_streams) == (150, 100, 250)
        assert items["A"].growth_rate_pct == pytest.approx(50.0)
        assert items["A"].rising is True

        assert (items["B"].this_week, items["B"].prev_week) == (50, 0)
        assert items["B"].growth_rate_pct is None
        assert items["B"].rising is False

        assert (items["C"].this_week, items["C"].prev_week) == (0, 30)
        assert items["C"].growth_rate_pct == pytest.approx(-100.0)

    def test_ordered_by_total_descending(self, service: AggregationService) -> None:
        result = service.aggregate(self.FACTS)

        assert [item.artist_name for item in result.items] == ["A", "B", "C"]

    def test_boundaries_are_scope_wide(self, service: AggregationService) -> None:
        result = service.aggregate(self.FACTS)

        assert result.boundaries.latest_week == W2
        assert result.boundaries.previous_week == W1

    def test_empty_scope(self, service: AggregationService) -> None:
        result = service.aggregate([])

        assert result.items == []
        assert result.boundaries.latest_week is None


class TestSources:
    FACTS = [
        _fact(ARTIST_A, "A", W1, 10, "us"),
        _fact(ARTIST_A, "A", W2, 100, "us"),
        _fact(ARTIST_A, "A", W2, 50, "global"),
    ]

    def test_mixed_sources_are_summed_and_flagged(self, service: AggregationService) -> None:
        result = service.aggregate(self.FACTS)

        assert result.items[0].this_week == 150
        assert result.items[0].mixed_sources is True
        assert result.mixed_sources is True
        assert result.sources == ("global", "us")

    def test_source_filter(self, service: AggregationService) -> None:
        result = service.aggregate(self.FACTS, source="US")

        assert result.items[0].this_week == 100
        assert result.items[0].mixed_sources is False
        assert result.mixed_sources is False


class TestRisingThreshold:
    def test_just_below_threshold(self, service: AggregationService) -> None:
        result = service.aggregate([_fact(ARTIST_A, "A", W1, 1000), _fact(ARTIST_A, "A", W2, 1299)])

        assert result.items[0].rising is False

    def test_at_threshold(self, service: AggregationService) -> None:
        result = service.aggregate([_fact(ARTIST_A, "A", W1, 1000), _fact(ARTIST_A, "A", W2, 1300)])

        assert result.items[0].rising is True

    def test_custom_threshold(self) -> None:
        service = AggregationService(rising_threshold_pct=5.0)

        result = service.aggregate([_fact(ARTIST_A, "A", W1, 100), _fact(ARTIST_A, "A", W2, 110)])

        assert result.items[0].rising is True


def test_artist_order_controls_membership(service: AggregationService) -> None:
    facts = [_fact(ARTIST_A, "A", W1, 100), _fact(ARTIST_B, "B", W1, 5)]
    missing = uuid.UUID(int=99)

    result = service.aggregate(facts, artist_order=[ARTIST_B, missing, ARTIST_A])

    assert [item.artist_id for item in result.items] == [ARTIST_B, missing, ARTIST_A]
    assert result.items[1].total_streams == 0
    assert result.items[1].growth_rate_pct is None


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------


class TestArtistSeries:
    def test_prefers_us(self) -> None:
        facts = [
            _fact(ARTIST_A, "A", W1, 10, "global"),
            _fact(ARTIST_A, "A", W1, 3, "us"),
            _fact(ARTIST_A, "A", W2, 4, "us"),
        ]

        series = build_artist_series(facts, ARTIST_A)

        assert series.source_used == "us"
        assert [(point.week_start, point.streams) for point in series.points] == [(W1, 3), (W2, 4)]
        assert series.mixed is False

    def test_sums_other_sources_as_mixed(self) -> None:
        facts = [
            _fact(ARTIST_A, "A", W1, 10, "uk"),
            _fact(ARTIST_A, "A", W1, 5, "de"),
        ]

        series = build_artist_series(facts, ARTIST_A)

        assert series.source_used == MIXED_SOURCE
        assert series.points[0].streams == 15
        assert series.available_sources == ("de", "uk")
        assert series.mixed is True

    def test_explicit_source(self) -> None:
        facts = [_fact(ARTIST_A, "A", W1, 10, "uk"), _fact(ARTIST_A, "A", W1, 3, "us")]

        series = build_artist_series(facts, ARTIST_A, source="UK")

        assert series.source_used == "uk"
        assert [point.streams for point in series.points] == [10]


# ---------------------------------------------------------------------------
# Store-backed readers
# ---------------------------------------------------------------------------


class TestStoreBacked:
    @pytest.fixture()
    def store(self) -> InMemoryStreamFactStore:
        return InMemoryStreamFactStore()

    def test_workspace_aggregate_and_summary(self, store: InMemoryStreamFactStore) -> None:
        workspace_id = store.add_workspace()
        other_workspace = store.add_workspace()
        upload_id = store.create_upload(workspace_id=workspace_id, source="us")
        artist_id, _ = store.ensure_artist(workspace_id, "Drake")
        foreign_id, _ = store.ensure_artist(other_workspace, "SZA")
        store.write_facts(
            [
                StreamFactInput(artist_id=artist_id, week_start=W1, source="us", streams=100, upload_id=upload_id),
                StreamFactInput(artist_id=artist_id, week_start=W2, source="us", streams=200, upload_id=upload_id),
                StreamFactInput(artist_id=foreign_id, week_start=W2, source="us", streams=999),
            ],
            ConflictPolicy.SKIP,
        )
        service = AggregationService(store)

        result = service.aggregate_workspace(workspace_id)
        summary = service.summarize(workspace_id)

        assert [item.artist_name for item in result.items] == ["Drake"]
        assert result.items[0].growth_rate_pct == pytest.approx(100.0)
        assert (summary.artists, summary.uploads, summary.total_rows) == (1, 1, 2)

    def test_empty_watchlist(self, store: InMemoryStreamFactStore) -> None:
        result = AggregationService(store).aggregate_watchlist(store.add_workspace(), [])

        assert result.items == []

    def test_unknown_workspace(self, store: InMemoryStreamFactStore) -> None:
        with pytest.raises(WorkspaceNotFoundError):
            AggregationService(store).aggregate_workspace(uuid.uuid4())

    def test_requires_store(self, service: AggregationService) -> None:
        with pytest.raises(RuntimeError):
            service.summarize(uuid.uuid4())
