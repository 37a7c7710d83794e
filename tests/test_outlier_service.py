"""
tests/test_outlier_service.py

Unit tests for app/services/outlier_service.py.

Coverage
--------
- Minimum history length
- Z-score of a sudden jump against a flat baseline
- Zero-variance baseline
- Baseline window
- Ranking: order, streams filter, limit, source summing
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta

import pytest

from app.domain.streams import ConflictPolicy, StreamFactInput, StreamFactView
from app.services.outlier_service import OutlierService, build_histories, score_history
from app.storage.memory_store import InMemoryStreamFactStore

START = date(2025, 1, 6)


def _history(*values: int) -> list[tuple[date, int]]:
    return [(START + timedelta(weeks=index), value) for index, value in enumerate(values)]


class TestScoreHistory:
    def test_two_weeks_are_not_enough(self) -> None:
        assert score_history(_history(100, 200)) is None

    def test_three_weeks_score_zero_on_flat_baseline(self) -> None:
        score = score_history(_history(100, 200, 400))

        assert score is not None
        assert score.z_score == 0.0
        assert score.wow_change == 200
        assert score.pct_change == pytest.approx(1.0)

    def test_sudden_jump(self) -> None:
        score = score_history(_history(1000, 1050, 1040, 1060, 3000), artist_name="A")

        assert score is not None
        assert score.wow_change == 1940
        assert score.z_score == pytest.approx(78.38, abs=0.01)
        assert score.pct_change == pytest.approx(1940 / 1060)
        assert score.latest_week == START + timedelta(weeks=4)
        assert score.streams == 3000

    def test_previous_week_zero_gives_zero_pct(self) -> None:
        score = score_history(_history(10, 0, 50))

        assert score is not None
        assert score.pct_change == 0.0

    def test_changes_outside_window_are_ignored(self) -> None:
        tail = (110, 105, 120, 115, 130, 125, 140, 135, 150, 145, 500)

        baseline = score_history(_history(100, *tail))
        altered = score_history(_history(10000, *tail))

        assert baseline is not None and altered is not None
        assert altered.z_score == pytest.approx(baseline.z_score)

    def test_min_weeks_can_be_raised(self) -> None:
        assert score_history(_history(1, 2, 3), min_weeks=4) is None


class TestOutlierService:
    def test_ranks_by_z_score(self) -> None:
        jumpy = uuid.UUID(int=1)
        steady = uuid.UUID(int=2)
        histories = {
            steady: ("Steady", _history(100, 110, 100, 110)),
            jumpy: ("Jumpy", _history(1000, 1050, 1040, 1060, 3000)),
        }

        ranked = OutlierService().rank(histories)

        assert [score.artist_name for score in ranked] == ["Jumpy", "Steady"]

    def test_excludes_artists_without_latest_streams(self) -> None:
        histories = {uuid.UUID(int=1): ("Gone", _history(100, 50, 0))}

        assert OutlierService().rank(histories) == []

    def test_min_weeks_floor(self) -> None:
        histories = {uuid.UUID(int=1): ("New", _history(10, 500))}

        assert OutlierService(min_weeks=2).rank(histories) == []

    def test_limit(self) -> None:
        histories = {
            uuid.UUID(int=index): (f"Artist {index}", _history(10, 20, 30 + index))
            for index in range(1, 6)
        }

        assert len(OutlierService(limit=3).rank(histories)) == 3

    def test_rank_facts_sums_sources(self) -> None:
        artist_id = uuid.UUID(int=7)
        facts = [
            StreamFactView(artist_id=artist_id, artist_name="A", week_start=week, source=source, streams=streams)
            for week, source, streams in [
                (START, "us", 10),
                (START, "global", 5),
                (START + timedelta(weeks=1), "us", 20),
                (START + timedelta(weeks=2), "us", 40),
            ]
        ]

        assert build_histories(facts)[artist_id][1][0] == (START, 15)

        ranked = OutlierService().rank_facts(facts, source="us")

        assert ranked[0].wow_change == 20
        assert ranked[0].pct_change == pytest.approx(1.0)

    def test_rank_workspace_requires_store(self) -> None:
        with pytest.raises(RuntimeError):
            OutlierService().rank_workspace(uuid.uuid4())


def test_rank_workspace_reads_store() -> None:
    store = InMemoryStreamFactStore()
    workspace_id = store.add_workspace()
    artist_id, _ = store.ensure_artist(workspace_id, "A")
    store.write_facts(
        [
            StreamFactInput(artist_id=artist_id, week_start=week, source="us", streams=streams)
            for week, streams in _history(1000, 1050, 1040, 1060, 3000)
        ],
        ConflictPolicy.SKIP,
    )

    ranked = OutlierService(store).rank_workspace(workspace_id)

    assert [score.artist_id for score in ranked] == [artist_id]
    assert ranked[0].z_score == pytest.approx(78.38, abs=0.01)
