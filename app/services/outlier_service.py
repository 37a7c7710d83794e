"""
app/services/outlier_service.py

Notable-mover detection.

Each artist's latest week-over-week change is scored against the changes
that preceded it (up to ``window`` of them): ``z = (last - mean) / sd`` with
the population standard deviation. Because every artist is measured against
its own volatility, a 2,000-stream jump flags a small act but not a large
one.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections import defaultdict
from datetime import date
from typing import Final, Iterable, Mapping, Sequence

from app.domain.streams import OutlierScore, StreamFactView
from app.logging_utils import timed_event
from app.storage.base import StreamFactStore

logger = logging.getLogger(__name__)

DEFAULT_WINDOW: Final[int] = 8
DEFAULT_MIN_WEEKS: Final[int] = 3
DEFAULT_LIMIT: Final[int] = 50

WeeklyHistory = Sequence[tuple[date, int]]


def score_history(
    history: WeeklyHistory,
    *,
    artist_id: uuid.UUID | None = None,
    artist_name: str = "",
    window: int = DEFAULT_WINDOW,
    min_weeks: int = DEFAULT_MIN_WEEKS,
) -> OutlierScore | None:
    """
    Score one artist's ascending ``(week, streams)`` history.

    Returns None when the history is shorter than ``min_weeks``; such artists
    are left out of the ranking rather than scored zero.
    """

    if len(history) < max(min_weeks, 2):
        return None

    streams = [value for _, value in history]
    changes = [current - previous for previous, current in zip(streams, streams[1:])]
    last_change = changes[-1]
    baseline = changes[:-1][-max(1, window):]

    mean = sum(baseline) / len(baseline) if baseline else 0.0
    variance = sum((change - mean) ** 2 for change in baseline) / len(baseline) if baseline else 0.0
    sd = math.sqrt(variance)
    z_score = (last_change - mean) / sd if sd > 0 else 0.0

    previous_streams = streams[-2]
    pct_change = last_change / previous_streams if previous_streams > 0 else 0.0

    return OutlierScore(
        artist_id=artist_id if artist_id is not None else uuid.UUID(int=0),
        artist_name=artist_name,
        latest_week=history[-1][0],
        streams=streams[-1],
        wow_change=last_change,
        pct_change=pct_change,
        z_score=z_score,
    )


def build_histories(
    facts: Iterable[StreamFactView],
) -> dict[uuid.UUID, tuple[str, list[tuple[date, int]]]]:
    """
    Group facts into per-artist ascending weekly series, summing sources.
    """

    names: dict[uuid.UUID, str] = {}
    weekly: dict[uuid.UUID, dict[date, int]] = defaultdict(lambda: defaultdict(int))
    for fact in facts:
        names.setdefault(fact.artist_id, fact.artist_name)
        weekly[fact.artist_id][fact.week_start] += fact.streams

    return {
        artist_id: (names[artist_id], sorted(per_week.items()))
        for artist_id, per_week in weekly.items()
    }


class OutlierService:
    """
    Ranks artists by the z-score of their latest week-over-week change.
    """

    def __init__(
        self,
        store: StreamFactStore | None = None,
        *,
        window: int = DEFAULT_WINDOW,
        min_weeks: int = DEFAULT_MIN_WEEKS,
        limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._store = store
        self._window = max(1, window)
        self._min_weeks = max(DEFAULT_MIN_WEEKS, min_weeks)
        self._limit = max(1, limit)

    def rank(
        self,
        histories: Mapping[uuid.UUID, tuple[str, WeeklyHistory]],
    ) -> list[OutlierScore]:
        """
        Score every history, keep artists with streams in their latest week,
        and return the top ``limit`` by z-score.
        """

        scores: list[OutlierScore] = []
        for artist_id, (artist_name, history) in histories.items():
            score = score_history(
                history,
                artist_id=artist_id,
                artist_name=artist_name,
                window=self._window,
                min_weeks=self._min_weeks,
            )
            if score is None or score.streams <= 0:
                continue
            scores.append(score)

        scores.sort(key=lambda score: (-score.z_score, score.artist_name.lower()))
        ranked = scores[: self._limit]
        logger.debug(
            "Ranked outliers candidates=%d eligible=%d returned=%d",
            len(histories),
            len(scores),
            len(ranked),
        )
        return ranked

    def rank_facts(
        self,
        facts: Iterable[StreamFactView],
        *,
        source: str | None = None,
    ) -> list[OutlierScore]:
        wanted = source.strip().lower() if source and source.strip() else None
        scoped = [fact for fact in facts if wanted is None or fact.source == wanted]
        return self.rank(build_histories(scoped))

    def rank_workspace(
        self,
        workspace_id: uuid.UUID,
        *,
        source: str | None = None,
    ) -> list[OutlierScore]:
        if self._store is None:
            raise RuntimeError("OutlierService was created without a store.")
        self._store.require_workspace(workspace_id)
        wanted = source.strip().lower() if source and source.strip() else None
        with timed_event(
            logger,
            "outliers_ranked",
            level=logging.DEBUG,
            workspace_id=workspace_id,
            source=wanted,
        ) as context:
            ranked = self.rank_facts(self._store.list_facts(workspace_id, source=wanted))
            context["returned"] = len(ranked)
        return ranked
