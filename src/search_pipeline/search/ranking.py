"""Ranking strategies.

A ranker reorders scored items and never adds or drops any. Rankers compose
by feeding one's output to the next with ``then_rank``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any, Protocol

from search_pipeline.domain.search import ScoredItem, SearchContext


Clock = Callable[[], datetime]


class RankingStrategy(Protocol):
    """Protocol implemented by rankers."""

    def __call__(
        self, items: Sequence[ScoredItem], context: SearchContext
    ) -> list[ScoredItem]:  # pragma: no cover - interface definition
        ...


def _by_score_desc(items: Sequence[ScoredItem]) -> list[ScoredItem]:
    # sorted() is stable: equal scores keep their incoming order
    return sorted(items, key=lambda item: -item.score)


def score_ranker(items: Sequence[ScoredItem], context: SearchContext) -> list[ScoredItem]:
    """Score descending; ties keep their incoming order."""
    return _by_score_desc(items)


def then_rank(first: RankingStrategy, second: RankingStrategy) -> RankingStrategy:
    def rank(items: Sequence[ScoredItem], context: SearchContext) -> list[ScoredItem]:
        return second(first(items, context), context)

    return rank


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecencyBoostRanker:
    """Adds a linearly decaying freshness bonus, then re-sorts by score.

    Age ``<= fresh_days`` earns the full bonus, age ``>= stale_days`` earns
    nothing, and ages in between decay linearly (truncated to whole points).
    Documents without a timestamp keep their score.
    """

    def __init__(
        self,
        timestamp_extractor: Callable[[Any], datetime | None],
        fresh_days: int = 30,
        stale_days: int = 365,
        fresh_bonus: int = 20,
        *,
        clock: Clock | None = None,
    ) -> None:
        if timestamp_extractor is None:
            raise ValueError("timestamp_extractor must not be None")
        if fresh_days < 0 or stale_days <= fresh_days:
            raise ValueError(
                f"stale_days must be > fresh_days >= 0, got fresh_days={fresh_days}, stale_days={stale_days}"
            )
        self._timestamp = timestamp_extractor
        self.fresh_days = fresh_days
        self.stale_days = stale_days
        self.fresh_bonus = max(0, fresh_bonus)
        self._clock = clock or _utc_now

    def compute_bonus(self, timestamp: datetime, now: datetime) -> int:
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        age_days = (now - timestamp).days
        if age_days <= self.fresh_days:
            return self.fresh_bonus
        if age_days >= self.stale_days:
            return 0
        decay = (age_days - self.fresh_days) / (self.stale_days - self.fresh_days)
        return int(self.fresh_bonus * (1.0 - decay))

    def __call__(self, items: Sequence[ScoredItem], context: SearchContext) -> list[ScoredItem]:
        if not items:
            return []

        now = self._clock()
        boosted: list[ScoredItem] = []
        for item in items:
            timestamp = self._timestamp(item.document)
            bonus = self.compute_bonus(timestamp, now) if timestamp is not None else 0
            boosted.append(item.with_boost(bonus) if bonus > 0 else item)

        return _by_score_desc(boosted)
