"""Scoring strategies.

A scorer is any callable ``(document, context) -> int``. Zero means "not
relevant" and drops the document; the engine clamps negative values to zero.
Richer scorers are assembled from small ones with ``CompositeScorer`` rather
than new engine code.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from search_pipeline.domain.search import ScoreBreakdown, SearchContext
from search_pipeline.search.fuzzy import has_prefix_match


# Query words shorter than this never earn tag points in TagScorer
_TAG_MIN_WORD_LENGTH = 3


class ScoringStrategy(Protocol):
    """Protocol implemented by scorers."""

    def __call__(self, document: Any, context: SearchContext) -> int:  # pragma: no cover - interface definition
        ...


def zero(document: Any, context: SearchContext) -> int:
    return 0


def constant(points: int) -> ScoringStrategy:
    def score(document: Any, context: SearchContext) -> int:
        return points

    return score


def with_constant_boost(scorer: ScoringStrategy, boost: int) -> ScoringStrategy:
    """Add ``boost`` to every score, floored at zero."""

    def score(document: Any, context: SearchContext) -> int:
        return max(0, scorer(document, context) + boost)

    return score


def scaled_by(scorer: ScoringStrategy, factor: float) -> ScoringStrategy:
    """Multiply every score by ``factor``, truncating and flooring at zero."""

    def score(document: Any, context: SearchContext) -> int:
        return max(0, int(scorer(document, context) * factor))

    return score


def _text(value: str | None) -> str:
    return (value or "").lower()


@dataclass(frozen=True)
class WeightedScorer:
    scorer: ScoringStrategy
    weight: float


class CompositeScorer:
    """Weighted sum of sub-scorers; only positive sub-scores contribute."""

    def __init__(self, strategies: Sequence[WeightedScorer]) -> None:
        self._strategies = tuple(strategies)

    @classmethod
    def builder(cls) -> CompositeScorerBuilder:
        return CompositeScorerBuilder()

    @property
    def strategy_count(self) -> int:
        return len(self._strategies)

    def __call__(self, document: Any, context: SearchContext) -> int:
        total = 0.0
        for weighted in self._strategies:
            raw = weighted.scorer(document, context)
            if raw > 0:
                total += raw * weighted.weight
        return int(total)


class CompositeScorerBuilder:
    def __init__(self) -> None:
        self._strategies: list[WeightedScorer] = []

    def add(self, scorer: ScoringStrategy, weight: float = 1.0) -> CompositeScorerBuilder:
        if scorer is None:
            raise ValueError("scorer must not be None")
        if weight <= 0:
            raise ValueError(f"Weight must be > 0, got: {weight}")
        self._strategies.append(WeightedScorer(scorer, weight))
        return self

    def build(self) -> ScoringStrategy:
        if not self._strategies:
            return zero
        return CompositeScorer(self._strategies)


@dataclass(frozen=True)
class TextMatchWeights:
    """Points awarded by each ``TextMatchScorer`` phase."""

    exact_title_match: int = 100
    partial_title_match: int = 40
    body_match: int = 20
    word_in_title_match: int = 12
    tag_match: int = 15
    fuzzy_match: int = 8

    @classmethod
    def defaults(cls) -> TextMatchWeights:
        return cls()

    @classmethod
    def title_heavy(cls) -> TextMatchWeights:
        return cls(150, 60, 15, 18, 12, 5)

    @classmethod
    def full_text(cls) -> TextMatchWeights:
        return cls(80, 35, 35, 10, 10, 5)


class TextMatchScorer:
    """Title/body/tag text matching.

    Phases:
    1. whole query against the title (exact, else contained),
    2. whole query contained in the body,
    3. per query word of two or more characters: contained in the title,
       else a prefix match against title words; contained in any tag.
    """

    def __init__(
        self,
        *,
        title_extractor: Callable[[Any], str | None] = lambda document: "",
        body_extractor: Callable[[Any], str | None] = lambda document: "",
        tags_extractor: Callable[[Any], Collection[str] | None] = lambda document: (),
        weights: TextMatchWeights | None = None,
    ) -> None:
        self._title = title_extractor
        self._body = body_extractor
        self._tags = tags_extractor
        self.weights = weights or TextMatchWeights.defaults()

    def __call__(self, document: Any, context: SearchContext) -> int:
        return self.explain(document, context).total

    def explain(self, document: Any, context: SearchContext) -> ScoreBreakdown:
        builder = ScoreBreakdown.builder()
        query = context.normalized_input
        if not query:
            return builder.build()

        weights = self.weights
        title = _text(self._title(document))
        body = _text(self._body(document))
        tags = [tag.lower() for tag in self._tags(document) or ()]

        if title == query:
            builder.add("exact_title", weights.exact_title_match)
        elif query in title:
            builder.add("partial_title", weights.partial_title_match)

        if query in body:
            builder.add("body", weights.body_match)

        for word in query.split():
            if len(word) < 2:
                continue
            if word in title:
                builder.add("title_word", weights.word_in_title_match)
            elif has_prefix_match(word, title):
                builder.add("fuzzy_title", weights.fuzzy_match)
            if any(word in tag for tag in tags):
                builder.add("tag", weights.tag_match)

        return builder.build()


class TagScorer:
    """Points per query word found in a tag, plus a bonus for whole-tag hits.

    Each word counts once, against the first tag that contains it.
    """

    def __init__(
        self,
        *,
        tags_extractor: Callable[[Any], Collection[str] | None] = lambda document: (),
        hit_points: int = 15,
        whole_tag_bonus: int = 10,
    ) -> None:
        self._tags = tags_extractor
        self.hit_points = hit_points
        self.whole_tag_bonus = whole_tag_bonus

    def __call__(self, document: Any, context: SearchContext) -> int:
        query = context.normalized_input
        if not query:
            return 0
        tags = [tag.lower() for tag in self._tags(document) or ()]
        if not tags:
            return 0

        total = 0
        for word in query.split():
            if len(word) < _TAG_MIN_WORD_LENGTH:
                continue
            for tag in tags:
                if word in tag:
                    total += self.hit_points
                    if tag == word:
                        total += self.whole_tag_bonus
                    break
        return total
