"""Immutable wiring of one search engine.

A ``SearchEngineConfig`` names the store, classifier, per-mode scorers,
filter, ranker, result cap, summary builder and suggestion provider. Build it
with ``SearchEngineConfig.builder()``; every setting has a working default.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from search_pipeline.domain.search import DEFAULT_MAX_RESULTS, SearchContext, SearchMode
from search_pipeline.search.classifier import QueryClassifier, always_vague
from search_pipeline.search.filters import SearchFilter, allow_all
from search_pipeline.search.ranking import RankingStrategy, score_ranker
from search_pipeline.search.scoring import ScoringStrategy, zero
from search_pipeline.search.store import DocumentStore, InMemoryDocumentStore


SummaryBuilder = Callable[[SearchContext, int], str]
SuggestionProvider = Callable[[SearchContext], list[str]]


def default_summary(context: SearchContext, count: int) -> str:
    return f"{count} result(s) for '{context.normalized_input}'"


def no_suggestions(context: SearchContext) -> list[str]:
    return []


@dataclass(frozen=True)
class SearchEngineConfig:
    store: DocumentStore[Any] = field(default_factory=InMemoryDocumentStore)
    classifier: QueryClassifier = always_vague
    scorers: Mapping[SearchMode, ScoringStrategy] = field(default_factory=lambda: MappingProxyType({}))
    filter: SearchFilter = allow_all
    ranker: RankingStrategy = score_ranker
    max_results: int = DEFAULT_MAX_RESULTS
    summary_builder: SummaryBuilder = default_summary
    suggestion_provider: SuggestionProvider = no_suggestions

    def __post_init__(self) -> None:
        if self.max_results < 1:
            raise ValueError(f"max_results must be >= 1, got {self.max_results}")

    @classmethod
    def builder(cls) -> SearchEngineConfigBuilder:
        return SearchEngineConfigBuilder()

    def scorer_for(self, mode: SearchMode) -> ScoringStrategy:
        """Scorer registered for ``mode``; modes without one score everything zero."""
        return self.scorers.get(mode, zero)

    def has_scorer_for(self, mode: SearchMode) -> bool:
        return mode in self.scorers


def _require(value: Any, name: str) -> Any:
    if value is None:
        raise ValueError(f"{name} must not be None")
    return value


class SearchEngineConfigBuilder:
    """Fluent builder for ``SearchEngineConfig``."""

    def __init__(self) -> None:
        self._store: DocumentStore[Any] | None = None
        self._classifier: QueryClassifier = always_vague
        self._scorers: dict[SearchMode, ScoringStrategy] = {}
        self._filter: SearchFilter = allow_all
        self._ranker: RankingStrategy = score_ranker
        self._max_results = DEFAULT_MAX_RESULTS
        self._summary_builder: SummaryBuilder = default_summary
        self._suggestion_provider: SuggestionProvider = no_suggestions

    def store(self, store: DocumentStore[Any]) -> SearchEngineConfigBuilder:
        self._store = _require(store, "store")
        return self

    def classifier(self, classifier: QueryClassifier) -> SearchEngineConfigBuilder:
        self._classifier = _require(classifier, "classifier")
        return self

    def scorer(self, mode: SearchMode, scorer: ScoringStrategy) -> SearchEngineConfigBuilder:
        self._scorers[_require(mode, "mode")] = _require(scorer, "scorer")
        return self

    def default_scorer(self, scorer: ScoringStrategy) -> SearchEngineConfigBuilder:
        """Use ``scorer`` for every mode, replacing earlier registrations."""
        _require(scorer, "scorer")
        for mode in SearchMode:
            self._scorers[mode] = scorer
        return self

    def filter(self, search_filter: SearchFilter) -> SearchEngineConfigBuilder:
        self._filter = _require(search_filter, "filter")
        return self

    def ranker(self, ranker: RankingStrategy) -> SearchEngineConfigBuilder:
        self._ranker = _require(ranker, "ranker")
        return self

    def max_results(self, max_results: int) -> SearchEngineConfigBuilder:
        if max_results < 1:
            raise ValueError(f"max_results must be >= 1, got {max_results}")
        self._max_results = max_results
        return self

    def summary_builder(self, builder: SummaryBuilder) -> SearchEngineConfigBuilder:
        self._summary_builder = _require(builder, "summary_builder")
        return self

    def suggestion_provider(self, provider: SuggestionProvider) -> SearchEngineConfigBuilder:
        self._suggestion_provider = _require(provider, "suggestion_provider")
        return self

    def build(self) -> SearchEngineConfig:
        return SearchEngineConfig(
            store=self._store if self._store is not None else InMemoryDocumentStore(),
            classifier=self._classifier,
            scorers=MappingProxyType(dict(self._scorers)),
            filter=self._filter,
            ranker=self._ranker,
            max_results=self._max_results,
            summary_builder=self._summary_builder,
            suggestion_provider=self._suggestion_provider,
        )
