"""The five-phase search pipeline.

Every run goes through the same sequence:

1. classify: a forced mode wins, otherwise the configured classifier decides
2. filter: the store snapshot is narrowed by the configured filter
3. score: the mode's scorer grades survivors; zero scores are dropped
4. rank: the configured ranker orders what is left
5. trim: the list is cut to the smaller of the engine and request caps

Filtering or scoring leaving nothing short-circuits to an empty result with
suggestions. Specialised engines wrap this with ``pre_search`` and
``post_search`` callables instead of overriding any phase.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import time
from typing import Any, Protocol

from search_pipeline.domain.search import ScoredItem, SearchContext, SearchMode, SearchResult
from search_pipeline.observability.context import engine_scope
from search_pipeline.observability.metrics import (
    SEARCH_EMPTY_RESULTS,
    SEARCH_LATENCY,
    SEARCH_STRATEGY_ERRORS,
    observe_search,
    track_latency,
)
from search_pipeline.observability.tracing import phase_span, pipeline_span, record_result
from search_pipeline.search.engine_config import SearchEngineConfig
from search_pipeline.search.metrics import MetricsCollector, SearchMetrics, get_metrics_collector


logger = logging.getLogger(__name__)

PreSearchHook = Callable[[SearchContext], SearchContext]
PostSearchHook = Callable[[SearchContext, SearchResult], SearchResult]


class SearchEngine(Protocol):
    """Anything that answers a ``SearchContext`` with a ``SearchResult``."""

    def search(self, context: SearchContext) -> SearchResult:  # pragma: no cover - interface definition
        ...


def _identity_context(context: SearchContext) -> SearchContext:
    return context


def _identity_result(context: SearchContext, result: SearchResult) -> SearchResult:
    return result


def _as_points(value: Any) -> int:
    """Truncate a numeric score to whole points; anything else is a scorer bug."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"scorer returned {type(value).__name__}, expected a number")
    return int(value)


class ConfigurableSearchEngine:
    """Generic engine driven entirely by a ``SearchEngineConfig``.

    Safe to share between threads as long as the configured store tolerates
    concurrent reads and writes; the engine itself holds no mutable state
    beyond metrics.
    """

    def __init__(
        self,
        config: SearchEngineConfig,
        *,
        pre_search: PreSearchHook | None = None,
        post_search: PostSearchHook | None = None,
        name: str = "default",
        metrics_collector: MetricsCollector | None = None,
    ) -> None:
        if config is None:
            raise ValueError("config must not be None")
        self.config = config
        self.name = name
        self._pre_search = pre_search or _identity_context
        self._post_search = post_search or _identity_result
        self._metrics = metrics_collector or get_metrics_collector()

    def search(self, context: SearchContext) -> SearchResult:
        if context is None:
            raise ValueError("context must not be None")

        started = time.perf_counter()
        with (
            engine_scope(self.name),
            pipeline_span(self.name, context) as span,
            track_latency(SEARCH_LATENCY, engine=self.name),
        ):
            effective = self._pre_search(context)
            result = self._run_pipeline(effective)
            result = self._post_search(effective, result)
            record_result(span, result)

        observe_search(self.name, result.mode.value, result.count)
        self._metrics.record_search(
            SearchMetrics(
                latency_ms=(time.perf_counter() - started) * 1000,
                result_count=result.count,
                query_tokens=len(effective.words),
                mode=result.mode.value,
            )
        )
        return result

    def search_text(
        self,
        raw_input: str,
        *,
        forced_mode: SearchMode | str | None = None,
        filters: dict[str, Any] | None = None,
        max_results: int | None = None,
    ) -> SearchResult:
        """Build a ``SearchContext`` from plain arguments and search with it."""
        if isinstance(forced_mode, str) and not isinstance(forced_mode, SearchMode):
            forced_mode = SearchMode.from_string(forced_mode)
        context = SearchContext.of(raw_input, forced_mode=forced_mode, max_results=max_results, filters=filters)
        return self.search(context)

    def _run_pipeline(self, context: SearchContext) -> SearchResult:
        mode = self._classify(context)
        logger.debug("Search [%s]", mode.value, extra={"normalized_input": context.normalized_input})

        with phase_span("filter", self.config.store.size()):
            candidates = self._filter(context)
        logger.debug("Filter kept %d document(s)", len(candidates))
        if not candidates:
            SEARCH_EMPTY_RESULTS.labels(engine=self.name, phase="filter").inc()
            return self._empty_result(mode, context)

        with phase_span("score", len(candidates)):
            scored = self._score(candidates, context, mode)
        logger.debug("Scoring kept %d of %d document(s)", len(scored), len(candidates))
        if not scored:
            SEARCH_EMPTY_RESULTS.labels(engine=self.name, phase="score").inc()
            return self._empty_result(mode, context)

        with phase_span("rank", len(scored)):
            ranked = self.config.ranker(scored, context)
        return self._build_result(mode, ranked, context)

    def _classify(self, context: SearchContext) -> SearchMode:
        if context.has_forced_mode:
            return context.forced_mode  # type: ignore[return-value]
        return self.config.classifier(context.normalized_input)

    def _filter(self, context: SearchContext) -> list[Any]:
        search_filter = self.config.filter
        survivors: list[Any] = []
        for document in self.config.store.all():
            try:
                if search_filter(document, context):
                    survivors.append(document)
            except Exception as exc:
                logger.warning("Filter failed for document %r; excluding it: %s", document, exc, exc_info=True)
                SEARCH_STRATEGY_ERRORS.labels(engine=self.name, stage="filter").inc()
        return survivors

    def _score(self, documents: list[Any], context: SearchContext, mode: SearchMode) -> list[ScoredItem]:
        scorer = self.config.scorer_for(mode)
        scored: list[ScoredItem] = []
        for document in documents:
            try:
                points = _as_points(scorer(document, context))
            except Exception as exc:
                logger.warning("Scorer failed for document %r; scoring it 0: %s", document, exc, exc_info=True)
                SEARCH_STRATEGY_ERRORS.labels(engine=self.name, stage="score").inc()
                continue
            if points > 0:
                scored.append(ScoredItem(document=document, score=points))
        return scored

    def _build_result(self, mode: SearchMode, ranked: list[ScoredItem], context: SearchContext) -> SearchResult:
        limit = min(self.config.max_results, context.max_results)
        trimmed = list(ranked[:limit])
        logger.debug("Returning %d of %d ranked document(s)", len(trimmed), len(ranked))
        summary = self.config.summary_builder(context, len(trimmed))
        return SearchResult(mode=mode, items=trimmed, summary=summary)

    def _empty_result(self, mode: SearchMode, context: SearchContext) -> SearchResult:
        suggestions = self.config.suggestion_provider(context)
        summary = self.config.summary_builder(context, 0)
        return SearchResult.empty_with_suggestions(mode, summary, suggestions or [])
