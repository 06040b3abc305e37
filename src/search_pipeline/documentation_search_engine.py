"""Documentation Search Engine - a domain engine over the generic pipeline.

Composes a ``ConfigurableSearchEngine`` for ``DocPage`` values instead of
subclassing it: everything documentation-specific lives in the configuration
(classifier vocabulary, per-mode scorers, filters, rankers, suggestions) and
in the two hooks handed to the engine.

Per-mode behaviour:
- SPECIFIC: title-heavy text matching
- VAGUE: text matching plus BM25 plus a bonus for pages in an inferred category
- EXPLORATORY: tag matching plus bonuses for official pages and inferred categories

Interface Methods:
- add_page(page) / add_pages(pages) / remove_page(url)
- search_documents(query, mode, max_results, filters) -> SearchResult
- explain(url, query) -> ScoreBreakdown | None
- get_performance_metrics() -> dict
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import logging
import threading
from typing import Any

from search_pipeline.config import Settings
from search_pipeline.domain.model import (
    DocPage,
    page_content,
    page_searchable_text,
    page_tags,
    page_title,
    page_updated_at,
)
from search_pipeline.domain.search import ScoreBreakdown, SearchContext, SearchMode, SearchResult
from search_pipeline.observability.metrics import DOCUMENT_STORE_SIZE
from search_pipeline.search.bm25 import Bm25Scorer
from search_pipeline.search.classifier import KeywordQueryClassifier
from search_pipeline.search.engine import ConfigurableSearchEngine
from search_pipeline.search.engine_config import SearchEngineConfig
from search_pipeline.search.filters import FilterChain
from search_pipeline.search.fuzzy import did_you_mean
from search_pipeline.search.keywords import KeywordRegistry
from search_pipeline.search.metrics import MetricsCollector
from search_pipeline.search.ranking import Clock, RecencyBoostRanker, score_ranker, then_rank
from search_pipeline.search.scoring import (
    CompositeScorer,
    ScoringStrategy,
    TagScorer,
    TextMatchScorer,
    TextMatchWeights,
)
from search_pipeline.search.store import InMemoryDocumentStore


logger = logging.getLogger(__name__)

SPECIFIC_TRIGGERS = ("docs for", "reference for", "official")
EXPLORATORY_KEYWORDS = (
    "learn",
    "start",
    "beginner",
    "getting started",
    "new to",
    "don't know",
    "where to begin",
    "recommend",
    "suggest",
    "what should",
    "help me",
    "explore",
    "overview",
    "introduction",
)
DIFFICULTY_MARKERS = ("beginner", "intermediate", "advanced", "expert", "easy", "hard", "basic")

# Keyword -> category vocabulary used when no registry is supplied
DEFAULT_CATEGORY_KEYWORDS: dict[str, str] = {
    "api": "reference",
    "reference": "reference",
    "tutorial": "tutorial",
    "walkthrough": "tutorial",
    "guide": "guide",
    "how to": "guide",
    "howto": "guide",
    "install": "setup",
    "installation": "setup",
    "setup": "setup",
    "config": "configuration",
    "configuration": "configuration",
    "settings": "configuration",
    "deploy": "deployment",
    "deployment": "deployment",
    "security": "security",
    "auth": "security",
    "authentication": "security",
    "testing": "testing",
    "test": "testing",
    "performance": "performance",
    "changelog": "changelog",
    "release notes": "changelog",
}

INFERRED_CATEGORIES_FILTER = "inferred_categories"
CATEGORY_FILTER = "category"
OFFICIAL_ONLY_FILTER = "official_only"

CATEGORY_BONUS = 25
OFFICIAL_BONUS = 15
SUGGESTION_LIMIT = 3


@dataclass(frozen=True)
class NamedScorer:
    """A scorer with the label it contributes under in explanations."""

    name: str
    scorer: ScoringStrategy
    weight: float = 1.0


def _inferred_category_bonus(page: DocPage, context: SearchContext) -> int:
    categories = context.get_filter(INFERRED_CATEGORIES_FILTER, list)
    if not categories or page.category is None:
        return 0
    return CATEGORY_BONUS if page.category.lower() in categories else 0


def _official_bonus(page: DocPage, context: SearchContext) -> int:
    return OFFICIAL_BONUS if page.official else 0


def _category_filter(page: DocPage, context: SearchContext) -> bool:
    wanted = context.get_filter(CATEGORY_FILTER, str)
    if wanted is None:
        return True
    return page.category is not None and page.category.lower() == wanted.strip().lower()


def _official_only_filter(page: DocPage, context: SearchContext) -> bool:
    return page.official or context.get_filter(OFFICIAL_ONLY_FILTER, bool) is not True


def _build_registry(entries: dict[str, str]) -> KeywordRegistry[str]:
    normalized = {keyword: value.lower() for keyword, value in entries.items()}
    return KeywordRegistry.builder().register_all(normalized).build()


class DocumentationSearchEngine:
    """Documentation search over an in-memory set of ``DocPage`` values.

    Pages are keyed by URL; adding a page with a known URL replaces it. BM25
    corpus statistics are refreshed after every mutation.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        category_registry: KeywordRegistry[str] | None = None,
        clock: Clock | None = None,
    ):
        """Initialize documentation search engine.

        Args:
            settings: Engine defaults; read from the environment when omitted
            category_registry: Keyword -> category vocabulary for query inference
            clock: Time source for the recency boost, injectable for tests
        """
        self.settings = settings or Settings()
        self.name = self.settings.engine_name
        self.category_registry = category_registry or _build_registry(DEFAULT_CATEGORY_KEYWORDS)
        self._store: InMemoryDocumentStore[DocPage] = InMemoryDocumentStore()
        self._metrics = MetricsCollector()
        self._clock = clock
        self._stats_lock = threading.Lock()

        self._bm25 = Bm25Scorer(text_extractor=page_searchable_text)
        self._text_match = TextMatchScorer(
            title_extractor=page_title, body_extractor=page_content, tags_extractor=page_tags
        )
        self._mode_scorers: dict[SearchMode, list[NamedScorer]] = {
            SearchMode.SPECIFIC: [
                NamedScorer(
                    "text_match",
                    TextMatchScorer(
                        title_extractor=page_title,
                        body_extractor=page_content,
                        tags_extractor=page_tags,
                        weights=TextMatchWeights.title_heavy(),
                    ),
                ),
            ],
            SearchMode.VAGUE: [
                NamedScorer("text_match", self._text_match),
                NamedScorer("bm25", self._bm25),
                NamedScorer("category", _inferred_category_bonus),
            ],
            SearchMode.EXPLORATORY: [
                NamedScorer("tags", TagScorer(tags_extractor=page_tags)),
                NamedScorer("official", _official_bonus),
                NamedScorer("category", _inferred_category_bonus),
            ],
        }

        self._engine = ConfigurableSearchEngine(
            self._build_config(),
            pre_search=self._infer_categories,
            post_search=self._add_fallback_tips,
            name=self.name,
            metrics_collector=self._metrics,
        )
        logger.info(
            "Initialized DocumentationSearchEngine '%s' with %d category keywords",
            self.name,
            self.category_registry.size(),
        )

    def _build_config(self) -> SearchEngineConfig:
        classifier = (
            KeywordQueryClassifier.builder()
            .specific_keywords(SPECIFIC_TRIGGERS)
            .exploratory_keywords(EXPLORATORY_KEYWORDS)
            .difficulty_keywords(DIFFICULTY_MARKERS)
            .known_vocabulary(self.category_registry.known_keywords())
            .exploratory_word_limit(self.settings.exploratory_word_limit)
            .build()
        )
        recency = RecencyBoostRanker(
            page_updated_at,
            fresh_days=self.settings.recency_fresh_days,
            stale_days=self.settings.recency_stale_days,
            fresh_bonus=self.settings.recency_fresh_bonus,
            clock=self._clock,
        )

        builder = (
            SearchEngineConfig.builder()
            .store(self._store)
            .classifier(classifier)
            .filter(FilterChain.of(_category_filter, _official_only_filter))
            .ranker(then_rank(score_ranker, recency))
            .max_results(self.settings.default_max_results)
            .summary_builder(lambda context, count: f"{count} page(s) for '{context.normalized_input}'")
            .suggestion_provider(self._suggest)
        )
        for mode, scorers in self._mode_scorers.items():
            builder.scorer(mode, self._compose(scorers))
        return builder.build()

    @staticmethod
    def _compose(scorers: Sequence[NamedScorer]) -> ScoringStrategy:
        composite = CompositeScorer.builder()
        for named in scorers:
            composite.add(named.scorer, named.weight)
        return composite.build()

    # Hooks

    def _infer_categories(self, context: SearchContext) -> SearchContext:
        if INFERRED_CATEGORIES_FILTER in context.filters:
            return context
        categories = self.category_registry.infer_from_query(context.normalized_input)
        if not categories:
            return context
        logger.debug("Inferred categories %s", categories, extra={"normalized_input": context.normalized_input})
        return context.with_filters(**{INFERRED_CATEGORIES_FILTER: categories})

    def _add_fallback_tips(self, context: SearchContext, result: SearchResult) -> SearchResult:
        if not result.is_empty or result.suggestions:
            return result
        tips = [
            f'No documentation matched "{context.normalized_input}".',
            "Tip: try fewer or broader keywords, or drop the category filter.",
        ]
        return SearchResult.empty_with_suggestions(result.mode, result.summary, tips)

    def _suggest(self, context: SearchContext) -> list[str]:
        return did_you_mean(context.words, self._vocabulary(), limit=SUGGESTION_LIMIT)

    def _vocabulary(self) -> set[str]:
        vocabulary = {keyword for keyword in self.category_registry.known_keywords() if " " not in keyword}
        for page in self._store.all():
            vocabulary.update(word for word in page.title.lower().split() if word.isalnum())
            vocabulary.update(tag.lower() for tag in page.tags)
        return vocabulary

    # Store mutations

    def add_page(self, page: DocPage) -> None:
        self._store.add(page.url, page)
        self._refresh_stats()

    def add_pages(self, pages: Iterable[DocPage]) -> int:
        """Upsert many pages, refreshing corpus statistics once; returns how many were added."""
        added = 0
        for page in pages:
            self._store.add(page.url, page)
            added += 1
        self._refresh_stats()
        logger.info("Added %d page(s) to '%s'", added, self.name)
        self._store.log_stats()
        return added

    def remove_page(self, url: str) -> None:
        self._store.remove(url)
        self._refresh_stats()

    def get_page(self, url: str) -> DocPage | None:
        return self._store.find_by_id(url)

    @property
    def page_count(self) -> int:
        return self._store.size()

    def _refresh_stats(self) -> None:
        # Snapshot and install together so a slower writer cannot restore older stats
        with self._stats_lock:
            self._bm25.compute_stats(self._store.all())
            DOCUMENT_STORE_SIZE.labels(engine=self.name).set(self._store.size())

    # Queries

    def search_documents(
        self,
        query: str,
        *,
        mode: SearchMode | str | None = None,
        max_results: int | None = None,
        filters: dict[str, Any] | None = None,
    ) -> SearchResult:
        """Search documentation pages.

        Args:
            query: Natural language search query
            mode: Force a search mode instead of classifying the query
            max_results: Per-request cap, bounded by the engine-wide cap
            filters: ``category`` (str) and ``official_only`` (bool) narrow the pages searched

        Returns:
            SearchResult with ranked pages, or suggestions when nothing matched
        """
        return self._engine.search_text(query, forced_mode=mode, filters=filters, max_results=max_results)

    def search(self, context: SearchContext) -> SearchResult:
        return self._engine.search(context)

    def explain(self, url: str, query: str, *, mode: SearchMode | str | None = None) -> ScoreBreakdown | None:
        """Break down how the page at ``url`` scores for ``query``; None if the page is unknown."""
        page = self._store.find_by_id(url)
        if page is None:
            return None

        if isinstance(mode, str) and not isinstance(mode, SearchMode):
            mode = SearchMode.from_string(mode)
        context = self._infer_categories(SearchContext.of(query, forced_mode=mode))
        resolved = context.forced_mode or self._engine.config.classifier(context.normalized_input)

        breakdown = ScoreBreakdown.builder()
        for named in self._mode_scorers[resolved]:
            raw = named.scorer(page, context)
            if raw > 0:
                breakdown.add(named.name, int(raw * named.weight))
        return breakdown.build()

    def get_performance_metrics(self) -> dict:
        """Get performance metrics for this documentation search engine.

        Returns:
            Dictionary with store size, corpus statistics and search latency stats
        """
        base_metrics = {
            "engine": self.name,
            "documents": self._store.size(),
            "bm25_stats_computed": self._bm25.is_stats_computed,
            "bm25_documents": self._bm25.total_documents,
            "category_keywords": self.category_registry.size(),
        }
        search_stats = self._metrics.get_stats()
        if search_stats:
            base_metrics["search"] = search_stats
        return base_metrics

    def close(self):
        """Drop all pages."""
        self._store.clear()
        self._refresh_stats()


def create_documentation_search_engine(
    pages: Iterable[DocPage] = (),
    settings: Settings | None = None,
    *,
    category_registry: KeywordRegistry[str] | None = None,
) -> DocumentationSearchEngine:
    """Factory function for creating documentation search engines.

    Args:
        pages: Pages to index up front
        settings: Engine defaults; read from the environment when omitted
        category_registry: Keyword -> category vocabulary for query inference

    Returns:
        Configured DocumentationSearchEngine instance
    """
    engine = DocumentationSearchEngine(settings, category_registry=category_registry)
    engine.add_pages(pages)
    return engine


__all__ = [
    "CATEGORY_BONUS",
    "DEFAULT_CATEGORY_KEYWORDS",
    "OFFICIAL_BONUS",
    "DocumentationSearchEngine",
    "create_documentation_search_engine",
]
