"""Unit tests for the five-phase search pipeline."""

import json
import logging

from opentelemetry import trace as trace_api
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import REGISTRY
import pytest

from search_pipeline.domain.search import SearchContext, SearchMode, SearchResult
from search_pipeline.observability import JsonFormatter, init_tracing, query_digest
from search_pipeline.search.classifier import KeywordQueryClassifier, fixed
from search_pipeline.search.engine import ConfigurableSearchEngine
from search_pipeline.search.engine_config import SearchEngineConfig
from search_pipeline.search.metrics import MetricsCollector
from search_pipeline.search.store import InMemoryDocumentStore


SCORES = {"A": 10, "B": 5, "C": 50, "Z": 0}


def table_scorer(document, context):
    return SCORES[document]


def not_c(document, context):
    return document != "C"


def build_engine(store=None, *, name="test", **builder_settings):
    store = store if store is not None else InMemoryDocumentStore()
    builder = SearchEngineConfig.builder().store(store).default_scorer(table_scorer)
    for setting, value in builder_settings.items():
        getattr(builder, setting)(value)
    return ConfigurableSearchEngine(builder.build(), name=name, metrics_collector=MetricsCollector())


@pytest.fixture
def store() -> InMemoryDocumentStore[str]:
    """Store holding A, B, C and a never-scoring Z."""
    documents = InMemoryDocumentStore()
    for doc_id in ("A", "B", "C", "Z"):
        documents.add(doc_id, doc_id)
    return documents


def sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.unit
class TestPipeline:
    """Test phase ordering and result shaping."""

    def test_end_to_end_scenario(self, store):
        """Filtered documents vanish, survivors rank by score, no suggestions."""
        engine = build_engine(store, filter=not_c)
        result = engine.search(SearchContext.of("anything"))

        assert result.mode is SearchMode.VAGUE
        assert [(item.document, item.score) for item in result.items] == [("A", 10), ("B", 5)]
        assert result.suggestions == []
        assert result.summary == "2 result(s) for 'anything'"

    def test_zero_scores_dropped(self, store):
        """Documents scoring zero never appear."""
        result = build_engine(store).search(SearchContext.of("q"))
        assert "Z" not in result.documents

    def test_negative_scores_dropped(self):
        """Negative scores are dropped like zero."""
        documents = InMemoryDocumentStore()
        documents.add("neg", "neg")
        engine = ConfigurableSearchEngine(
            SearchEngineConfig.builder().store(documents).default_scorer(lambda d, c: -4).build()
        )
        assert engine.search(SearchContext.of("q")).is_empty

    @pytest.mark.parametrize(("engine_cap", "request_cap", "expected"), [(2, 15, 2), (15, 1, 1), (3, 3, 3)])
    def test_cap_is_smaller_of_engine_and_request(self, store, engine_cap, request_cap, expected):
        """Results are trimmed to min(engine cap, request cap)."""
        engine = build_engine(store, max_results=engine_cap)
        result = engine.search(SearchContext.of("q", max_results=request_cap))
        assert result.count == expected
        assert result.documents == ["C", "A", "B"][:expected]

    def test_forced_mode_wins(self, store):
        """A forced mode skips the classifier."""
        engine = build_engine(store, classifier=fixed(SearchMode.VAGUE))
        result = engine.search(SearchContext.of("q", forced_mode=SearchMode.EXPLORATORY))
        assert result.mode is SearchMode.EXPLORATORY

    def test_mode_selects_scorer(self, store):
        """Each mode uses its own scorer; modes without one find nothing."""
        config = (
            SearchEngineConfig.builder()
            .store(store)
            .classifier(KeywordQueryClassifier.builder().specific_keywords(["exact"]).build())
            .scorer(SearchMode.SPECIFIC, table_scorer)
            .build()
        )
        engine = ConfigurableSearchEngine(config)
        assert engine.search(SearchContext.of("exact please")).count == 3
        vague = engine.search(SearchContext.of("three word query"))
        assert vague.mode is SearchMode.VAGUE
        assert vague.is_empty

    def test_url_query_is_specific(self, store):
        """URL queries classify SPECIFIC even with exploratory keywords configured."""
        classifier = KeywordQueryClassifier.builder().exploratory_keywords(["example"]).build()
        engine = build_engine(store, classifier=classifier)
        assert engine.search(SearchContext.of("http://example.com")).mode is SearchMode.SPECIFIC


@pytest.mark.unit
class TestEmptyResults:
    """Test short-circuits and suggestions."""

    def test_empty_store_returns_suggestions(self):
        """Nothing to filter short-circuits to suggestions."""
        engine = build_engine(suggestion_provider=lambda context: [f"try {context.normalized_input}s"])
        result = engine.search(SearchContext.of("Widget"))
        assert result.is_empty
        assert result.suggestions == ["try widgets"]
        assert result.summary == "0 result(s) for 'widget'"

    def test_nothing_scores(self, store):
        """All-zero scoring short-circuits before ranking."""
        ranked = []

        def tracking_ranker(items, context):
            ranked.append(items)
            return items

        engine = ConfigurableSearchEngine(
            SearchEngineConfig.builder()
            .store(store)
            .ranker(tracking_ranker)
            .suggestion_provider(lambda context: ["nope"])
            .build()
        )
        result = engine.search(SearchContext.of("q"))
        assert result.suggestions == ["nope"]
        assert ranked == []

    def test_empty_result_metric_labels_phase(self, store):
        """Empty short-circuits count by phase."""
        engine = build_engine(store, name="empty-phase", filter=lambda d, c: False)
        before = sample("search_empty_results_total", {"engine": "empty-phase", "phase": "filter"})
        engine.search(SearchContext.of("q"))
        assert sample("search_empty_results_total", {"engine": "empty-phase", "phase": "filter"}) == before + 1


@pytest.mark.unit
class TestHooks:
    """Test pre/post search hooks."""

    def test_pre_search_context_reaches_every_phase(self, store):
        """Filters and scorers observe the context returned by pre_search."""
        seen = []

        def scorer(document, context):
            seen.append(context.filters.get("tenant"))
            return 1

        config = SearchEngineConfig.builder().store(store).default_scorer(scorer).build()
        engine = ConfigurableSearchEngine(config, pre_search=lambda context: context.with_filters(tenant="docs"))
        engine.search(SearchContext.of("q"))
        assert seen and set(seen) == {"docs"}

    def test_post_search_replaces_result(self, store):
        """post_search sees the effective context and may replace the result."""

        def post(context, result):
            return SearchResult.empty_with_suggestions(result.mode, "replaced", [context.normalized_input])

        config = SearchEngineConfig.builder().store(store).default_scorer(table_scorer).build()
        result = ConfigurableSearchEngine(config, post_search=post).search(SearchContext.of("Q"))
        assert result.summary == "replaced"
        assert result.suggestions == ["q"]


@pytest.mark.unit
class TestStrategyFailures:
    """Test degradation of failing filters and scorers."""

    def test_failing_filter_excludes_document(self, store, caplog):
        """A raising filter drops the document and logs a warning."""

        def flaky_filter(document, context):
            if document == "A":
                raise KeyError("missing field")
            return True

        engine = build_engine(store, name="flaky-filter", filter=flaky_filter)
        with caplog.at_level(logging.WARNING, logger="search_pipeline.search.engine"):
            result = engine.search(SearchContext.of("q"))

        assert "A" not in result.documents
        assert result.documents == ["C", "B"]
        assert "Filter failed" in caplog.text
        assert sample("search_strategy_errors_total", {"engine": "flaky-filter", "stage": "filter"}) == 1

    def test_failing_scorer_scores_zero(self, store):
        """A raising scorer leaves the document out of the result."""

        def flaky_scorer(document, context):
            if document == "C":
                raise AttributeError("no title")
            return SCORES[document]

        config = SearchEngineConfig.builder().store(store).default_scorer(flaky_scorer).build()
        result = ConfigurableSearchEngine(config, name="flaky-scorer").search(SearchContext.of("q"))
        assert result.documents == ["A", "B"]
        assert sample("search_strategy_errors_total", {"engine": "flaky-scorer", "stage": "score"}) == 1

    def test_non_numeric_score_degrades(self, store):
        """A scorer returning None drops only that document."""

        def partial_scorer(document, context):
            return None if document == "A" else SCORES[document]

        config = SearchEngineConfig.builder().store(store).default_scorer(partial_scorer).build()
        result = ConfigurableSearchEngine(config, name="none-scorer").search(SearchContext.of("q"))
        assert result.documents == ["C", "B"]
        assert sample("search_strategy_errors_total", {"engine": "none-scorer", "stage": "score"}) == 1

    def test_float_score_truncated(self, store):
        """Fractional scores are truncated to whole points."""
        scores = {**SCORES, "A": 2.5}
        config = SearchEngineConfig.builder().store(store).default_scorer(lambda d, c: scores[d]).build()
        result = ConfigurableSearchEngine(config, name="float-scorer").search(SearchContext.of("q"))
        assert [(item.document, item.score) for item in result.items] == [("C", 50), ("B", 5), ("A", 2)]
        assert sample("search_strategy_errors_total", {"engine": "float-scorer", "stage": "score"}) == 0

    def test_classifier_errors_propagate(self, store):
        """Classifier failures are configuration bugs and surface."""

        def broken(normalized_input):
            raise RuntimeError("bad classifier")

        with pytest.raises(RuntimeError, match="bad classifier"):
            build_engine(store, classifier=broken).search(SearchContext.of("q"))

    def test_rejects_missing_context(self, store):
        """search needs a context."""
        with pytest.raises(ValueError):
            build_engine(store).search(None)

    def test_rejects_missing_config(self):
        """The engine needs a configuration."""
        with pytest.raises(ValueError):
            ConfigurableSearchEngine(None)


@pytest.mark.unit
class TestSearchText:
    """Test the plain-argument entry point."""

    def test_string_mode_is_parsed(self, store):
        """Forced modes may be given by name."""
        result = build_engine(store).search_text("q", forced_mode="Specific", max_results=1)
        assert result.mode is SearchMode.SPECIFIC
        assert result.documents == ["C"]

    def test_unknown_string_mode_rejected(self, store):
        """Unknown names fail with the valid values."""
        with pytest.raises(ValueError, match="Valid values"):
            build_engine(store).search_text("q", forced_mode="loose")

    def test_filters_passed_through(self, store):
        """Filters given to search_text reach the filter stage."""
        engine = build_engine(store, filter=lambda document, context: document in context.filters["only"])
        assert engine.search_text("q", filters={"only": ["B"]}).documents == ["B"]


@pytest.mark.unit
class TestEngineObservability:
    """Test metrics, spans and the metrics window."""

    @staticmethod
    def _setup_exporter() -> InMemorySpanExporter:
        exporter = InMemorySpanExporter()
        provider = trace_api.get_tracer_provider()
        if not isinstance(provider, TracerProvider):
            provider = init_tracing("test-service")
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        return exporter

    def test_pipeline_span_attributes(self, store):
        """Each search runs inside a search.pipeline span."""
        exporter = self._setup_exporter()
        build_engine(store, name="traced").search(SearchContext.of("q", forced_mode=SearchMode.SPECIFIC))

        spans = [span for span in exporter.get_finished_spans() if span.name == "search.pipeline"]
        assert spans
        attributes = spans[-1].attributes
        assert attributes["search.engine"] == "traced"
        assert attributes["search.mode"] == "specific"
        assert attributes["search.result_count"] == 3
        assert attributes["search.top_score"] == 50

    def test_phase_spans_nest_under_pipeline(self, store):
        """Filter, score and rank each get a child span; short-circuits skip the rest."""
        exporter = self._setup_exporter()
        build_engine(store, name="phased").search(SearchContext.of("q"))
        build_engine(store, name="phased", filter=lambda d, c: False).search(SearchContext.of("q"))

        spans = exporter.get_finished_spans()
        roots = [span for span in spans if span.name == "search.pipeline"][-2:]

        def children(root):
            return [span.name for span in spans if span.parent and span.parent.span_id == root.context.span_id]

        assert children(roots[0]) == ["search.filter", "search.score", "search.rank"]
        assert children(roots[1]) == ["search.filter"]
        filter_span = next(span for span in spans if span.name == "search.filter")
        assert filter_span.attributes["search.candidates"] == 4

    def test_request_counter_and_latency(self, store):
        """Requests count by engine and mode and latency is observed."""
        engine = build_engine(store, name="counted")
        engine.search(SearchContext.of("q"))
        engine.search(SearchContext.of("q"))
        assert sample("search_requests_total", {"engine": "counted", "mode": "vague"}) == 2
        assert sample("search_latency_seconds_count", {"engine": "counted"}) == 2
        assert sample("search_result_count_sum", {"engine": "counted", "mode": "vague"}) == 6

    def test_metrics_collector_records_each_search(self, store):
        """The engine's collector sees mode and result counts."""
        collector = MetricsCollector()
        config = SearchEngineConfig.builder().store(store).default_scorer(table_scorer).build()
        engine = ConfigurableSearchEngine(config, metrics_collector=collector)
        engine.search(SearchContext.of("two words"))
        engine.search(SearchContext.of("q", forced_mode=SearchMode.SPECIFIC))

        stats = collector.get_stats()
        assert stats["count"] == 2
        assert stats["modes"] == {"vague": 1, "specific": 1}
        assert stats["results"]["empty_rate"] == 0.0

    def test_debug_logs_keep_query_out_of_message(self, store, caplog):
        """Hashed logging leaves no plain query text in pipeline debug records."""
        query = "my secret medical query"
        with caplog.at_level(logging.DEBUG, logger="search_pipeline.search.engine"):
            build_engine(store, name="hashed").search(SearchContext.of(query))

        record = next(r for r in caplog.records if r.getMessage().startswith("Search ["))
        output = JsonFormatter(hash_queries=True).format(record)
        assert query not in output
        assert json.loads(output)["normalized_input"] == query_digest(query)
        assert all(query not in r.getMessage() for r in caplog.records)
