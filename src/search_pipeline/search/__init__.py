"""Pluggable search pipeline: store, classifier, filters, scorers, rankers and the engine."""

from search_pipeline.search.analyzers import DEFAULT_STOPWORDS, DefaultTokenizer, Tokenizer, whitespace_tokenizer
from search_pipeline.search.bm25 import Bm25Scorer, CorpusStats
from search_pipeline.search.classifier import (
    KeywordQueryClassifier,
    KeywordQueryClassifierBuilder,
    QueryClassifier,
    always_exploratory,
    always_specific,
    always_vague,
    fixed,
)
from search_pipeline.search.engine import ConfigurableSearchEngine, SearchEngine
from search_pipeline.search.engine_config import SearchEngineConfig, SearchEngineConfigBuilder
from search_pipeline.search.filters import FilterChain, SearchFilter, all_of, allow_all, any_of, negate, reject_all
from search_pipeline.search.keywords import KeywordRegistry, KeywordRegistryBuilder
from search_pipeline.search.metrics import MetricsCollector, SearchMetrics, get_metrics_collector
from search_pipeline.search.ranking import RankingStrategy, RecencyBoostRanker, score_ranker, then_rank
from search_pipeline.search.scoring import (
    CompositeScorer,
    CompositeScorerBuilder,
    ScoringStrategy,
    TagScorer,
    TextMatchScorer,
    TextMatchWeights,
    constant,
    scaled_by,
    with_constant_boost,
    zero,
)
from search_pipeline.search.store import DocumentStore, InMemoryDocumentStore, StoreError


__all__ = [
    "DEFAULT_STOPWORDS",
    "Bm25Scorer",
    "CompositeScorer",
    "CompositeScorerBuilder",
    "ConfigurableSearchEngine",
    "CorpusStats",
    "DefaultTokenizer",
    "DocumentStore",
    "FilterChain",
    "InMemoryDocumentStore",
    "KeywordQueryClassifier",
    "KeywordQueryClassifierBuilder",
    "KeywordRegistry",
    "KeywordRegistryBuilder",
    "MetricsCollector",
    "QueryClassifier",
    "RankingStrategy",
    "RecencyBoostRanker",
    "ScoringStrategy",
    "SearchEngine",
    "SearchEngineConfig",
    "SearchEngineConfigBuilder",
    "SearchFilter",
    "SearchMetrics",
    "StoreError",
    "TagScorer",
    "TextMatchScorer",
    "TextMatchWeights",
    "Tokenizer",
    "all_of",
    "allow_all",
    "always_exploratory",
    "always_specific",
    "always_vague",
    "any_of",
    "constant",
    "fixed",
    "get_metrics_collector",
    "negate",
    "reject_all",
    "scaled_by",
    "score_ranker",
    "then_rank",
    "whitespace_tokenizer",
    "with_constant_boost",
    "zero",
]
