"""Okapi BM25 scoring over a document corpus.

score(D, Q) = sum over query terms t of
    IDF(t) * tf(t, D) * (k1 + 1) / (tf(t, D) + k1 * (1 - b + b * |D| / avgdl))

IDF(t) = ln((N - df(t) + 0.5) / (df(t) + 0.5) + 1)

Corpus statistics are computed explicitly with ``compute_stats`` whenever the
corpus changes. Scores are scaled by 10 and truncated to integer points so
they mix with the other scorers.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
import logging
import math
from typing import Any

from search_pipeline.domain.search import SearchContext
from search_pipeline.search.analyzers import DefaultTokenizer, Tokenizer
from search_pipeline.search.fuzzy import term_frequency


logger = logging.getLogger(__name__)

DEFAULT_K1 = 1.5
DEFAULT_B = 0.75
SCALE_FACTOR = 10


@dataclass(frozen=True)
class CorpusStats:
    """Immutable snapshot of the statistics BM25 needs."""

    document_frequencies: dict[str, int] = field(default_factory=dict)
    total_documents: int = 0
    average_length: float = 1.0
    computed: bool = False


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Robertson/Sparck Jones IDF with the +1 that keeps it positive."""
    n = max(total_docs, 1)
    return math.log((n - doc_freq + 0.5) / (doc_freq + 0.5) + 1.0)


class Bm25Scorer:
    """BM25 scorer over the text returned by ``text_extractor``."""

    def __init__(
        self,
        *,
        text_extractor: Callable[[Any], str | None] = lambda document: "",
        tokenizer: Tokenizer | None = None,
        k1: float = DEFAULT_K1,
        b: float = DEFAULT_B,
    ) -> None:
        if k1 < 0:
            raise ValueError(f"k1 must be >= 0, got {k1}")
        if not 0 <= b <= 1:
            raise ValueError(f"b must be in [0, 1], got {b}")
        self._text = text_extractor
        self._tokenizer = tokenizer or DefaultTokenizer()
        self.k1 = k1
        self.b = b
        # Replaced wholesale so concurrent scorers always see a consistent snapshot
        self._stats = CorpusStats()

    def compute_stats(self, corpus: Iterable[Any]) -> CorpusStats:
        """Recompute document frequencies and average length from ``corpus``."""
        if corpus is None:
            raise ValueError("corpus must not be None")

        frequencies: Counter[str] = Counter()
        total_length = 0
        total_docs = 0
        for document in corpus:
            tokens = self._tokenizer(self._text(document))
            total_length += len(tokens)
            total_docs += 1
            frequencies.update(set(tokens))

        stats = CorpusStats(
            document_frequencies=dict(frequencies),
            total_documents=total_docs,
            average_length=total_length / total_docs if total_docs else 1.0,
            computed=True,
        )
        self._stats = stats
        logger.debug(
            "BM25 stats computed: %d documents, %d terms, avgdl=%.2f",
            stats.total_documents,
            len(stats.document_frequencies),
            stats.average_length,
        )
        return stats

    @property
    def is_stats_computed(self) -> bool:
        return self._stats.computed

    @property
    def total_documents(self) -> int:
        return self._stats.total_documents

    def __call__(self, document: Any, context: SearchContext) -> int:
        query_terms = self._tokenizer(context.normalized_input)
        if not query_terms:
            return 0

        text = (self._text(document) or "").lower()
        doc_length = len(self._tokenizer(text))
        if doc_length == 0:
            return 0

        stats = self._stats
        avgdl = stats.average_length if stats.average_length > 0 else 1.0
        total = 0.0
        for term in query_terms:
            tf = term_frequency(term, text)
            if tf == 0:
                continue
            idf = calculate_idf(stats.document_frequencies.get(term, 0), stats.total_documents)
            norm = tf * (self.k1 + 1) / (tf + self.k1 * (1 - self.b + self.b * doc_length / avgdl))
            total += idf * norm

        return int(total * SCALE_FACTOR)
