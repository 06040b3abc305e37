"""Tokenizers used by text scorers.

Tokenizers are plain callables ``text -> list[str]``. The default one lower-
cases, splits on anything that is not a letter or digit and drops English
stop words; the whitespace tokenizer keeps every word intact.
"""

from __future__ import annotations

import re
from typing import Protocol


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> list[str]:  # pragma: no cover - interface definition
        ...


DEFAULT_STOPWORDS = frozenset(
    {
        "a",
        "about",
        "all",
        "also",
        "an",
        "and",
        "any",
        "are",
        "as",
        "at",
        "be",
        "been",
        "being",
        "but",
        "by",
        "can",
        "could",
        "did",
        "do",
        "does",
        "for",
        "from",
        "get",
        "had",
        "has",
        "have",
        "he",
        "how",
        "i",
        "if",
        "in",
        "into",
        "is",
        "it",
        "its",
        "just",
        "like",
        "may",
        "might",
        "more",
        "my",
        "new",
        "no",
        "not",
        "of",
        "on",
        "or",
        "other",
        "our",
        "shall",
        "she",
        "should",
        "so",
        "some",
        "than",
        "that",
        "the",
        "their",
        "then",
        "these",
        "they",
        "this",
        "those",
        "to",
        "up",
        "use",
        "used",
        "using",
        "very",
        "was",
        "we",
        "well",
        "were",
        "what",
        "when",
        "where",
        "which",
        "who",
        "will",
        "with",
        "would",
        "you",
        "your",
    }
)

_SPLIT_PATTERN = re.compile(r"[\W_]+", re.UNICODE)


class DefaultTokenizer:
    """Lower-cased word tokens without stop words or very short fragments."""

    def __init__(self, min_token_length: int = 2, stopwords: frozenset[str] | None = None) -> None:
        self.min_token_length = max(1, min_token_length)
        self.stopwords = DEFAULT_STOPWORDS if stopwords is None else stopwords

    def __call__(self, text: str | None) -> list[str]:
        if not text or not text.strip():
            return []
        return [
            token
            for token in _SPLIT_PATTERN.split(text.lower())
            if len(token) >= self.min_token_length and token not in self.stopwords
        ]


def whitespace_tokenizer(text: str | None) -> list[str]:
    """Split on whitespace after trimming and lower-casing; keeps stop words."""
    if not text or not text.strip():
        return []
    return text.strip().lower().split()
