"""Query intent classification.

A classifier maps a normalised query to a ``SearchMode``. Any callable with
the ``QueryClassifier`` signature works; ``KeywordQueryClassifier`` is the
configurable rule-based implementation.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Protocol

from search_pipeline.domain.search import SearchMode


class QueryClassifier(Protocol):
    """Protocol implemented by classifiers: pure and stateless."""

    def __call__(self, normalized_input: str) -> SearchMode:  # pragma: no cover - interface definition
        ...


def fixed(mode: SearchMode) -> Callable[[str], SearchMode]:
    """Return a classifier that always answers ``mode``."""
    if mode is None:
        raise ValueError("mode must not be None")

    def classify(normalized_input: str) -> SearchMode:
        return mode

    return classify


always_vague = fixed(SearchMode.VAGUE)
always_specific = fixed(SearchMode.SPECIFIC)
always_exploratory = fixed(SearchMode.EXPLORATORY)


class KeywordQueryClassifier:
    """Ordered rule list, first match wins.

    1. quote character or ``http`` -> SPECIFIC
    2. any specific trigger phrase -> SPECIFIC
    3. at most ``exploratory_word_limit`` words and an exploratory keyword -> EXPLORATORY
    4. at most two words and no known-vocabulary hit -> EXPLORATORY
    5. a single difficulty marker word -> EXPLORATORY
    6. otherwise VAGUE

    Rule 4 counts a vocabulary entry as a hit when it equals the input or is
    contained anywhere in it, so a short query holding a fragment such as
    "api" inside "rapid" is treated as known.
    """

    def __init__(
        self,
        *,
        specific_keywords: Iterable[str] = (),
        exploratory_keywords: Iterable[str] = (),
        difficulty_keywords: Iterable[str] = (),
        known_vocabulary: Iterable[str] = (),
        exploratory_word_limit: int = 5,
    ) -> None:
        if exploratory_word_limit < 1:
            raise ValueError(f"exploratory_word_limit must be >= 1, got {exploratory_word_limit}")
        self.specific_keywords = tuple(specific_keywords)
        self.exploratory_keywords = tuple(exploratory_keywords)
        self.difficulty_keywords = frozenset(difficulty_keywords)
        self.known_vocabulary = frozenset(known_vocabulary)
        self.exploratory_word_limit = exploratory_word_limit

    @classmethod
    def builder(cls) -> KeywordQueryClassifierBuilder:
        return KeywordQueryClassifierBuilder()

    def __call__(self, normalized_input: str) -> SearchMode:
        return self.classify(normalized_input)

    def classify(self, normalized_input: str) -> SearchMode:
        if normalized_input is None:
            raise ValueError("normalized_input must not be None")

        if '"' in normalized_input or "http" in normalized_input:
            return SearchMode.SPECIFIC

        if any(keyword in normalized_input for keyword in self.specific_keywords):
            return SearchMode.SPECIFIC

        # An empty query still counts as one (empty) word
        word_count = len(normalized_input.split()) or 1

        if word_count <= self.exploratory_word_limit and any(
            keyword in normalized_input for keyword in self.exploratory_keywords
        ):
            return SearchMode.EXPLORATORY

        if word_count <= 2 and not any(
            keyword == normalized_input or keyword in normalized_input for keyword in self.known_vocabulary
        ):
            return SearchMode.EXPLORATORY

        if word_count == 1 and normalized_input.strip() in self.difficulty_keywords:
            return SearchMode.EXPLORATORY

        return SearchMode.VAGUE


class KeywordQueryClassifierBuilder:
    """Collects rule vocabularies before building an immutable classifier."""

    def __init__(self) -> None:
        self._specific: list[str] = []
        self._exploratory: list[str] = []
        self._difficulty: set[str] = set()
        self._known: set[str] = set()
        self._word_limit = 5

    def specific_keywords(self, keywords: Iterable[str]) -> KeywordQueryClassifierBuilder:
        self._specific = [keyword.lower() for keyword in keywords]
        return self

    def exploratory_keywords(self, keywords: Iterable[str]) -> KeywordQueryClassifierBuilder:
        self._exploratory = [keyword.lower() for keyword in keywords]
        return self

    def difficulty_keywords(self, keywords: Iterable[str]) -> KeywordQueryClassifierBuilder:
        self._difficulty = {keyword.lower() for keyword in keywords}
        return self

    def known_vocabulary(self, *vocabularies: Iterable[str]) -> KeywordQueryClassifierBuilder:
        """Replace the known vocabulary with the union of ``vocabularies``."""
        combined: set[str] = set()
        for vocabulary in vocabularies:
            combined.update(word.lower() for word in vocabulary)
        self._known = combined
        return self

    def exploratory_word_limit(self, limit: int) -> KeywordQueryClassifierBuilder:
        self._word_limit = limit
        return self

    def build(self) -> KeywordQueryClassifier:
        return KeywordQueryClassifier(
            specific_keywords=self._specific,
            exploratory_keywords=self._exploratory,
            difficulty_keywords=self._difficulty,
            known_vocabulary=self._known,
            exploratory_word_limit=self._word_limit,
        )
