"""Keyword registry mapping domain vocabulary to concept values.

Classifiers and scorers use a registry to recognise words a domain cares
about. Keywords are normalised to trimmed lower-case on registration and the
registry is immutable once built.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Generic, TypeVar


V = TypeVar("V")

# Characters a query word shares with a keyword in the prefix fallback pass
_PREFIX_LENGTH = 3


def _normalize(keyword: str) -> str:
    return keyword.strip().lower()


class KeywordRegistry(Generic[V]):
    """Immutable keyword -> value lookup with query inference."""

    def __init__(self, entries: Mapping[str, V]) -> None:
        self._entries: Mapping[str, V] = MappingProxyType(dict(entries))

    @classmethod
    def builder(cls) -> KeywordRegistryBuilder[V]:
        return KeywordRegistryBuilder()

    def lookup(self, keyword: str | None) -> V | None:
        """Exact match on the normalised keyword."""
        if keyword is None:
            return None
        return self._entries.get(_normalize(keyword))

    def infer_from_query(self, query: str | None) -> list[V]:
        """Infer the ordered, de-duplicated values a query refers to.

        Passes:
        1. exact match of every whitespace-delimited word,
        2. every registered multi-word phrase contained in the query,
        3. only if 1-2 found nothing, a prefix fallback: each word of at least
           three characters takes the first keyword sharing its first three
           characters.
        """
        if query is None or not query.strip():
            return []

        normalized = _normalize(query)
        words = normalized.split()
        result: list[V] = []

        for word in words:
            value = self._entries.get(word)
            if value is not None and value not in result:
                result.append(value)

        for keyword, value in self._entries.items():
            if " " in keyword and keyword in normalized and value not in result:
                result.append(value)

        if result:
            return result

        for word in words:
            if len(word) < _PREFIX_LENGTH:
                continue
            prefix = word[:_PREFIX_LENGTH]
            for keyword, value in self._entries.items():
                if keyword.startswith(prefix) and value not in result:
                    result.append(value)
                    break

        return result

    def known_keywords(self) -> frozenset[str]:
        return frozenset(self._entries)

    def as_mapping(self) -> Mapping[str, V]:
        return self._entries

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, keyword: object) -> bool:
        return isinstance(keyword, str) and _normalize(keyword) in self._entries


class KeywordRegistryBuilder(Generic[V]):
    """Mutable builder; later registrations of the same keyword win."""

    def __init__(self) -> None:
        self._entries: dict[str, V] = {}

    def register(self, keyword: str, value: V) -> KeywordRegistryBuilder[V]:
        if keyword is None or not keyword.strip():
            raise ValueError("keyword must not be blank")
        if value is None:
            raise ValueError(f"value for keyword '{keyword}' must not be None")
        self._entries[_normalize(keyword)] = value
        return self

    def register_all(self, entries: Mapping[str, V]) -> KeywordRegistryBuilder[V]:
        for keyword, value in entries.items():
            self.register(keyword, value)
        return self

    def build(self) -> KeywordRegistry[V]:
        return KeywordRegistry(self._entries)
