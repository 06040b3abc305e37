"""Composable document filters.

A filter is any callable ``(document, context) -> bool``. Filters run over
the whole store snapshot before scoring, so they must be pure and cheap.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from search_pipeline.domain.search import SearchContext


class SearchFilter(Protocol):
    """Protocol implemented by filters."""

    def __call__(self, document: Any, context: SearchContext) -> bool:  # pragma: no cover - interface definition
        ...


def allow_all(document: Any, context: SearchContext) -> bool:
    return True


def reject_all(document: Any, context: SearchContext) -> bool:
    return False


class FilterChain:
    """Ordered AND of filters; stops at the first one that rejects."""

    def __init__(self, filters: Sequence[SearchFilter]) -> None:
        for candidate in filters:
            if candidate is None:
                raise ValueError("FilterChain entries must not be None")
        self._filters = tuple(filters)

    @classmethod
    def of(cls, *filters: SearchFilter) -> SearchFilter:
        """Collapse to ``allow_all`` for no filters and to the filter itself for one."""
        if not filters:
            return allow_all
        if len(filters) == 1:
            if filters[0] is None:
                raise ValueError("filter must not be None")
            return filters[0]
        return cls(filters)

    def __call__(self, document: Any, context: SearchContext) -> bool:
        return all(check(document, context) for check in self._filters)

    def __len__(self) -> int:
        return len(self._filters)


def all_of(*filters: SearchFilter) -> SearchFilter:
    return FilterChain.of(*filters)


def any_of(*filters: SearchFilter) -> SearchFilter:
    """OR-combine filters; stops at the first one that accepts."""
    if not filters:
        return reject_all

    def check(document: Any, context: SearchContext) -> bool:
        return any(candidate(document, context) for candidate in filters)

    return check


def negate(inner: SearchFilter) -> SearchFilter:
    def check(document: Any, context: SearchContext) -> bool:
        return not inner(document, context)

    return check
