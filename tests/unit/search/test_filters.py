"""Unit tests for filter composition."""

import pytest

from search_pipeline.domain.search import SearchContext
from search_pipeline.search.filters import FilterChain, all_of, allow_all, any_of, negate, reject_all


CONTEXT = SearchContext.of("query")


def is_even(document, context):
    return document % 2 == 0


def is_positive(document, context):
    return document > 0


@pytest.mark.unit
class TestFilterChain:
    """Test FilterChain behaviour."""

    def test_of_no_filters_is_allow_all(self):
        """An empty chain accepts everything."""
        assert FilterChain.of() is allow_all

    def test_of_single_filter_returns_it(self):
        """A one-filter chain is the filter itself."""
        assert FilterChain.of(is_even) is is_even

    def test_and_semantics(self):
        """All filters must accept."""
        chain = FilterChain.of(is_even, is_positive)
        assert len(chain) == 2
        assert chain(4, CONTEXT)
        assert not chain(-4, CONTEXT)
        assert not chain(3, CONTEXT)

    def test_short_circuits_on_first_rejection(self):
        """Later filters are not evaluated once one rejects."""
        calls = []

        def tracking(document, context):
            calls.append(document)
            return True

        chain = FilterChain.of(reject_all, tracking)
        assert not chain(1, CONTEXT)
        assert calls == []

    def test_rejects_none_entries(self):
        """None cannot be chained."""
        with pytest.raises(ValueError):
            FilterChain.of(is_even, None)


@pytest.mark.unit
class TestFilterCombinators:
    """Test any_of, all_of and negate."""

    def test_any_of(self):
        """At least one filter must accept."""
        either = any_of(is_even, is_positive)
        assert either(-2, CONTEXT)
        assert either(3, CONTEXT)
        assert not either(-3, CONTEXT)

    def test_any_of_empty_rejects(self):
        """No alternatives means nothing passes."""
        assert any_of() is reject_all

    def test_all_of_and_negate(self):
        """all_of chains and negate inverts."""
        assert all_of(is_even, is_positive)(2, CONTEXT)
        assert negate(is_even)(3, CONTEXT)
        assert not negate(allow_all)(1, CONTEXT)
