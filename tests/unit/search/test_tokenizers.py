"""Unit tests for tokenizers."""

import pytest

from search_pipeline.search.analyzers import DEFAULT_STOPWORDS, DefaultTokenizer, whitespace_tokenizer


@pytest.mark.unit
class TestDefaultTokenizer:
    """Test DefaultTokenizer."""

    def test_lowercases_and_splits_on_punctuation(self):
        """Non-alphanumeric characters separate tokens."""
        assert DefaultTokenizer()("Async/Await in Python-3.12") == ["async", "await", "python", "12"]

    def test_drops_stopwords_and_short_tokens(self):
        """Stop words and single characters are removed."""
        tokens = DefaultTokenizer()("How to use a queue in the worker")
        assert tokens == ["queue", "worker"]
        assert "the" in DEFAULT_STOPWORDS

    def test_custom_stopwords_and_length(self):
        """Stop words and minimum length are configurable."""
        tokenizer = DefaultTokenizer(min_token_length=4, stopwords=frozenset({"docker"}))
        assert tokenizer("the docker compose file") == ["compose", "file"]

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_blank_text(self, text):
        """Blank text yields nothing."""
        assert DefaultTokenizer()(text) == []


@pytest.mark.unit
class TestWhitespaceTokenizer:
    """Test whitespace_tokenizer."""

    def test_keeps_every_word(self):
        """Stop words and punctuation stay attached."""
        assert whitespace_tokenizer("  The Quick, fox ") == ["the", "quick,", "fox"]

    def test_blank(self):
        """Blank text yields nothing."""
        assert whitespace_tokenizer(None) == []
