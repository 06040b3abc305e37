"""Shared test fixtures and configuration."""

from datetime import datetime, timedelta, timezone
import os

import pytest


# Complete test environment that overrides ALL settings read from SEARCH_*
TEST_ENV = {
    "SEARCH_DEFAULT_MAX_RESULTS": "15",
    "SEARCH_EXPLORATORY_WORD_LIMIT": "5",
    "SEARCH_RECENCY_FRESH_DAYS": "30",
    "SEARCH_RECENCY_STALE_DAYS": "365",
    "SEARCH_RECENCY_FRESH_BONUS": "20",
    "SEARCH_LOG_LEVEL": "info",
    "SEARCH_LOG_JSON": "false",
    "SEARCH_LOG_HASH_QUERIES": "false",
    "SEARCH_ENGINE_NAME": "test-docs",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value

# Now we can safely import config-dependent modules
from search_pipeline.domain.model import DocPage  # noqa: E402


FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Clean environment variables before each test and set test defaults."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def fixed_now():
    """The instant every injected clock reports."""
    return FIXED_NOW


@pytest.fixture
def fixed_clock():
    """Clock callable pinned to ``FIXED_NOW``."""
    return lambda: FIXED_NOW


@pytest.fixture
def sample_pages():
    """A small documentation corpus spanning categories, tags and ages."""
    return [
        DocPage(
            url="https://docs.example.com/python/asyncio",
            title="Asyncio Tutorial",
            content="Learn how to write concurrent code with async and await in python.",
            tags=("python", "asyncio", "concurrency"),
            category="tutorial",
            official=True,
            updated_at=FIXED_NOW - timedelta(days=5),
        ),
        DocPage(
            url="https://docs.example.com/python/typing",
            title="Typing Reference",
            content="Reference for the typing module: generics, protocols and type aliases.",
            tags=("python", "typing"),
            category="reference",
            official=True,
            updated_at=FIXED_NOW - timedelta(days=400),
        ),
        DocPage(
            url="https://blog.example.com/docker-deploy",
            title="Deploying Python Apps with Docker",
            content="A guide to packaging python services into docker images and deploying them.",
            tags=("docker", "deployment", "python"),
            category="guide",
            official=False,
            updated_at=FIXED_NOW - timedelta(days=60),
        ),
        DocPage(
            url="https://docs.example.com/kubernetes/overview",
            title="Kubernetes Overview",
            content="Kubernetes orchestrates containers across a cluster of machines.",
            tags=("kubernetes", "containers"),
            category="reference",
            official=True,
        ),
    ]
