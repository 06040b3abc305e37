"""Conftest for unit tests - automatically mark all tests as unit tests."""

import pytest

from search_pipeline.search.metrics import get_metrics_collector


def pytest_collection_modifyitems(config, items):
    """Automatically mark all tests in the unit directory as unit tests."""
    for item in items:
        # Add unit marker to all tests in the unit directory
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def reset_metrics_collector():
    """Start every test with an empty global search metrics window."""
    get_metrics_collector().reset()
    yield
    get_metrics_collector().reset()
