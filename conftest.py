"""Project-wide pytest fixtures."""

import pytest
from common.events import InMemoryEventPublisher
from django.core.cache import cache


@pytest.fixture(autouse=True)
def published_events():
    """Events published during a test, reset before and after it."""
    InMemoryEventPublisher.clear()
    yield InMemoryEventPublisher.events
    InMemoryEventPublisher.clear()


@pytest.fixture(autouse=True)
def _clear_cache():
    # Throttle counters live in the cache
    cache.clear()
    yield
