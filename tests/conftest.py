"""Pytest configuration and fixtures for the test suite."""

import pytest

from llmanki.infrastructure.cache import AnalysisCache, InMemoryStore
from llmanki.providers import LLMConfig
from tests.fixtures import MockProvider, make_collection


@pytest.fixture
def collection():
    """Provide a three-card basic deck named Biology."""
    return make_collection(3)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    """Provide a controllable clock (seconds)."""

    class _Clock:
        now = 1_700_000_000.0

        def __call__(self) -> float:
            return self.now

    return _Clock()


@pytest.fixture
def analysis_cache(store, clock):
    """Provide an analysis cache over an in-memory store."""
    return AnalysisCache(store, clock=clock)


@pytest.fixture
def llm_config():
    return LLMConfig(provider_id="groq", model="llama-3.3-70b-versatile", api_key="test-key")


@pytest.fixture
def mock_provider():
    """Provide a scripted provider caller."""
    return MockProvider()
