"""
Shared pytest fixtures for storer tests.

This module provides:
- An in-memory OpenTelemetry exporter/provider pair for span assertions
- A mongomock client shared between a test and the adapter under test
- Settings and structlog resets for test isolation

Usage:
    def test_something(pooled_storer, span_exporter):
        pooled_storer.count("users", {})
        assert span_exporter.get_finished_spans()[0].name == "storer.count"
"""

import sys
from pathlib import Path
from typing import Generator

import mongomock
import pytest
import structlog
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

# Ensure storer package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from storer.adapters.pooled import PooledMongoStorer
from storer.settings import reset_settings

TEST_URI = "mongodb://localhost:27017/storer_test"


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests that carry no explicit marker as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_fixture() -> Generator[None, None, None]:
    """Drop cached settings before and after each test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def clean_structlog_fixture() -> Generator[None, None, None]:
    """Undo ``configure_logging()`` and bound context after each test."""
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


# =============================================================================
# Tracing Fixtures
# =============================================================================


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter: InMemorySpanExporter) -> TracerProvider:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider


# =============================================================================
# MongoDB Fixtures
# =============================================================================


@pytest.fixture
def mongo_client() -> mongomock.MongoClient:
    return mongomock.MongoClient()


@pytest.fixture
def mongo_db(mongo_client: mongomock.MongoClient):
    """The database ``pooled_storer`` talks to, for seeding and inspection."""
    return mongo_client["storer_test"]


@pytest.fixture
def pooled_storer(
    mongo_client: mongomock.MongoClient, tracer_provider: TracerProvider
) -> Generator[PooledMongoStorer, None, None]:
    storer = PooledMongoStorer(
        TEST_URI,
        client_factory=lambda uri, **kwargs: mongo_client,
        tracer_provider=tracer_provider,
    )
    yield storer
    storer.close()
