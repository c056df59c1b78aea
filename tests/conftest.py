"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from stepcache.client.broadcast import InProcessBroadcastHub  # noqa: E402
from stepcache.client.cache_manager import ClientCacheManager  # noqa: E402
from stepcache.client.platform import StoragePlatform  # noqa: E402
from stepcache.client.storage import InMemoryDurableStore  # noqa: E402
from stepcache.core.config.settings import Settings  # noqa: E402
from tests.test_fixtures.clock import FakeClock  # noqa: E402
from tests.test_fixtures.fetchers import RecordingReporter  # noqa: E402


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """
    Real settings with the documented defaults and test-friendly values.

    Constructed directly so neither the environment nor a .env file can
    change the numbers the tests rely on.
    """
    return Settings(
        CLIENT_CACHE_DURATION_MS=300_000,
        CLIENT_STALE_DURATION_MS=60_000,
        CLIENT_CACHE_SCHEMA_VERSION="1.0.0",
        SERVER_CACHE_TIMEOUT_MS=3000,
        SERVER_CACHE_REVALIDATE_SECONDS=3600,
        CB_FAILURE_THRESHOLD=5,
        CB_COOLDOWN_MS=30_000,
        ENVIRONMENT="development",
        REVALIDATION_TOKEN="test-token",
    )


@pytest.fixture
def clock():
    """Controllable epoch-ms clock starting at t=0."""
    return FakeClock(start_ms=0)


@pytest.fixture
def reporter():
    return RecordingReporter()


# ============================================================================
# Client Cache Fixtures
# ============================================================================


@pytest.fixture
def durable_store():
    """Durable store shared by every simulated context of one origin."""
    return InMemoryDurableStore()


@pytest.fixture
def hub():
    """Broadcast hub shared by every simulated context of one origin."""
    return InProcessBroadcastHub()


@pytest.fixture
def make_context(settings, clock, durable_store, hub):
    """
    Factory for simulated client contexts (tabs) sharing one origin.

    Each call returns a manager with its own memory and session tiers and
    the shared durable store and broadcast hub.
    """
    managers = []

    def factory(**platform_overrides) -> ClientCacheManager:
        platform = StoragePlatform.in_memory(durable_store=durable_store, hub=hub)
        for name, value in platform_overrides.items():
            setattr(platform, name, value)
        manager = ClientCacheManager(platform, clock=clock, settings=settings)
        managers.append(manager)
        return manager

    yield factory


@pytest.fixture
def cache_manager(make_context):
    return make_context()
