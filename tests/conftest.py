"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os

import pytest
import pytest_asyncio

from directory_cache.core.config.settings import Settings
from directory_cache.infrastructure.cache.cache_manager import CacheManager
from tests.test_fixtures import (
    FakeClock,
    FakeDirectory,
    InMemoryKeyValueClient,
    client_factory,
    make_settings,
)

# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode (pyproject.toml), so async tests and
# fixtures need no extra decoration.


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    """Memory tier on, Redis tier off."""
    return make_settings()


@pytest.fixture
def redis_settings() -> Settings:
    """Both tiers on, with a Redis host configured."""
    return make_settings(CACHE_REDIS_ENABLE=True, REDIS_HOST="localhost")


# ============================================================================
# Environment-Based Integration Toggles
# ============================================================================


@pytest.fixture(scope="session")
def use_real_redis():
    """Check if real Redis should be used for integration tests."""
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_directory() -> FakeDirectory:
    """Directory with a small per-fetch delay so database reads are measurable."""
    return FakeDirectory(delay=0.02)


@pytest.fixture
def kv_client() -> InMemoryKeyValueClient:
    return InMemoryKeyValueClient()


# ============================================================================
# Cache Manager Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def manager(settings):
    """Memory-only cache manager."""
    cache_manager = CacheManager(settings)
    await cache_manager.initialize()
    yield cache_manager
    await cache_manager.shutdown()


@pytest_asyncio.fixture
async def redis_manager(redis_settings, kv_client):
    """Memory + distributed cache manager over an in-memory key-value client."""
    cache_manager = CacheManager(redis_settings, redis_client_factory=client_factory(kv_client))
    await cache_manager.initialize()
    yield cache_manager
    await cache_manager.shutdown()
