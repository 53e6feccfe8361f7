"""
Integration Tests against a real Redis

Run with a local server:

    USE_REAL_REDIS=1 REDIS_HOST=localhost pytest -m integration
"""

import os

import pytest
import pytest_asyncio

from directory_cache.caching import PersonCache
from directory_cache.core.config.constants import CacheTier
from directory_cache.infrastructure.cache.cache_manager import CacheManager
from tests.test_fixtures import FakeDirectory, make_settings


@pytest_asyncio.fixture
async def real_redis_manager(use_real_redis):
    if not use_real_redis:
        pytest.skip("USE_REAL_REDIS not set")

    settings = make_settings(
        CACHE_REDIS_ENABLE=True,
        REDIS_HOST=os.getenv("REDIS_HOST", "localhost"),
        REDIS_KEY_PREFIX="directory-cache-test",
        CACHE_REDIS_TIMEOUT_MS=500,
    )
    manager = CacheManager(settings)
    await manager.initialize()
    await manager.clear_distributed()
    yield manager
    await manager.clear_distributed()
    await manager.shutdown()


@pytest.mark.integration
class TestRealRedis:
    @pytest.mark.asyncio
    async def test_person_page_round_trip(self, real_redis_manager):
        directory = FakeDirectory()
        cache = PersonCache(real_redis_manager, directory)

        fresh = await cache.get_cached_person_data("mendocino", "jane-doe")
        await real_redis_manager.drain()
        real_redis_manager.clear_memory()
        cached = await cache.get_cached_person_data("mendocino", "jane-doe")

        assert fresh.source == CacheTier.DATABASE
        assert cached.source == CacheTier.DISTRIBUTED
        assert cached.data == fresh.data

    @pytest.mark.asyncio
    async def test_clear_only_touches_namespace(self, real_redis_manager):
        redis_cache = await real_redis_manager.get_redis_cache()
        await redis_cache.set("homepage", {"towns": []})

        assert await real_redis_manager.clear_distributed() == 1
        assert await redis_cache.get("homepage") is None
