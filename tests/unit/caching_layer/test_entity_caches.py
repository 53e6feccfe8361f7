"""
Unit Tests for the Homepage, Town and Person Caches

Exercises each entity cache against FakeDirectory: page data shape, image
URLs, tier transitions and invalidation.
"""

from unittest.mock import AsyncMock

import pytest

from directory_cache.caching import CacheOptions, HomepageCache, PersonCache, TownCache
from directory_cache.core.config.constants import CacheTier
from directory_cache.core.exceptions import CacheKeyError


@pytest.mark.unit
class TestPersonCache:
    @pytest.mark.asyncio
    async def test_database_then_memory(self, manager, fake_directory):
        cache = PersonCache(manager, fake_directory)

        first = await cache.get_cached_person_data("mendocino", "jane-doe")
        second = await cache.get_cached_person_data("mendocino", "jane-doe")

        assert first.source == CacheTier.DATABASE
        assert first.latency > 0
        assert second.source == CacheTier.MEMORY
        assert second.latency < first.latency
        assert second.data == first.data
        assert fake_directory.calls["person"] == 1

    @pytest.mark.asyncio
    async def test_page_data_shape(self, manager, fake_directory):
        cache = PersonCache(manager, fake_directory)

        data = (await cache.get_cached_person_data("mendocino", "jane-doe")).data
        person = data["person"]

        assert person["first_name"] == "Jane"
        assert person["created_at"] == "2024-03-01T12:30:45.123Z"
        assert person["date_of_birth"] == "1990-05-17"
        assert person["bond_amount"] == "15000.00"
        assert person["town"]["slug"] == "mendocino"
        assert person["town"]["theme"] == {"id": "theme-1", "name": "ocean"}
        assert [image["image_url"] for image in person["images"]] == [
            "/api/images/img-1",
            "/api/images/img-2",
        ]
        assert person["images"][0]["image_type"] == "primary"
        assert person["detention_center"]["image_url"] == "/api/images/img-dc"
        assert person["comments"][0]["approved_at"] == "2024-06-15T08:00:00.000Z"
        assert person["stories"][0]["language"] == "en"
        assert person["history"][0]["created_by_username"] == "admin"
        assert data["system_defaults"]["layout"]["name"] == "standard"
        assert data["support_map_metadata"] == {
            "has_ip_addresses": True,
            "message_location_count": 4,
            "support_location_count": 9,
        }

    @pytest.mark.asyncio
    async def test_same_data_from_every_tier(self, redis_manager, fake_directory):
        """Dates and decimals must look the same whichever tier served them."""
        cache = PersonCache(redis_manager, fake_directory)

        fresh = await cache.get_cached_person_data("mendocino", "jane-doe")
        await redis_manager.drain()
        from_memory = await cache.get_cached_person_data("mendocino", "jane-doe")
        redis_manager.clear_memory()
        from_redis = await cache.get_cached_person_data("mendocino", "jane-doe")

        assert [fresh.source, from_memory.source, from_redis.source] == [
            CacheTier.DATABASE,
            CacheTier.MEMORY,
            CacheTier.DISTRIBUTED,
        ]
        assert fresh.data == from_memory.data == from_redis.data

    @pytest.mark.asyncio
    async def test_unknown_person_is_none(self, manager, fake_directory):
        cache = PersonCache(manager, fake_directory)

        result = await cache.get_cached_person_data("mendocino", "nobody")

        assert result.data is None
        assert result.source == CacheTier.DATABASE

    @pytest.mark.asyncio
    async def test_invalidate_forces_reload(self, manager, fake_directory):
        cache = PersonCache(manager, fake_directory)
        await cache.get_cached_person_data("mendocino", "jane-doe")

        invalidation = await cache.invalidate_person_cache("mendocino", "jane-doe")
        result = await cache.get_cached_person_data("mendocino", "jane-doe")

        assert invalidation.key == "person:mendocino/jane-doe"
        assert invalidation.memory is True
        assert result.source == CacheTier.DATABASE
        assert fake_directory.calls["person"] == 2

    @pytest.mark.asyncio
    async def test_force_refresh_reloads(self, manager, fake_directory):
        cache = PersonCache(manager, fake_directory)
        await cache.get_cached_person_data("mendocino", "jane-doe")

        result = await cache.get_cached_person_data(
            "mendocino", "jane-doe", CacheOptions(force_refresh=True)
        )

        assert result.source == CacheTier.DATABASE
        assert fake_directory.calls["person"] == 2

    @pytest.mark.asyncio
    async def test_empty_slug_rejected(self, manager, fake_directory):
        cache = PersonCache(manager, fake_directory)

        with pytest.raises(CacheKeyError):
            await cache.get_cached_person_data("mendocino", " ")
        assert fake_directory.calls["person"] == 0

    @pytest.mark.asyncio
    async def test_database_failure_propagates(self, manager, fake_directory):
        fake_directory.error = RuntimeError("connection pool exhausted")
        cache = PersonCache(manager, fake_directory)

        with pytest.raises(RuntimeError):
            await cache.get_cached_person_data("mendocino", "jane-doe")

    @pytest.mark.asyncio
    async def test_support_map_failure_zeroes_metadata(self, manager, fake_directory):
        fake_directory.fetch_support_map_metadata = AsyncMock(side_effect=RuntimeError("geo"))
        cache = PersonCache(manager, fake_directory)

        result = await cache.get_cached_person_data("mendocino", "jane-doe")

        assert result.source == CacheTier.DATABASE
        assert result.data["person"]["slug"] == "jane-doe"
        assert result.data["support_map_metadata"] == {
            "has_ip_addresses": False,
            "message_location_count": 0,
            "support_location_count": 0,
        }


@pytest.mark.unit
class TestTownCache:
    @pytest.mark.asyncio
    async def test_town_page(self, manager, fake_directory):
        cache = TownCache(manager, fake_directory)

        result = await cache.get_cached_town_data("mendocino")
        persons = result.data["persons"]

        assert result.source == CacheTier.DATABASE
        assert result.data["layout"] == {"id": "layout-1", "name": "grid"}
        assert result.data["theme"] is None
        assert persons[0]["comment_count"] == 3
        assert persons[0]["image_url"] == "/api/images/img-1"
        assert persons[0]["detention_center"]["city"] == "McFarland"
        assert persons[1]["image_url"] is None
        assert manager.get_memory_cache().keys() == ["town:mendocino"]

    @pytest.mark.asyncio
    async def test_second_read_from_memory(self, manager, fake_directory):
        cache = TownCache(manager, fake_directory)
        await cache.get_cached_town_data("mendocino")

        result = await cache.get_cached_town_data("mendocino")

        assert result.source == CacheTier.MEMORY
        assert fake_directory.calls["town"] == 1

    @pytest.mark.asyncio
    async def test_unknown_town(self, manager, fake_directory):
        result = await TownCache(manager, fake_directory).get_cached_town_data("atlantis")
        assert result.data is None

    @pytest.mark.asyncio
    async def test_invalidate(self, manager, fake_directory):
        cache = TownCache(manager, fake_directory)
        await cache.get_cached_town_data("mendocino")

        invalidation = await cache.invalidate_town_cache("mendocino")

        assert invalidation.key == "town:mendocino"
        assert manager.get_memory_cache().keys() == []


@pytest.mark.unit
class TestHomepageCache:
    @pytest.mark.asyncio
    async def test_homepage(self, manager, fake_directory):
        cache = HomepageCache(manager, fake_directory)

        data = (await cache.get_cached_homepage_data()).data

        assert data["total_detained"] == 2
        assert [t["slug"] for t in data["towns"]] == ["mendocino", "fort-bragg"]
        recent = data["recent_persons"][0]
        assert recent["image_url"] == "/api/images/img-1?w=300&h=300&q=80"
        assert recent["town"] == {"name": "Mendocino", "slug": "mendocino", "state": "CA"}
        assert recent["last_seen_date"] == "2024-03-01T12:30:45.123Z"

    @pytest.mark.asyncio
    async def test_invalidate_and_reload(self, manager, fake_directory):
        cache = HomepageCache(manager, fake_directory)
        await cache.get_cached_homepage_data()
        assert (await cache.get_cached_homepage_data()).source == CacheTier.MEMORY

        await cache.invalidate_homepage_cache()

        assert (await cache.get_cached_homepage_data()).source == CacheTier.DATABASE
        assert fake_directory.calls["homepage"] == 2
