"""
Town page cache.

Key: `town:{town_slug}`. The page carries the town, its layout and theme
references, and its detained persons (newest first) with comment counts and
a primary image URL.
"""

from typing import Any

from directory_cache.caching.images import image_url
from directory_cache.caching.keys import town_key
from directory_cache.caching.read_through import (
    CacheOptions,
    CacheResult,
    Invalidation,
    ReadThroughCache,
)
from directory_cache.data.models import TownPerson, TownRow
from directory_cache.data.source import DirectoryDataSource
from directory_cache.infrastructure.cache.cache_manager import CacheManager


def _serialize_town_person(person: TownPerson) -> dict[str, Any]:
    return {
        "id": person.id,
        "first_name": person.first_name,
        "last_name": person.last_name,
        "slug": person.slug,
        "last_seen_date": person.last_seen_date,
        "date_of_birth": person.date_of_birth,
        "story": person.story,
        "created_at": person.created_at,
        "detention_center": person.detention_center,
        "comment_count": person.comment_count,
        "image_url": image_url(person.primary_image) if person.primary_image else None,
    }


def serialize_town(row: TownRow) -> dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "slug": row.slug,
        "state": row.state,
        "layout": row.layout,
        "theme": row.theme,
        "persons": [_serialize_town_person(p) for p in row.persons],
    }


class TownCache:
    """Read-through access to town page data."""

    def __init__(self, manager: CacheManager, source: DirectoryDataSource):
        self._chain = ReadThroughCache(manager)
        self._source = source

    async def get_cached_town_data(
        self, town_slug: str, options: CacheOptions | None = None
    ) -> CacheResult:
        """
        Returns:
            CacheResult whose data is None when the town does not exist or
            is inactive (the route turns that into a 404)
        """

        async def load() -> dict[str, Any] | None:
            row = await self._source.fetch_town(town_slug)
            return serialize_town(row) if row is not None else None

        return await self._chain.fetch(town_key(town_slug), load, options)

    async def invalidate_town_cache(self, town_slug: str) -> Invalidation:
        return await self._chain.invalidate(town_key(town_slug))
