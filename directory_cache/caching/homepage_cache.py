"""
Homepage cache.

Key: `homepage` (singleton). The page lists active towns with their detained
counts, the six most recent detained persons with a thumbnail URL, and the
total detained count.
"""

from typing import Any

from directory_cache.caching.images import image_url
from directory_cache.caching.keys import homepage_key
from directory_cache.caching.read_through import (
    CacheOptions,
    CacheResult,
    Invalidation,
    ReadThroughCache,
)
from directory_cache.core.config.constants import HOMEPAGE_THUMBNAIL
from directory_cache.data.models import HomepageRow, RecentPerson
from directory_cache.data.source import DirectoryDataSource
from directory_cache.infrastructure.cache.cache_manager import CacheManager


def _serialize_recent_person(person: RecentPerson) -> dict[str, Any]:
    return {
        "id": person.id,
        "first_name": person.first_name,
        "last_name": person.last_name,
        "slug": person.slug,
        "last_seen_date": person.last_seen_date,
        "town": person.town,
        "image_url": (
            image_url(person.primary_image, **HOMEPAGE_THUMBNAIL)
            if person.primary_image
            else None
        ),
    }


def serialize_homepage(row: HomepageRow) -> dict[str, Any]:
    return {
        "towns": [
            {
                "id": town.id,
                "name": town.name,
                "slug": town.slug,
                "state": town.state,
                "detained_count": town.detained_count,
            }
            for town in row.towns
        ],
        "recent_persons": [_serialize_recent_person(p) for p in row.recent_persons],
        "total_detained": row.total_detained,
    }


class HomepageCache:
    """Read-through access to the homepage data."""

    def __init__(self, manager: CacheManager, source: DirectoryDataSource):
        self._chain = ReadThroughCache(manager)
        self._source = source

    async def get_cached_homepage_data(self, options: CacheOptions | None = None) -> CacheResult:
        return await self._chain.fetch(homepage_key(), self._load, options)

    async def invalidate_homepage_cache(self) -> Invalidation:
        return await self._chain.invalidate(homepage_key())

    async def _load(self) -> dict[str, Any]:
        return serialize_homepage(await self._source.fetch_homepage())
