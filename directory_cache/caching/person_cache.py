"""
Person page cache.

Key: `person:{town_slug}/{person_slug}`. The page data is

    {
        "person": {...every public field, town, layout, theme,
                   detention_center, images, comments, stories, history},
        "system_defaults": {"layout": ..., "theme": ...},
        "support_map_metadata": {"has_ip_addresses": ..., ...},
    }

Dates inside it reach the caller as ISO-8601 UTC strings whichever tier
served the page.
"""

import asyncio
from dataclasses import fields
from typing import Any

from directory_cache.caching.images import image_url
from directory_cache.caching.keys import person_key
from directory_cache.caching.read_through import (
    CacheOptions,
    CacheResult,
    Invalidation,
    ReadThroughCache,
)
from directory_cache.core.config.constants import Stage
from directory_cache.core.logging import get_logger, log_stage
from directory_cache.data.models import (
    DetentionCenter,
    PersonImage,
    PersonRow,
    SupportMapMetadata,
)
from directory_cache.data.source import DirectoryDataSource
from directory_cache.infrastructure.cache.cache_manager import CacheManager

logger = get_logger(__name__)

# Relations serialized explicitly below; every other PersonRow field is copied
_PERSON_RELATIONS = frozenset({"detention_center", "images"})


def _serialize_image(person_image: PersonImage) -> dict[str, Any]:
    image = person_image.image
    return {
        "id": image.id,
        "image_type": person_image.image_type,
        "sequence_number": person_image.sequence_number,
        "caption": image.caption,
        "mime_type": image.mime_type,
        "size": image.size,
        "width": image.width,
        "height": image.height,
        "created_at": image.created_at,
        "updated_at": image.updated_at,
        "image_url": image_url(image),
    }


def _serialize_detention_center(center: DetentionCenter) -> dict[str, Any]:
    return {
        "id": center.id,
        "name": center.name,
        "city": center.city,
        "state": center.state,
        "facility_type": center.facility_type,
        "address": center.address,
        "phone": center.phone,
        "created_at": center.created_at,
        "updated_at": center.updated_at,
        "image_url": image_url(center.image) if center.image else None,
    }


def serialize_person(row: PersonRow) -> dict[str, Any]:
    person = {f.name: getattr(row, f.name) for f in fields(row) if f.name not in _PERSON_RELATIONS}
    person["detention_center"] = (
        _serialize_detention_center(row.detention_center) if row.detention_center else None
    )
    person["images"] = [_serialize_image(pi) for pi in row.images]
    return person


class PersonCache:
    """Read-through access to person page data."""

    def __init__(self, manager: CacheManager, source: DirectoryDataSource):
        self._chain = ReadThroughCache(manager)
        self._source = source

    async def get_cached_person_data(
        self, town_slug: str, person_slug: str, options: CacheOptions | None = None
    ) -> CacheResult:
        """
        Read one person page.

        Returns:
            CacheResult whose data is None when no active person matches the
            slugs in an active town
        """
        return await self._chain.fetch(
            person_key(town_slug, person_slug),
            lambda: self._load(town_slug, person_slug),
            options,
        )

    async def invalidate_person_cache(self, town_slug: str, person_slug: str) -> Invalidation:
        return await self._chain.invalidate(person_key(town_slug, person_slug))

    async def _load(self, town_slug: str, person_slug: str) -> dict[str, Any] | None:
        row = await self._source.fetch_person(town_slug, person_slug)
        if row is None:
            return None

        system_defaults, support_map_metadata = await asyncio.gather(
            self._source.fetch_system_defaults(),
            self._support_map_metadata(row.id),
        )
        return {
            "person": serialize_person(row),
            "system_defaults": system_defaults,
            "support_map_metadata": support_map_metadata,
        }

    async def _support_map_metadata(self, person_id: str) -> SupportMapMetadata:
        """Metadata for the support map, zeroed when the lookup fails."""
        try:
            return await self._source.fetch_support_map_metadata(person_id)
        except Exception as e:
            log_stage(logger, Stage.DATABASE_FETCH, "Support map metadata unavailable",
                      level="warning", person_id=person_id, error=str(e),
                      error_type=type(e).__name__)
            return SupportMapMetadata()
