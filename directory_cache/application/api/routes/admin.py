"""
Admin Cache Routes

Operational endpoints for the cache tiers:

- POST   /admin/cache/clear/memory              drop every memory entry
- POST   /admin/cache/clear/redis               delete every key in the Redis namespace
- GET    /admin/cache/stats                     hit/miss/size/query counters
- POST   /admin/cache/stats/reset               zero the counters
- GET    /admin/cache/config                    effective cache configuration
- DELETE /admin/cache/homepage                  invalidate the homepage
- DELETE /admin/cache/towns/{town}              invalidate one town page
- DELETE /admin/cache/persons/{town}/{person}   invalidate one person page

A disabled or unreachable Redis tier is reported in the response body, never
as an error.
"""

import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, status

from directory_cache.application.api.dependencies import (
    CacheManagerDep,
    HomepageCacheDep,
    PersonCacheDep,
    SettingsDep,
    TownCacheDep,
)
from directory_cache.application.api.models.admin import (
    CacheActionResponse,
    CacheConfigResponse,
    CacheStatsResponse,
    InvalidationResponse,
)
from directory_cache.caching import Invalidation
from directory_cache.core.config.constants import HEADER_ADMIN_TOKEN, Stage
from directory_cache.core.logging import get_logger, log_stage

logger = get_logger(__name__)


# ============================================================================
# AUTHENTICATION
# ============================================================================


async def verify_admin_access(
    settings: SettingsDep,
    admin_token: str | None = Header(default=None, alias=HEADER_ADMIN_TOKEN),
) -> None:
    """
    Check the admin token when CACHE_ADMIN_TOKEN is configured.

    With no token configured the endpoints are open; deploy them on an
    internal interface in that case.
    """
    expected = settings.CACHE_ADMIN_TOKEN
    if not expected:
        return
    if admin_token is None or not secrets.compare_digest(
        admin_token.encode(), expected.encode()
    ):
        log_stage(logger, Stage.CACHE_ADMIN, "Rejected admin cache request", level="warning")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")


router = APIRouter(
    prefix="/admin/cache",
    tags=["Admin"],
    dependencies=[Depends(verify_admin_access)],
)


def _invalidation_response(result: Invalidation) -> InvalidationResponse:
    return InvalidationResponse(
        key=result.key, memory=result.memory, distributed=result.distributed
    )


# ============================================================================
# TIER CLEARING
# ============================================================================


@router.post("/clear/memory", response_model=CacheActionResponse)
async def clear_memory_cache(manager: CacheManagerDep):
    if not manager.get_memory_cache().enabled:
        return CacheActionResponse(
            message="Memory cache is not enabled", available=False, entries_removed=0
        )
    removed = manager.clear_memory()
    return CacheActionResponse(
        message="Memory cache cleared successfully", entries_removed=removed
    )


@router.post("/clear/redis", response_model=CacheActionResponse)
async def clear_redis_cache(manager: CacheManagerDep):
    """Delete every key under the configured namespace (never FLUSHDB)."""
    removed = await manager.clear_distributed()
    if removed is None:
        return CacheActionResponse(
            message="Redis cache is not enabled or not available", available=False
        )
    return CacheActionResponse(message="Redis cache cleared successfully", entries_removed=removed)


# ============================================================================
# STATISTICS & CONFIG
# ============================================================================


@router.get("/stats", response_model=CacheStatsResponse)
async def get_cache_stats(manager: CacheManagerDep):
    return CacheStatsResponse(stats=manager.stats.get_stats())


@router.post("/stats/reset", response_model=CacheActionResponse)
async def reset_cache_stats(manager: CacheManagerDep):
    manager.stats.reset()
    log_stage(logger, Stage.CACHE_ADMIN, "Cache statistics reset")
    return CacheActionResponse(message="Cache statistics reset successfully")


@router.get("/config", response_model=CacheConfigResponse)
async def get_cache_config(manager: CacheManagerDep):
    redis_cache = await manager.get_redis_cache()
    redis_health = await redis_cache.health_check() if redis_cache is not None else None
    return CacheConfigResponse(config=manager.config_summary(), redis_health=redis_health)


# ============================================================================
# KEY INVALIDATION
# ============================================================================


@router.delete("/homepage", response_model=InvalidationResponse)
async def invalidate_homepage(cache: HomepageCacheDep):
    return _invalidation_response(await cache.invalidate_homepage_cache())


@router.delete("/towns/{town_slug}", response_model=InvalidationResponse)
async def invalidate_town(town_slug: str, cache: TownCacheDep):
    return _invalidation_response(await cache.invalidate_town_cache(town_slug))


@router.delete("/persons/{town_slug}/{person_slug}", response_model=InvalidationResponse)
async def invalidate_person(town_slug: str, person_slug: str, cache: PersonCacheDep):
    return _invalidation_response(await cache.invalidate_person_cache(town_slug, person_slug))
