"""
FastAPI Dependency Injection Module

Route handlers never reach for module-level singletons. `create_app` builds
the CacheManager and the entity caches once and stores them on `app.state`;
the providers below hand them to handlers through `Depends()`.

Example:
    @router.get("/homepage")
    async def homepage(cache: HomepageCacheDep):
        result = await cache.get_cached_homepage_data()
"""

from typing import Annotated

from fastapi import Depends, Request

from directory_cache.caching import HomepageCache, PersonCache, TownCache
from directory_cache.core.config.settings import Settings
from directory_cache.infrastructure.cache.cache_manager import CacheManager


def get_app_settings(request: Request) -> Settings:
    """Settings the application was built with (not re-read from the environment)."""
    return request.app.state.settings


def get_cache_manager(request: Request) -> CacheManager:
    return request.app.state.cache_manager


def get_homepage_cache(request: Request) -> HomepageCache:
    return request.app.state.homepage_cache


def get_town_cache(request: Request) -> TownCache:
    return request.app.state.town_cache


def get_person_cache(request: Request) -> PersonCache:
    return request.app.state.person_cache


# ============================================================================
# TYPE ALIASES FOR CLEANER ROUTE SIGNATURES
# ============================================================================

SettingsDep = Annotated[Settings, Depends(get_app_settings)]
CacheManagerDep = Annotated[CacheManager, Depends(get_cache_manager)]
HomepageCacheDep = Annotated[HomepageCache, Depends(get_homepage_cache)]
TownCacheDep = Annotated[TownCache, Depends(get_town_cache)]
PersonCacheDep = Annotated[PersonCache, Depends(get_person_cache)]
