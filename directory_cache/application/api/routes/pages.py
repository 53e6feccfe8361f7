"""
Public Page Data Routes

Each route reads one page through its entity cache and reports where the
data came from:

    X-Cache-Source:  memory | distributed | database
    X-Cache-Latency: end-to-end cache latency in milliseconds
    Cache-Control:   shared-cache directives (omitted on forced refreshes)

A request carrying `Cache-Control: no-cache` bypasses both cache tiers and
repopulates them from the database.
"""

from fastapi import APIRouter, HTTPException, Request, Response, status

from directory_cache.application.api.dependencies import (
    HomepageCacheDep,
    PersonCacheDep,
    TownCacheDep,
)
from directory_cache.caching import CacheOptions, CacheResult
from directory_cache.core.config.constants import (
    HEADER_CACHE_LATENCY,
    HEADER_CACHE_SOURCE,
    PAGE_CACHE_CONTROL,
)

router = APIRouter(tags=["Pages"])


def _options_from_request(request: Request) -> CacheOptions:
    force_refresh = request.headers.get("cache-control", "").lower() == "no-cache"
    return CacheOptions(force_refresh=force_refresh)


def _apply_cache_headers(response: Response, result: CacheResult, options: CacheOptions) -> None:
    response.headers[HEADER_CACHE_SOURCE] = result.source.value
    response.headers[HEADER_CACHE_LATENCY] = f"{result.latency:.2f}"
    if not options.force_refresh:
        response.headers["Cache-Control"] = PAGE_CACHE_CONTROL


@router.get("/homepage", status_code=status.HTTP_200_OK)
async def get_homepage(request: Request, response: Response, cache: HomepageCacheDep):
    options = _options_from_request(request)
    result = await cache.get_cached_homepage_data(options)
    _apply_cache_headers(response, result, options)
    return result.data


@router.get("/towns/{town_slug}", status_code=status.HTTP_200_OK)
async def get_town(town_slug: str, request: Request, response: Response, cache: TownCacheDep):
    options = _options_from_request(request)
    result = await cache.get_cached_town_data(town_slug, options)
    if result.data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Town not found")
    _apply_cache_headers(response, result, options)
    return result.data


@router.get("/persons/{town_slug}/{person_slug}", status_code=status.HTTP_200_OK)
async def get_person(
    town_slug: str,
    person_slug: str,
    request: Request,
    response: Response,
    cache: PersonCacheDep,
):
    """
    Person page data.

    404 when no active person matches the slugs in an active town.
    """
    options = _options_from_request(request)
    result = await cache.get_cached_person_data(town_slug, person_slug, options)
    if result.data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Person not found")
    _apply_cache_headers(response, result, options)
    return result.data
