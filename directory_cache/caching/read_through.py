"""
Read-Through Cache Chain

The single implementation of the tier walk every entity cache uses:

    1. force_refresh?            → go to 4
    2. memory hit?               → return (source=memory)
    3. distributed hit?          → promote into memory, return (source=distributed)
    4. database                  → None is returned uncached
    5. normalize, store in memory (synchronously), schedule the Redis write,
       return (source=database)

Misses at 2 and 3 are recorded before falling through, and every database
trip is counted. Latency is measured end to end with perf_counter.

Failure handling:
- Redis problems never surface (RedisCache turns them into misses)
- A value with no cache-safe form is returned fresh and not cached
- Database exceptions propagate unchanged
"""

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from directory_cache.core.config.constants import CacheTier, Stage
from directory_cache.core.exceptions import CacheSerializationError
from directory_cache.core.logging import get_logger, log_stage
from directory_cache.infrastructure.cache.cache_manager import CacheManager
from directory_cache.infrastructure.cache.serialization import to_cache_safe

logger = get_logger(__name__)

T = TypeVar("T")

Loader = Callable[[], Awaitable[Any | None]]


class CacheOptions(BaseModel):
    """Per-call knobs for a cached read."""

    model_config = ConfigDict(frozen=True)

    force_refresh: bool = Field(default=False, description="Skip both cache tiers")
    ttl: int | None = Field(
        default=None, ge=1, description="TTL override (seconds) for the tiers this call populates"
    )


class CacheResult(BaseModel, Generic[T]):
    """
    What a cached read hands back to the HTTP layer.

    `source` and `latency` are exactly what the route needs for the
    X-Cache-Source and X-Cache-Latency headers.
    """

    model_config = ConfigDict(frozen=True)

    data: T | None = Field(..., description="Page data, None when the database has no row")
    source: CacheTier = Field(..., description="Tier that produced the data")
    latency: float = Field(..., ge=0, description="End-to-end latency in milliseconds")


@dataclass(frozen=True)
class Invalidation:
    """Outcome of dropping one key from both tiers."""

    key: str
    memory: bool
    distributed: bool | None  # None when the tier is absent


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class ReadThroughCache:
    """
    Tier walk shared by the homepage, town and person caches.

    Usage:
        chain = ReadThroughCache(manager)
        result = await chain.fetch("homepage", load_homepage)
        result.source  # CacheTier.DATABASE on the first call
    """

    def __init__(self, manager: CacheManager):
        self._manager = manager

    @property
    def manager(self) -> CacheManager:
        return self._manager

    async def fetch(
        self, key: str, loader: Loader, options: CacheOptions | None = None
    ) -> CacheResult:
        """
        Read `key` through memory → distributed → database.

        Args:
            key: Logical cache key (see caching.keys)
            loader: Awaitable producing the page data, or None when not found
            options: force_refresh / ttl override

        Returns:
            CacheResult with data, source and latency

        Raises:
            Whatever `loader` raises (database failures are not recovered)
        """
        options = options or CacheOptions()
        started = time.perf_counter()

        if not options.force_refresh:
            cached = self._from_memory(key)
            if cached is not None:
                return CacheResult(data=cached, source=CacheTier.MEMORY, latency=_elapsed_ms(started))

            cached = await self._from_distributed(key, options.ttl)
            if cached is not None:
                return CacheResult(
                    data=cached, source=CacheTier.DISTRIBUTED, latency=_elapsed_ms(started)
                )

        return await self._from_database(key, loader, options, started)

    async def invalidate(self, key: str) -> Invalidation:
        """Delete `key` from memory and (awaited) from Redis."""
        memory_deleted = self._manager.get_memory_cache().delete(key)

        redis_cache = await self._manager.get_redis_cache()
        redis_deleted = await redis_cache.delete(key) if redis_cache is not None else None

        log_stage(logger, Stage.CACHE_INVALIDATE, "Cache key invalidated", cache_key=key,
                  memory=memory_deleted, distributed=redis_deleted)
        return Invalidation(key=key, memory=memory_deleted, distributed=redis_deleted)

    # -------------------------------------------------------------------------
    # Tier steps
    # -------------------------------------------------------------------------

    def _from_memory(self, key: str) -> Any | None:
        memory = self._manager.get_memory_cache()
        if not memory.enabled:
            return None

        value = memory.get(key)
        if value is None:
            self._manager.stats.record_miss(CacheTier.MEMORY, key)
            return None

        info = memory.entry_info(key)
        if info is not None:
            self._manager.stats.record_hit(
                CacheTier.MEMORY,
                key,
                size_bytes=info.size_bytes,
                ttl=info.ttl,
                cached_at=info.cached_at,
                expires_at=info.expires_at,
            )
        else:
            self._manager.stats.record_hit(CacheTier.MEMORY, key)
        log_stage(logger, Stage.MEMORY_LOOKUP, "Memory cache hit", level="debug", cache_key=key)
        return value

    async def _from_distributed(self, key: str, ttl: int | None) -> Any | None:
        redis_cache = await self._manager.get_redis_cache()
        if redis_cache is None:
            return None

        entry = await redis_cache.get_sized(key)
        if entry is None:
            self._manager.stats.record_miss(CacheTier.DISTRIBUTED, key)
            return None

        value, size = entry
        # Redis does not report when the entry was written; assume a full TTL
        # from now, as the admin stats only use it as an indication.
        now = datetime.now(timezone.utc)
        self._manager.stats.record_hit(
            CacheTier.DISTRIBUTED,
            key,
            size_bytes=size,
            ttl=redis_cache.default_ttl,
            cached_at=now,
            expires_at=now + timedelta(seconds=redis_cache.default_ttl),
        )
        self._manager.get_memory_cache().set(key, value, ttl)
        log_stage(logger, Stage.DISTRIBUTED_LOOKUP, "Redis cache hit, promoted to memory",
                  level="debug", cache_key=key, size_bytes=size)
        return value

    async def _from_database(
        self, key: str, loader: Loader, options: CacheOptions, started: float
    ) -> CacheResult:
        self._manager.stats.record_database_query(key)
        log_stage(logger, Stage.DATABASE_FETCH, "Loading from database", level="debug",
                  cache_key=key, force_refresh=options.force_refresh)

        fresh = await loader()
        if fresh is None:
            return CacheResult(data=None, source=CacheTier.DATABASE, latency=_elapsed_ms(started))

        try:
            data = to_cache_safe(fresh)
        except CacheSerializationError as e:
            log_stage(logger, Stage.CACHE_POPULATE, "Value is not cache-safe, serving uncached",
                      level="error", cache_key=key, details=e.details)
            return CacheResult(data=fresh, source=CacheTier.DATABASE, latency=_elapsed_ms(started))

        await self._populate(key, data, options.ttl)
        return CacheResult(data=data, source=CacheTier.DATABASE, latency=_elapsed_ms(started))

    async def _populate(self, key: str, data: Any, ttl: int | None) -> None:
        """Memory write completes before returning; the Redis write runs in the background."""
        self._manager.get_memory_cache().set(key, data, ttl)

        redis_cache = await self._manager.get_redis_cache()
        if redis_cache is not None:
            self._manager.schedule_background(redis_cache.set(key, data, ttl), f"redis set {key}")
        log_stage(logger, Stage.CACHE_POPULATE, "Cache populated", level="debug", cache_key=key,
                  distributed=redis_cache is not None)
