#!/usr/bin/env python3
"""
Multi-Tier Cache Manager

Architecture:
    CacheManager (Public API, one per process)
        ├── MemoryCache / DisabledMemoryCache (in-process tier)
        ├── RedisCache (optional distributed tier, may be absent)
        ├── CacheStats (hit/miss/query counters)
        └── Background writes (fire-and-forget Redis population)

The manager is an explicit context object: the application builds exactly one
at startup from a Settings instance and hands it to whatever needs it
(app.state for the HTTP layer, constructor arguments for the entity caches).
Nothing below it reads the environment.

Performance Targets:
    - Memory hit: well under 1ms
    - Redis hit: 1-5ms
    - Redis failure: bounded by CACHE_REDIS_TIMEOUT_MS, then database
"""

import asyncio
import time
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from directory_cache.core.config.constants import Stage
from directory_cache.core.config.settings import RedisSettings, Settings
from directory_cache.core.exceptions import CacheConnectionError
from directory_cache.core.logging import get_logger, log_stage
from directory_cache.infrastructure.cache.cache_stats import CacheStats
from directory_cache.infrastructure.cache.distributed_cache import KeyValueClient, RedisCache
from directory_cache.infrastructure.cache.memory_cache import (
    DisabledMemoryCache,
    MemoryCache,
    SizeEstimator,
    default_size_estimator,
)
from directory_cache.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)


class ConnectableClient(KeyValueClient, Protocol):
    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...


RedisClientFactory = Callable[[RedisSettings, float], ConnectableClient]


class CacheManager:
    """
    Owns the lifecycle of both cache tiers and the stats counters.

    Usage:
        manager = CacheManager(get_settings())
        await manager.initialize()

        memory = manager.get_memory_cache()
        redis_cache = await manager.get_redis_cache()  # None when absent

        await manager.shutdown()
    """

    def __init__(
        self,
        settings: Settings,
        redis_client_factory: RedisClientFactory = RedisClient,
        size_estimator: SizeEstimator = default_size_estimator,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            settings: Configuration, read once here and never again
            redis_client_factory: Builds the Redis client (injectable for tests)
            size_estimator: Size function for the memory tier budget
            clock: Wall clock in seconds, shared by the memory tier and stats
        """
        self._settings = settings
        self._cache_settings = settings.cache
        self._redis_settings = settings.redis
        self._redis_client_factory = redis_client_factory
        self._size_estimator = size_estimator
        self._clock = clock

        self._stats = CacheStats(clock=clock)
        self._memory_cache: MemoryCache | DisabledMemoryCache | None = None

        self._redis_cache: RedisCache | None = None
        self._redis_client: ConnectableClient | None = None
        self._redis_lock: asyncio.Lock | None = None
        self._redis_failed_at: float | None = None
        self._warned_missing_host = False

        self._background: set[asyncio.Task] = set()

        log_stage(
            logger,
            Stage.CACHE_INIT,
            "Cache manager created",
            memory_enabled=self._cache_settings.CACHE_MEMORY_ENABLE,
            redis_enabled=self._cache_settings.CACHE_REDIS_ENABLE,
            memory_ttl=self._cache_settings.CACHE_MEMORY_TTL,
            memory_max_size_mb=self._cache_settings.CACHE_MEMORY_MAX_SIZE_MB,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Start the memory sweep (if enabled) and try to reach Redis.

        A Redis failure here is not fatal; the tier is simply absent.
        """
        memory = self.get_memory_cache()
        if self._cache_settings.CACHE_MEMORY_CLEANUP_ENABLED:
            memory.start_cleanup(self._cache_settings.cleanup_interval_seconds)

        await self.get_redis_cache()
        log_stage(logger, Stage.CACHE_INIT, "Cache manager initialized",
                  redis_available=self._redis_cache is not None)

    async def shutdown(self) -> None:
        """Stop the sweep, flush pending writes and close Redis."""
        if self._memory_cache is not None:
            await self._memory_cache.stop_cleanup()
        await self.drain()
        if self._redis_client is not None:
            await self._redis_client.disconnect()
        self._redis_client = None
        self._redis_cache = None
        log_stage(logger, Stage.CACHE_INIT, "Cache manager shutdown")

    # -------------------------------------------------------------------------
    # Tier accessors
    # -------------------------------------------------------------------------

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def settings(self) -> Settings:
        return self._settings

    def get_memory_cache(self) -> MemoryCache | DisabledMemoryCache:
        """
        Memory tier, built on first call and reused for the manager's lifetime.

        Returns a DisabledMemoryCache when CACHE_MEMORY_ENABLE is off.
        """
        if self._memory_cache is None:
            if self._cache_settings.CACHE_MEMORY_ENABLE:
                self._memory_cache = MemoryCache(
                    default_ttl=self._cache_settings.CACHE_MEMORY_TTL,
                    max_size_bytes=self._cache_settings.memory_max_size_bytes,
                    size_estimator=self._size_estimator,
                    clock=self._clock,
                )
            else:
                self._memory_cache = DisabledMemoryCache()
        return self._memory_cache

    async def get_redis_cache(self) -> RedisCache | None:
        """
        Distributed tier, or None when it is absent.

        Absent means: disabled by config, REDIS_HOST missing (warned once), or
        the connection failed. After a failure the connect is retried no
        sooner than CACHE_REDIS_RETRY_INTERVAL seconds later, so a dead Redis
        does not cost every request a connect timeout.
        """
        if not self._cache_settings.CACHE_REDIS_ENABLE:
            return None
        if self._redis_cache is not None:
            return self._redis_cache

        if not self._redis_settings.REDIS_HOST:
            if not self._warned_missing_host:
                self._warned_missing_host = True
                logger.warning(
                    "CACHE_REDIS_ENABLE is set but REDIS_HOST is not; Redis tier disabled",
                    stage=Stage.REDIS_CONNECT.value,
                )
            return None

        if self._redis_lock is None:
            self._redis_lock = asyncio.Lock()

        async with self._redis_lock:
            if self._redis_cache is not None:
                return self._redis_cache
            if self._redis_failed_at is not None and (
                time.monotonic() - self._redis_failed_at
                < self._cache_settings.CACHE_REDIS_RETRY_INTERVAL
            ):
                return None

            client = self._redis_client_factory(
                self._redis_settings, self._cache_settings.redis_timeout_seconds
            )
            try:
                await client.connect()
            except (CacheConnectionError, ConnectionError, OSError) as e:
                self._redis_failed_at = time.monotonic()
                logger.warning(
                    "Failed to initialize Redis cache; continuing without it",
                    stage=Stage.REDIS_CONNECT.value,
                    error=str(e),
                    retry_in_seconds=self._cache_settings.CACHE_REDIS_RETRY_INTERVAL,
                )
                return None

            self._redis_failed_at = None
            self._redis_client = client
            self._redis_cache = RedisCache(
                client,
                namespace=self._settings.redis_namespace,
                default_ttl=self._cache_settings.CACHE_REDIS_TTL,
                timeout=self._cache_settings.redis_timeout_seconds,
            )
            return self._redis_cache

    def is_cache_enabled(self) -> bool:
        """True when at least one cache tier is switched on."""
        return self._cache_settings.CACHE_MEMORY_ENABLE or self._cache_settings.CACHE_REDIS_ENABLE

    # -------------------------------------------------------------------------
    # Admin operations
    # -------------------------------------------------------------------------

    def clear_memory(self) -> int:
        """Drop every memory entry. Returns how many entries were dropped."""
        memory = self.get_memory_cache()
        entries = memory.memory_stats().entries
        memory.reset()
        log_stage(logger, Stage.CACHE_ADMIN, "Memory cache cleared", entries=entries)
        return entries

    async def clear_distributed(self) -> int | None:
        """
        Clear the Redis namespace.

        Returns:
            Number of keys removed, or None when the tier is absent
        """
        redis_cache = await self.get_redis_cache()
        if redis_cache is None:
            log_stage(logger, Stage.CACHE_ADMIN, "Redis cache clear skipped, tier not available")
            return None
        return await redis_cache.reset()

    def config_summary(self) -> dict[str, Any]:
        """Effective cache configuration, as reported by the admin config endpoint."""
        cache = self._cache_settings
        redis_settings = self._redis_settings
        memory = self.get_memory_cache().memory_stats()
        return {
            "CACHE_MEMORY_ENABLE": cache.CACHE_MEMORY_ENABLE,
            "CACHE_REDIS_ENABLE": cache.CACHE_REDIS_ENABLE,
            "CACHE_MEMORY_TTL": cache.CACHE_MEMORY_TTL,
            "CACHE_MEMORY_MAX_SIZE_MB": cache.CACHE_MEMORY_MAX_SIZE_MB,
            "CACHE_MEMORY_CLEANUP_ENABLED": cache.CACHE_MEMORY_CLEANUP_ENABLED,
            "CACHE_MEMORY_CLEANUP_INTERVAL_MS": cache.CACHE_MEMORY_CLEANUP_INTERVAL_MS,
            "CACHE_REDIS_TTL": cache.CACHE_REDIS_TTL,
            "CACHE_REDIS_TIMEOUT_MS": cache.CACHE_REDIS_TIMEOUT_MS,
            "REDIS_HOST": redis_settings.REDIS_HOST or "not configured",
            "REDIS_PORT": redis_settings.REDIS_PORT,
            "redis_namespace": self._settings.redis_namespace,
            "redis_available": self._redis_cache is not None,
            "memory": {
                "current_size": memory.current_size,
                "max_size": memory.max_size,
                "entries": memory.entries,
            },
        }

    # -------------------------------------------------------------------------
    # Background writes
    # -------------------------------------------------------------------------

    def schedule_background(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task:
        """
        Run `coro` without awaiting it.

        The task is kept referenced until it finishes (asyncio only holds weak
        references to tasks), and any exception it raises is logged.
        """
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(lambda t: self._on_background_done(t, description))
        return task

    def _on_background_done(self, task: asyncio.Task, description: str) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log_stage(logger, Stage.CACHE_POPULATE, "Background cache write failed",
                      level="error", task=description, error=str(error),
                      error_type=type(error).__name__)

    async def drain(self) -> None:
        """Wait for every pending background write."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
