"""
Pooled redis.asyncio client for the distributed cache tier.

    RedisClient
        ├── ConnectionManager   pool + ping on connect, short socket timeouts
        ├── OperationExecutor   GET / SET EX / DEL / SCAN-and-DEL
        └── HealthMonitor       ping latency for the admin config view

Payloads are opaque bytes (orjson, encoded by the caller); keys arrive
already namespaced.

The client raises on failure (CacheConnectionError / CacheKeyError). Turning
failures into misses is the job of the cache adapter on top of it
(distributed_cache.RedisCache), not of this module.
"""

import time
from typing import Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from directory_cache.core.config.constants import Stage
from directory_cache.core.config.settings import RedisSettings
from directory_cache.core.exceptions import CacheConnectionError, CacheKeyError
from directory_cache.core.logging import get_logger

logger = get_logger(__name__)

# Keys deleted per DEL call when clearing a namespace
DELETE_BATCH_SIZE = 500


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# =============================================================================


class ConnectionManager:
    """
    Owns the pool and the client built on it.

    Socket timeouts are kept short (derived from CACHE_REDIS_TIMEOUT_MS) so a
    dead server fails fast and leaves time for the database fallback.
    """

    def __init__(self, settings: RedisSettings, socket_timeout: float):
        self._settings = settings
        self._socket_timeout = socket_timeout
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._is_connected = False

    async def connect(self) -> redis.Redis:
        """
        Build the pool and verify it with PING. Idempotent once connected.

        Raises:
            CacheConnectionError: If the host is unset or the ping fails
        """
        if self._is_connected and self._client:
            return self._client

        if not self._settings.REDIS_HOST:
            raise CacheConnectionError(
                "REDIS_HOST is not configured",
                details={"port": self._settings.REDIS_PORT},
            )

        try:
            self._pool = ConnectionPool(
                host=self._settings.REDIS_HOST,
                port=self._settings.REDIS_PORT,
                db=self._settings.REDIS_DB,
                password=self._settings.REDIS_PASSWORD,
                max_connections=self._settings.REDIS_MAX_CONNECTIONS,
                socket_connect_timeout=self._socket_timeout,
                socket_timeout=self._socket_timeout,
                decode_responses=False,  # payloads are orjson bytes
            )
            self._client = redis.Redis(connection_pool=self._pool)

            # Verify connection with ping
            await self._client.ping()
            self._is_connected = True

            logger.info(
                "Redis connected successfully",
                stage=Stage.REDIS_CONNECT.value,
                host=self._settings.REDIS_HOST,
                port=self._settings.REDIS_PORT,
            )
            return self._client

        except (ConnectionError, TimeoutError, OSError) as e:
            await self.disconnect()
            raise CacheConnectionError.from_exception(
                e,
                message=f"Failed to connect to Redis: {e}",
                host=self._settings.REDIS_HOST,
                port=self._settings.REDIS_PORT,
            )

    async def disconnect(self) -> None:
        """
        Close client and pool; safe to call when never connected.
        """
        if self._client:
            await self._client.aclose()
        if self._pool:
            await self._pool.disconnect()

        was_connected = self._is_connected
        self._client = None
        self._pool = None
        self._is_connected = False

        if was_connected:
            logger.info("Redis disconnected", stage=Stage.REDIS_DISCONNECT.value)

    def get_client(self) -> redis.Redis | None:
        return self._client

    def is_connected(self) -> bool:
        return self._is_connected


# =============================================================================
# LAYER 2: OPERATION EXECUTOR
# =============================================================================


class OperationExecutor:
    """
    Runs single commands; any RedisError comes out as CacheKeyError with the
    affected key(s) in `details`.
    """

    def __init__(self, redis_client: redis.Redis):
        self._redis = redis_client

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._redis.get(key)
        except RedisError as e:
            raise CacheKeyError(message=f"Redis GET failed: {e}", details={"key": key})

    async def set(self, key: str, value: bytes, ttl: int) -> bool:
        """SET with expiry (seconds)."""
        try:
            result = await self._redis.set(key, value, ex=ttl)
            return result is not None
        except RedisError as e:
            raise CacheKeyError(message=f"Redis SET failed: {e}", details={"key": key})

    async def delete(self, *keys: str) -> int:
        try:
            return await self._redis.delete(*keys)
        except RedisError as e:
            raise CacheKeyError(message=f"Redis DELETE failed: {e}", details={"keys": keys})

    async def delete_matching(self, pattern: str) -> int:
        """
        Delete every key matching `pattern`.

        Uses SCAN rather than KEYS so a large namespace does not block the
        server, and deletes in batches.
        """
        deleted = 0
        batch: list[str] = []
        try:
            async for key in self._redis.scan_iter(match=pattern, count=DELETE_BATCH_SIZE):
                batch.append(key)
                if len(batch) >= DELETE_BATCH_SIZE:
                    deleted += await self._redis.delete(*batch)
                    batch.clear()
            if batch:
                deleted += await self._redis.delete(*batch)
        except RedisError as e:
            raise CacheKeyError(
                message=f"Redis namespace delete failed: {e}", details={"pattern": pattern}
            )
        return deleted


# =============================================================================
# LAYER 3: HEALTH MONITORING
# =============================================================================


class HealthMonitor:
    """Ping-based health check for the admin config view."""

    def __init__(self, connection_manager: ConnectionManager, settings: RedisSettings):
        self._conn_mgr = connection_manager
        self._settings = settings

    async def health_check(self) -> dict[str, Any]:
        health = {
            "status": "healthy",
            "connected": self._conn_mgr.is_connected(),
            "host": self._settings.REDIS_HOST,
            "port": self._settings.REDIS_PORT,
            "ping_latency_ms": None,
        }

        client = self._conn_mgr.get_client()
        if not client:
            health["status"] = "unhealthy"
            health["error"] = "Client not initialized"
            return health

        try:
            start = time.perf_counter()
            await client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        except (RedisError, OSError) as e:
            health["status"] = "unhealthy"
            health["error"] = str(e)

        return health


# =============================================================================
# LAYER 4: PUBLIC API
# =============================================================================


class RedisClient:
    """
    What CacheManager connects and RedisCache wraps.

    Usage:
        client = RedisClient(settings.redis, socket_timeout=0.15)
        await client.connect()
        await client.set("key", b"value", ttl=3600)
        value = await client.get("key")
        await client.disconnect()
    """

    def __init__(self, settings: RedisSettings, socket_timeout: float):
        self._settings = settings
        self._conn_mgr = ConnectionManager(settings, socket_timeout)
        self._executor: OperationExecutor | None = None
        self._health_monitor = HealthMonitor(self._conn_mgr, settings)

    async def connect(self) -> None:
        """
        Raises:
            CacheConnectionError: host unset, refused, or PING timed out
        """
        client = await self._conn_mgr.connect()
        self._executor = OperationExecutor(client)

    async def disconnect(self) -> None:
        await self._conn_mgr.disconnect()
        self._executor = None

    def is_connected(self) -> bool:
        return self._conn_mgr.is_connected()

    def _require_executor(self) -> OperationExecutor:
        if self._executor is None:
            raise CacheConnectionError(
                "Redis client is not connected",
                details={"host": self._settings.REDIS_HOST, "port": self._settings.REDIS_PORT},
            )
        return self._executor

    async def get(self, key: str) -> bytes | None:
        return await self._require_executor().get(key)

    async def set(self, key: str, value: bytes, ttl: int) -> bool:
        return await self._require_executor().set(key, value, ttl)

    async def delete(self, *keys: str) -> int:
        return await self._require_executor().delete(*keys)

    async def delete_matching(self, pattern: str) -> int:
        return await self._require_executor().delete_matching(pattern)

    async def health_check(self) -> dict[str, Any]:
        return await self._health_monitor.health_check()
