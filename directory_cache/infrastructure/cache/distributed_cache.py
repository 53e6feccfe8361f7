"""
Distributed Cache Tier (Redis adapter)

Thin adapter that gives the read-through chain the same get/set/delete/reset
shape as the memory tier, on top of RedisClient.

Failure semantics: the cache is an optimization, never a consistency source.
- `get` returns None (a miss) on any Redis error or timeout
- `set` / `delete` are best-effort; failures are logged and swallowed
- `reset` clears only keys under the configured namespace

Every call is bounded by `timeout` seconds so a hung server degrades to a
database read instead of a hung request.
"""

import asyncio
from collections.abc import Awaitable
from typing import Any, Protocol, TypeVar

from directory_cache.core.config.constants import Stage
from directory_cache.core.exceptions import CacheError
from directory_cache.core.logging import get_logger, log_stage
from directory_cache.infrastructure.cache.serialization import decode, encode

logger = get_logger(__name__)

T = TypeVar("T")


class KeyValueClient(Protocol):
    """What RedisCache needs from the underlying client."""

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, ttl: int) -> bool: ...

    async def delete(self, *keys: str) -> int: ...

    async def delete_matching(self, pattern: str) -> int: ...

    async def health_check(self) -> dict[str, Any]: ...


class RedisCache:
    """
    Namespaced, fail-soft cache over a key-value client.

    Keys passed in are logical keys (`person:mendocino/jane-doe`); they are
    stored as `{namespace}:{logical key}`.
    """

    def __init__(self, client: KeyValueClient, namespace: str, default_ttl: int, timeout: float):
        """
        Args:
            client: Connected RedisClient (or anything with the same methods)
            namespace: Key folder, e.g. `bring-me-home:cache:v1`
            default_ttl: TTL in seconds used when `set` gets none
            timeout: Upper bound in seconds for any single call
        """
        self._client = client
        self._namespace = namespace
        self._default_ttl = default_ttl
        self._timeout = timeout

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def default_ttl(self) -> int:
        return self._default_ttl

    @property
    def client(self) -> KeyValueClient:
        return self._client

    def storage_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def _bounded(self, operation: str, key: str, call: Awaitable[T]) -> T | None:
        """Await `call` within the timeout; log and return None on any failure."""
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError:
            log_stage(logger, Stage.REDIS_OPERATION, f"Redis {operation} timed out",
                      level="warning", cache_key=key, timeout_ms=round(self._timeout * 1000))
        except (CacheError, ConnectionError, OSError) as e:
            log_stage(logger, Stage.REDIS_OPERATION, f"Redis {operation} failed",
                      level="warning", cache_key=key, error=str(e),
                      error_type=type(e).__name__)
        return None

    # -------------------------------------------------------------------------
    # Tier operations
    # -------------------------------------------------------------------------

    async def get_raw(self, key: str) -> bytes | None:
        """Encoded payload for `key`, None on miss or failure."""
        return await self._bounded("GET", key, self._client.get(self.storage_key(key)))

    async def get_sized(self, key: str) -> tuple[Any, int] | None:
        """
        Decoded value plus its encoded size in bytes, or None on a miss.

        A payload that no longer decodes is treated as a miss.
        """
        payload = await self.get_raw(key)
        if payload is None:
            return None
        try:
            return decode(payload), len(payload)
        except ValueError as e:  # orjson.JSONDecodeError is a ValueError
            log_stage(logger, Stage.REDIS_OPERATION, "Corrupt Redis payload treated as miss",
                      level="warning", cache_key=key, error=str(e))
            return None

    async def get(self, key: str) -> Any | None:
        entry = await self.get_sized(key)
        return entry[0] if entry is not None else None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store a cache-safe value. Never raises for Redis failures.

        Returns:
            True if Redis acknowledged the write
        """
        payload = encode(value)
        result = await self._bounded(
            "SET", key, self._client.set(self.storage_key(key), payload, ttl or self._default_ttl)
        )
        return bool(result)

    async def delete(self, key: str) -> bool:
        result = await self._bounded("DELETE", key, self._client.delete(self.storage_key(key)))
        return bool(result)

    async def reset(self) -> int:
        """
        Delete every key in the namespace.

        Not bounded by the per-call timeout: an admin clear may legitimately
        scan many keys. Failures are logged and reported as 0 keys removed.
        """
        pattern = f"{self._namespace}:*"
        try:
            deleted = await self._client.delete_matching(pattern)
        except (CacheError, ConnectionError, OSError) as e:
            log_stage(logger, Stage.CACHE_ADMIN, "Redis namespace clear failed",
                      level="error", pattern=pattern, error=str(e))
            return 0
        log_stage(logger, Stage.CACHE_ADMIN, "Redis namespace cleared", pattern=pattern,
                  deleted=deleted)
        return deleted

    async def health_check(self) -> dict[str, Any]:
        health = await self._client.health_check()
        return {**health, "namespace": self._namespace}
