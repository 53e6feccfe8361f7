"""
In-Memory Cache Tier

Bounded, TTL-expiring, single-process key → value store.

Implementation Details:
- Values are stored as orjson bytes, so every `get` hands back a fresh object
  and nothing is shared by reference with callers or with the Redis tier
- Size accounting uses a pluggable estimator over the encoded payload
- Expiry is lazy: `get` always re-checks `expires_at`, whatever the sweep does
- Optional cooperative sweep task removes expired entries in the background

Eviction Policy (deterministic):
    When an insert would push the estimated total over the budget:
    1. every expired entry is removed
    2. then entries are removed oldest `cached_at` first (insertion order;
       re-setting a key moves it to the back)
    until the new entry fits. An entry bigger than the whole budget is not
    stored at all. A budget of 0 bytes means unbounded.

Access is synchronous and never suspends the event loop. A single lock guards
the map so the tier is also safe under threaded servers.
"""

import asyncio
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from directory_cache.core.config.constants import MEMORY_ENTRY_OVERHEAD_BYTES, Stage
from directory_cache.core.logging import get_logger, log_stage
from directory_cache.infrastructure.cache.serialization import decode, encode

logger = get_logger(__name__)

SizeEstimator = Callable[[bytes], int]


def default_size_estimator(payload: bytes) -> int:
    """Encoded length plus a fixed per-entry bookkeeping overhead."""
    return len(payload) + MEMORY_ENTRY_OVERHEAD_BYTES


@dataclass
class CacheEntry:
    """One stored value. Owned exclusively by the MemoryCache holding it."""

    payload: bytes
    cached_at: float
    expires_at: float
    size_bytes: int

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class EntryInfo:
    """TTL and size details of a live entry, used for per-key stats."""

    ttl: int
    cached_at: datetime
    expires_at: datetime
    size_bytes: int


@dataclass(frozen=True)
class MemoryStats:
    current_size: int
    max_size: int
    entries: int


class MemoryCache:
    """
    Bounded TTL cache.

    Usage:
        cache = MemoryCache(default_ttl=300, max_size_bytes=100 * 1024 * 1024)
        cache.set("homepage", {"towns": []})
        cache.get("homepage")  # {"towns": []}
    """

    enabled = True

    def __init__(
        self,
        default_ttl: int,
        max_size_bytes: int,
        size_estimator: SizeEstimator = default_size_estimator,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            default_ttl: TTL in seconds used when `set` gets none
            max_size_bytes: Budget for the sum of size estimates (0 = unbounded)
            size_estimator: Maps an encoded payload to its estimated footprint
            clock: Returns the current time in seconds (injectable for tests)
        """
        self._default_ttl = default_ttl
        self._max_size = max_size_bytes
        self._estimate = size_estimator
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._current_size = 0
        self._lock = threading.RLock()
        self._cleanup_task: asyncio.Task | None = None

    # -------------------------------------------------------------------------
    # Core operations
    # -------------------------------------------------------------------------

    def get(self, key: str) -> Any | None:
        """
        Return the stored value, or None on a miss.

        An expired entry counts as a miss and is removed on the spot.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                self._remove(key)
                return None
            payload = entry.payload
        return decode(payload)

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store `value` under `key` for `ttl` seconds (default TTL when None).

        `value` must already be cache-safe (see serialization.to_cache_safe).

        Returns:
            True if stored, False if the entry alone exceeds the budget
        """
        payload = encode(value)
        size = self._estimate(payload)
        ttl = ttl or self._default_ttl

        with self._lock:
            now = self._clock()
            if key in self._entries:
                self._remove(key)

            if self._max_size and size > self._max_size:
                logger.warning(
                    "Entry larger than memory budget, not cached",
                    stage=Stage.MEMORY_LOOKUP.value,
                    cache_key=key,
                    size_bytes=size,
                    max_size_bytes=self._max_size,
                )
                return False

            if self._max_size and self._current_size + size > self._max_size:
                self._evict(size, now)

            self._entries[key] = CacheEntry(
                payload=payload, cached_at=now, expires_at=now + ttl, size_bytes=size
            )
            self._current_size += size
            return True

    def delete(self, key: str) -> bool:
        """Delete `key`. Returns True if it was present."""
        with self._lock:
            if key in self._entries:
                self._remove(key)
                return True
            return False

    def reset(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()
            self._current_size = 0

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def entry_info(self, key: str) -> EntryInfo | None:
        """TTL and size details for a live entry, None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(self._clock()):
                return None
            return EntryInfo(
                ttl=round(entry.expires_at - entry.cached_at),
                cached_at=datetime.fromtimestamp(entry.cached_at, tz=timezone.utc),
                expires_at=datetime.fromtimestamp(entry.expires_at, tz=timezone.utc),
                size_bytes=entry.size_bytes,
            )

    def memory_stats(self) -> MemoryStats:
        with self._lock:
            return MemoryStats(
                current_size=self._current_size,
                max_size=self._max_size,
                entries=len(self._entries),
            )

    def keys(self) -> list[str]:
        """Keys in eviction order (oldest first)."""
        with self._lock:
            return list(self._entries.keys())

    @property
    def default_ttl(self) -> int:
        return self._default_ttl

    # -------------------------------------------------------------------------
    # Expiry and eviction
    # -------------------------------------------------------------------------

    def purge_expired(self) -> int:
        """Remove every expired entry. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                self._remove(key)
            return len(expired)

    def _evict(self, required: int, now: float) -> None:
        for key in [k for k, e in self._entries.items() if e.is_expired(now)]:
            self._remove(key)

        while self._entries and self._current_size + required > self._max_size:
            key, entry = self._entries.popitem(last=False)
            self._current_size -= entry.size_bytes
            log_stage(logger, Stage.MEMORY_LOOKUP, "Evicted memory cache entry",
                      level="debug", cache_key=key, size_bytes=entry.size_bytes)

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._current_size -= entry.size_bytes

    # -------------------------------------------------------------------------
    # Background sweep
    # -------------------------------------------------------------------------

    def start_cleanup(self, interval_seconds: float) -> None:
        """
        Start the periodic expiry sweep on the running event loop.

        Cooperative only: a slow loop delays the sweep, never correctness,
        since `get` re-checks expiry itself.
        """
        if self._cleanup_task and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.get_running_loop().create_task(
            self._cleanup_loop(interval_seconds)
        )

    async def stop_cleanup(self) -> None:
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None

    async def _cleanup_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            removed = self.purge_expired()
            if removed:
                log_stage(logger, Stage.MEMORY_CLEANUP, "Expired memory entries removed",
                          level="debug", removed=removed)


class DisabledMemoryCache:
    """
    Stand-in used when CACHE_MEMORY_ENABLE is off.

    Same interface as MemoryCache; stores nothing, so every lookup misses.
    """

    enabled = False
    default_ttl = 0

    def get(self, key: str) -> None:
        return None

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        return False

    def delete(self, key: str) -> bool:
        return False

    def reset(self) -> None:
        pass

    def entry_info(self, key: str) -> None:
        return None

    def memory_stats(self) -> MemoryStats:
        return MemoryStats(current_size=0, max_size=0, entries=0)

    def keys(self) -> list[str]:
        return []

    def purge_expired(self) -> int:
        return 0

    def start_cleanup(self, interval_seconds: float) -> None:
        pass

    async def stop_cleanup(self) -> None:
        pass
