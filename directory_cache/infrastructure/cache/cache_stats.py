"""
Cache Statistics

Process-wide counters for the read-through cache: hits, misses and size
estimates per key for the memory and distributed tiers, and query counts per
key for the database fallback.

Pure bookkeeping, no I/O. Every operation is a total function over in-memory
maps, guarded by a single coarse lock so the counters stay consistent under a
threaded server as well as under the event loop.

Usage:
    stats = CacheStats()
    stats.record_hit(CacheTier.MEMORY, "homepage", size_bytes=2048)
    stats.record_miss(CacheTier.DISTRIBUTED, "person:mendocino/jane-doe")
    stats.record_database_query("person:mendocino/jane-doe")

    snapshot = stats.get_stats()
    snapshot.memory.hit_rate  # 1.0
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from directory_cache.core.config.constants import STATS_TIERS, CacheTier

# =============================================================================
# MUTABLE COUNTERS (internal)
# =============================================================================


@dataclass
class KeyStats:
    """Counters for one (tier, logical key) pair."""

    hits: int = 0
    misses: int = 0
    last_access: datetime | None = None
    size: int = 0
    ttl: int | None = None
    cached_at: datetime | None = None
    expires_at: datetime | None = None


@dataclass
class _TierCounters:
    hits: int = 0
    misses: int = 0
    keys: dict[str, KeyStats] = field(default_factory=dict)


@dataclass
class _DatabaseCounters:
    queries: int = 0
    by_key: dict[str, int] = field(default_factory=dict)


# =============================================================================
# SNAPSHOT MODELS (returned to callers)
# =============================================================================


class KeyStatsSnapshot(BaseModel):
    """Frozen copy of one KeyStats entry."""

    model_config = ConfigDict(frozen=True)

    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    last_access: datetime | None = None
    size: int = Field(..., ge=0, description="Estimated size in bytes at last hit")
    ttl: int | None = Field(default=None, description="TTL in seconds, when known")
    cached_at: datetime | None = None
    expires_at: datetime | None = None


class TierStatsSnapshot(BaseModel):
    """Aggregate counters for one cache tier."""

    model_config = ConfigDict(frozen=True)

    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0.0, le=1.0, description="hits / (hits + misses)")
    total_size: int = Field(..., ge=0, description="Sum of per-key size estimates")
    keys: dict[str, KeyStatsSnapshot] = Field(default_factory=dict)


class DatabaseStatsSnapshot(BaseModel):
    """Query counters for the database fallback."""

    model_config = ConfigDict(frozen=True)

    queries: int = Field(..., ge=0)
    by_key: dict[str, int] = Field(default_factory=dict)


class CacheStatsSnapshot(BaseModel):
    """Point-in-time copy of every counter, safe to hand to callers."""

    model_config = ConfigDict(frozen=True)

    memory: TierStatsSnapshot
    distributed: TierStatsSnapshot
    database: DatabaseStatsSnapshot
    last_reset: datetime


def hit_rate(hits: int, misses: int) -> float:
    """hits / (hits + misses), or 0.0 when nothing has been recorded."""
    total = hits + misses
    return hits / total if total > 0 else 0.0


# =============================================================================
# PUBLIC API
# =============================================================================


class CacheStats:
    """
    Central, thread-safe cache counters.

    One instance lives on the CacheManager for the lifetime of the process;
    the admin endpoints read it with `get_stats()` and zero it with `reset()`.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._tiers: dict[CacheTier, _TierCounters] = {}
        self._database = _DatabaseCounters()
        self._last_reset = self._now()
        self._clear()

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def _clear(self) -> None:
        self._tiers = {tier: _TierCounters() for tier in STATS_TIERS}
        self._database = _DatabaseCounters()

    def _tier(self, tier: CacheTier | str) -> _TierCounters:
        tier = CacheTier(tier)
        if tier not in self._tiers:
            raise ValueError(f"No hit/miss counters for tier '{tier.value}'")
        return self._tiers[tier]

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_hit(
        self,
        tier: CacheTier | str,
        key: str,
        size_bytes: int = 0,
        ttl: int | None = None,
        cached_at: datetime | None = None,
        expires_at: datetime | None = None,
    ) -> None:
        """
        Count a hit for `key` on `tier`.

        Updates the tier total and the key's hits, last_access and size. TTL
        details are stored when the tier can provide them.
        """
        with self._lock:
            counters = self._tier(tier)
            counters.hits += 1
            key_stats = counters.keys.setdefault(key, KeyStats())
            key_stats.hits += 1
            key_stats.last_access = self._now()
            key_stats.size = max(0, size_bytes)
            if ttl is not None:
                key_stats.ttl = ttl
                key_stats.cached_at = cached_at
                key_stats.expires_at = expires_at

    def record_miss(self, tier: CacheTier | str, key: str) -> None:
        """Count a miss for `key` on `tier`."""
        with self._lock:
            counters = self._tier(tier)
            counters.misses += 1
            key_stats = counters.keys.setdefault(key, KeyStats())
            key_stats.misses += 1
            key_stats.last_access = self._now()

    def record_database_query(self, key: str) -> None:
        """Count one trip to the database for `key`."""
        with self._lock:
            self._database.queries += 1
            self._database.by_key[key] = self._database.by_key.get(key, 0) + 1

    # -------------------------------------------------------------------------
    # Reading / resetting
    # -------------------------------------------------------------------------

    def get_stats(self) -> CacheStatsSnapshot:
        """
        Return a deep, immutable snapshot of all counters.

        Hit rates are computed here from the current counts, never stored.
        """
        with self._lock:
            tiers = {
                tier: TierStatsSnapshot(
                    hits=counters.hits,
                    misses=counters.misses,
                    hit_rate=hit_rate(counters.hits, counters.misses),
                    total_size=sum(k.size for k in counters.keys.values()),
                    keys={
                        key: KeyStatsSnapshot(
                            hits=k.hits,
                            misses=k.misses,
                            last_access=k.last_access,
                            size=k.size,
                            ttl=k.ttl,
                            cached_at=k.cached_at,
                            expires_at=k.expires_at,
                        )
                        for key, k in counters.keys.items()
                    },
                )
                for tier, counters in self._tiers.items()
            }
            return CacheStatsSnapshot(
                memory=tiers[CacheTier.MEMORY],
                distributed=tiers[CacheTier.DISTRIBUTED],
                database=DatabaseStatsSnapshot(
                    queries=self._database.queries,
                    by_key=dict(self._database.by_key),
                ),
                last_reset=self._last_reset,
            )

    def reset(self) -> None:
        """Zero every counter, drop per-key maps and stamp `last_reset`."""
        with self._lock:
            self._clear()
            self._last_reset = self._now()
