"""
Cache Module

Provides the cache tiers (in-memory + Redis), their statistics and the
CacheManager that owns them.
"""

from .cache_manager import CacheManager
from .cache_stats import CacheStats, CacheStatsSnapshot
from .distributed_cache import RedisCache
from .memory_cache import DisabledMemoryCache, MemoryCache
from .redis_client import RedisClient

__all__ = [
    "CacheManager",
    "CacheStats",
    "CacheStatsSnapshot",
    "DisabledMemoryCache",
    "MemoryCache",
    "RedisCache",
    "RedisClient",
]
