"""
Caching Module

Read-through entity caches built on the CacheManager tiers.

Components:
-----------
- **keys.py**: Logical cache keys (`homepage`, `town:...`, `person:.../...`)
- **read_through.py**: The memory → Redis → database walk, CacheResult, CacheOptions
- **homepage_cache.py / town_cache.py / person_cache.py**: Per-page loaders,
  serializers and invalidation
"""

from directory_cache.caching.homepage_cache import HomepageCache
from directory_cache.caching.person_cache import PersonCache
from directory_cache.caching.read_through import (
    CacheOptions,
    CacheResult,
    Invalidation,
    ReadThroughCache,
)
from directory_cache.caching.town_cache import TownCache

__all__ = [
    "CacheOptions",
    "CacheResult",
    "HomepageCache",
    "Invalidation",
    "PersonCache",
    "ReadThroughCache",
    "TownCache",
]
