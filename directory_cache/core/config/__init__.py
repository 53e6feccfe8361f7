"""
Configuration Module

Centralized, type-safe configuration for the directory cache service.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Tier names, stage ids, key prefixes and HTTP header names

Usage:
------
```python
from directory_cache.core.config import get_settings
from directory_cache.core.config.constants import CacheTier

settings = get_settings()
memory_ttl = settings.cache.CACHE_MEMORY_TTL
redis_host = settings.redis.REDIS_HOST
```

Environment Variables:
---------------------
```bash
CACHE_MEMORY_ENABLE=true
CACHE_MEMORY_TTL=300
CACHE_MEMORY_MAX_SIZE_MB=100
CACHE_MEMORY_CLEANUP_ENABLED=true
CACHE_MEMORY_CLEANUP_INTERVAL_MS=60000

CACHE_REDIS_ENABLE=true
CACHE_REDIS_TTL=3600
REDIS_HOST=localhost
REDIS_PORT=6379

LOG_LEVEL=INFO
LOG_FORMAT=json
```
"""

from directory_cache.core.config.constants import (
    CACHE_VERSION,
    HEADER_ADMIN_TOKEN,
    HEADER_CACHE_LATENCY,
    HEADER_CACHE_SOURCE,
    HEADER_REQUEST_ID,
    STATS_TIERS,
    CacheTier,
    Stage,
)
from directory_cache.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "CacheTier",
    "Stage",
    "STATS_TIERS",
    # Keys
    "CACHE_VERSION",
    # HTTP headers
    "HEADER_REQUEST_ID",
    "HEADER_CACHE_SOURCE",
    "HEADER_CACHE_LATENCY",
    "HEADER_ADMIN_TOKEN",
]
