"""
Cache-Related Exceptions

All exceptions related to caching operations (Redis, in-memory tier,
serialization of cached values).
"""

from directory_cache.core.exceptions.base import DirectoryCacheError


class CacheError(DirectoryCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to the distributed tier (Redis).

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port configuration
    - Authentication failure

    Never reaches a page caller: the cache manager turns it into "tier absent".
    """
    pass


class CacheKeyError(CacheError):
    """
    Raised when a cache key cannot be built or a key operation fails.

    Common causes:
    - Empty slug passed to a key builder
    - Redis command error on a specific key
    """
    pass


class CacheSerializationError(CacheError):
    """
    Raised when a value cannot be normalized to a cache-safe representation.

    Caching such a value would corrupt later reads, so the read-through
    returns the fresh value for that request and skips tier population.
    """
    pass
