"""
API Models Package

Pydantic response models for the admin cache endpoints. Page endpoints
return the cached page data as-is.
"""

from directory_cache.application.api.models.admin import (
    CacheActionResponse,
    CacheConfigResponse,
    CacheStatsResponse,
    InvalidationResponse,
)

__all__ = [
    "CacheActionResponse",
    "CacheConfigResponse",
    "CacheStatsResponse",
    "InvalidationResponse",
]
