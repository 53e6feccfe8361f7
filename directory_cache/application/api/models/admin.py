"""
Admin Cache API Response Models

Pydantic models for the admin cache endpoints. Every response carries a
`timestamp` so operators can line responses up with the structured logs.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from directory_cache.infrastructure.cache.cache_stats import CacheStatsSnapshot


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CacheActionResponse(BaseModel):
    """
    Result of a clear / reset action.

    `available` is False when the targeted tier is disabled or unreachable;
    that is reported, not treated as an error.
    """

    message: str = Field(..., description="Human-readable outcome")
    available: bool = Field(default=True, description="Whether the targeted tier exists")
    entries_removed: int | None = Field(
        default=None, ge=0, description="Entries or keys removed, when known"
    )
    timestamp: datetime = Field(default_factory=_now)


class CacheStatsResponse(BaseModel):
    stats: CacheStatsSnapshot
    timestamp: datetime = Field(default_factory=_now)


class CacheConfigResponse(BaseModel):
    """Effective cache configuration (read once at startup)."""

    config: dict[str, Any] = Field(..., description="Configuration values by name")
    redis_health: dict[str, Any] | None = Field(
        default=None, description="Ping result when the Redis tier is connected"
    )
    timestamp: datetime = Field(default_factory=_now)


class InvalidationResponse(BaseModel):
    """Outcome of dropping one logical key from both tiers."""

    key: str = Field(..., description="Logical cache key")
    memory: bool = Field(..., description="True if the memory tier held the key")
    distributed: bool | None = Field(
        default=None, description="True if Redis held the key; null when the tier is absent"
    )
    timestamp: datetime = Field(default_factory=_now)
