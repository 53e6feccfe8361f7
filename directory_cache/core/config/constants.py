"""
System Constants and Enumerations

This module defines the constants and enumerations shared by the cache tiers,
the entity cache modules and the HTTP layer.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for key prefixes, header names and defaults
- Type-safe enums for tier names (they appear in stats, logs and headers)
"""

from enum import Enum

# ============================================================================
# Cache Tiers
# ============================================================================


class CacheTier(str, Enum):
    """
    Tiers of the read-through hierarchy.

    `MEMORY` and `DISTRIBUTED` are the two cache tiers that keep per-key
    hit/miss statistics. `DATABASE` is the fallback and only counts queries.

    Inheriting from str lets the values go straight into JSON bodies and the
    `X-Cache-Source` header.
    """

    MEMORY = "memory"
    DISTRIBUTED = "distributed"
    DATABASE = "database"


# Tiers that keep hit/miss counters
STATS_TIERS: tuple[CacheTier, ...] = (CacheTier.MEMORY, CacheTier.DISTRIBUTED)


# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Stage identifiers attached to log entries as `stage=...`.

    Format: {PREFIX}.{SEQUENCE}_{DESCRIPTIVE_NAME}
    """

    CACHE_INIT = "CACHE.0_INITIALIZATION"
    MEMORY_LOOKUP = "CACHE.1_MEMORY_LOOKUP"
    DISTRIBUTED_LOOKUP = "CACHE.2_DISTRIBUTED_LOOKUP"
    DATABASE_FETCH = "CACHE.3_DATABASE_FETCH"
    CACHE_POPULATE = "CACHE.4_POPULATE"
    CACHE_INVALIDATE = "CACHE.5_INVALIDATE"
    CACHE_ADMIN = "CACHE.6_ADMIN"
    MEMORY_CLEANUP = "CACHE.7_MEMORY_CLEANUP"

    REDIS_CONNECT = "REDIS.1_CONNECT"
    REDIS_DISCONNECT = "REDIS.2_DISCONNECT"
    REDIS_OPERATION = "REDIS.3_OPERATION"


# ============================================================================
# Cache Keys
# ============================================================================

# Bumped whenever the shape of cached page data changes, so old entries in a
# shared Redis are simply never read again.
CACHE_VERSION = "v1"

REDIS_KEY_PREFIX_DEFAULT = "bring-me-home"
REDIS_NAMESPACE_CACHE = "cache"

KEY_HOMEPAGE = "homepage"
KEY_PREFIX_PERSON = "person"
KEY_PREFIX_TOWN = "town"

# ============================================================================
# Memory Tier
# ============================================================================

# Bookkeeping overhead added to every size estimate (dict slot, entry object)
MEMORY_ENTRY_OVERHEAD_BYTES = 100
BYTES_PER_MB = 1024 * 1024

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_CACHE_SOURCE = "X-Cache-Source"
HEADER_CACHE_LATENCY = "X-Cache-Latency"
HEADER_ADMIN_TOKEN = "X-Admin-Token"

# ============================================================================
# Image URLs
# ============================================================================

IMAGE_URL_BASE = "/api/images"
HOMEPAGE_THUMBNAIL = {"width": 300, "height": 300, "quality": 80}

# ============================================================================
# Shared-cache (CDN) directives for page responses
# ============================================================================

CDN_S_MAXAGE = 60
CDN_STALE_WHILE_REVALIDATE = 300
PAGE_CACHE_CONTROL = (
    f"public, s-maxage={CDN_S_MAXAGE}, stale-while-revalidate={CDN_STALE_WHILE_REVALIDATE}"
)
