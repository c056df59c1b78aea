"""
System Constants and Enumerations

Stage identifiers used in structured log events, cross-context message types,
and the cache tags known to the server cache.
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Processing stages used as the ``stage`` field of log events.

    Format: {PREFIX}.{SEQUENCE}_{DESCRIPTIVE_NAME}
    - C: client multi-tier cache
    - S: server cached fetcher
    - CB: circuit breaker
    """

    # Client cache
    CLIENT_INIT = "C.0_CLIENT_INIT"
    CLIENT_TIER_READ = "C.1_TIER_READ"
    CLIENT_TIER_PROMOTE = "C.2_TIER_PROMOTE"
    CLIENT_TIER_WRITE = "C.3_TIER_WRITE"
    CLIENT_INVALIDATE = "C.4_INVALIDATE"
    CLIENT_BROADCAST = "C.5_BROADCAST"
    CLIENT_VERSION_CHECK = "C.6_VERSION_CHECK"
    CLIENT_LOADER = "C.7_MENU_LOADER"

    # Server cache
    SERVER_COMPUTE = "S.1_COMPUTE"
    SERVER_TIMEOUT = "S.2_TIMEOUT"
    SERVER_FETCH_FAILED = "S.3_FETCH_FAILED"
    SERVER_INVALIDATE = "S.4_INVALIDATE"
    SERVER_WARM = "S.5_WARM"
    SERVER_REVALIDATE = "S.6_BACKGROUND_REVALIDATE"

    # Circuit breaker
    CIRCUIT_BREAKER = "CB_CIRCUIT_BREAKER"


# ============================================================================
# Cross-context messages
# ============================================================================


class BroadcastMessageType(str, Enum):
    """Message types carried on the cache sync channel."""

    CACHE_UPDATED = "cache-updated"
    CACHE_INVALIDATED = "cache-invalidated"


# ============================================================================
# Server cache tags
# ============================================================================


class CacheTag(str, Enum):
    """Logical groupings used for server-side invalidation."""

    BRANDING = "branding"
    MENUS = "menus"
    SETTINGS = "settings"
    APP_CONFIG = "app_config"


# Database tables whose change events map to cache tags (revalidation webhook)
TABLE_CACHE_TAGS: dict[str, tuple[CacheTag, ...]] = {
    "brand_settings": (CacheTag.BRANDING,),
    "menu_items": (CacheTag.MENUS,),
    "menu_definitions": (CacheTag.MENUS,),
    "menu_locations": (CacheTag.MENUS,),
    "app_settings": (CacheTag.SETTINGS, CacheTag.APP_CONFIG),
}

# ============================================================================
# HTTP
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_ADMIN_TOKEN = "x-admin-token"
MENUS_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=300"

# Owner marker for anonymous principals
GUEST_OWNER_ID = "guest"
