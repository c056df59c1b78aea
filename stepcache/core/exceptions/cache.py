"""
Cache-Related Exceptions

All exceptions raised by storage tiers and cache backends (memory, session
store, durable store, Redis).
"""

from stepcache.core.exceptions.base import StepCacheError


class CacheError(StepCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to a cache backend (Redis).

    Common causes:
    - Redis server is down
    - Incorrect host/port configuration
    - Authentication failure
    """
    pass


class CacheKeyError(CacheError):
    """Raised when a single key operation against a backend fails."""
    pass


class StorageTierError(CacheError):
    """
    Raised by a client storage tier adapter.

    Tier adapters capture these into a TierResult; they never reach callers
    of the client cache manager.
    """
    pass


class StorageQuotaExceededError(StorageTierError):
    """Raised when a write would exceed a quota-bounded store."""
    pass


class StorageUnavailableError(StorageTierError):
    """
    Raised when a store cannot be used at all.

    Common causes:
    - Store was never opened (initialization failed)
    - Backend disabled in this environment
    - Backend connection lost
    """
    pass
