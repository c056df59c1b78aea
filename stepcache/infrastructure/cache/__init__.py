"""
Cache Infrastructure

- **revalidating_cache.py**: stale-while-revalidate memoisation with tag invalidation
- **server_cache.py**: cached fetchers with timeout fallback and circuit breaker
- **redis_client.py**: pooled Redis client used by the Redis storage adapters
"""

from .redis_client import RedisClient
from .revalidating_cache import RevalidatingCache
from .server_cache import CacheStats, ServerCache

__all__ = ["CacheStats", "RedisClient", "RevalidatingCache", "ServerCache"]
