"""
Configuration Module

- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Stage identifiers, message types, cache tags, HTTP headers

Usage:
------
```python
from stepcache.core.config import get_settings
from stepcache.core.config.constants import CacheTag, Stage

settings = get_settings()
cooldown_ms = settings.circuit_breaker.CB_COOLDOWN_MS
```
"""

from .constants import (
    GUEST_OWNER_ID,
    HEADER_ADMIN_TOKEN,
    HEADER_REQUEST_ID,
    TABLE_CACHE_TAGS,
    BroadcastMessageType,
    CacheTag,
    Stage,
)
from .settings import (
    ApplicationSettings,
    CircuitBreakerSettings,
    ClientCacheSettings,
    LoggingSettings,
    RedisSettings,
    ServerCacheSettings,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "ClientCacheSettings",
    "ServerCacheSettings",
    "CircuitBreakerSettings",
    "RedisSettings",
    "LoggingSettings",
    "ApplicationSettings",
    "get_settings",
    "reload_settings",
    "Stage",
    "BroadcastMessageType",
    "CacheTag",
    "TABLE_CACHE_TAGS",
    "HEADER_REQUEST_ID",
    "HEADER_ADMIN_TOKEN",
    "GUEST_OWNER_ID",
]
