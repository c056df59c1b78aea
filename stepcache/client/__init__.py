"""
Client Cache

Multi-tier cache (memory -> session store -> durable store) for the menu
configuration, kept consistent across client contexts by a broadcast port.

Usage:
------
```python
from stepcache.client import ClientCacheManager, StoragePlatform

manager = ClientCacheManager(StoragePlatform.in_memory())
doc = await manager.get(owner_id="guest")
```
"""

from .broadcast import InProcessBroadcastHub, RedisBroadcastTransport
from .cache_manager import ClientCacheManager
from .document import CachedDocument, get_cache_age, is_expired, is_stale
from .menu_loader import MenuConfigLoader, MenuLoadResult
from .platform import StoragePlatform
from .storage import InMemoryDurableStore, InMemorySessionStore, RedisDurableStore
from .tiers import TierResult

__all__ = [
    "CachedDocument",
    "ClientCacheManager",
    "InMemoryDurableStore",
    "InMemorySessionStore",
    "InProcessBroadcastHub",
    "MenuConfigLoader",
    "MenuLoadResult",
    "RedisBroadcastTransport",
    "RedisDurableStore",
    "StoragePlatform",
    "TierResult",
    "get_cache_age",
    "is_expired",
    "is_stale",
]
