"""
Core Interfaces Module

Abstract ports consumed by the cache subsystem, enabling dependency
injection and testability.

Components:
-----------
- **clock.py**: epoch-millisecond clock type and the system clock
- **storage.py**: SessionStore, DurableStore, BroadcastTransport protocols
- **reporting.py**: ErrorReporter protocol

Usage:
------
```python
from stepcache.core.interfaces import DurableStore, SessionStore

def build_tiers(session: SessionStore, durable: DurableStore):
    ...
```
"""

from stepcache.core.interfaces.clock import Clock, system_clock
from stepcache.core.interfaces.reporting import ErrorReporter
from stepcache.core.interfaces.storage import (
    BroadcastChannel,
    BroadcastTransport,
    DurableCollection,
    DurableStore,
    MessageHandler,
    SessionStore,
)

__all__ = [
    "Clock",
    "system_clock",
    "ErrorReporter",
    "SessionStore",
    "DurableStore",
    "DurableCollection",
    "BroadcastTransport",
    "BroadcastChannel",
    "MessageHandler",
]
