"""
Storage Platform

Explicit description of what the current client context can use. A context
without storage (server-side rendering, a worker without a session) is
modelled with ``StoragePlatform.unavailable()``; the cache manager then turns
every operation into a no-op instead of probing the environment.
"""

from dataclasses import dataclass

from stepcache.client.broadcast import InProcessBroadcastHub
from stepcache.client.storage import InMemoryDurableStore, InMemorySessionStore
from stepcache.core.interfaces.storage import BroadcastTransport, DurableStore, SessionStore


@dataclass
class StoragePlatform:
    """
    Capabilities of one client context.

    Any backend may be None, which disables that tier (or cross-context sync)
    without affecting the others.
    """

    session_store: SessionStore | None = None
    durable_store: DurableStore | None = None
    broadcast: BroadcastTransport | None = None
    enabled: bool = True

    @classmethod
    def unavailable(cls) -> "StoragePlatform":
        return cls(enabled=False)

    @classmethod
    def in_memory(
        cls,
        durable_store: InMemoryDurableStore | None = None,
        hub: InProcessBroadcastHub | None = None,
        session_quota_bytes: int = 5 * 1024 * 1024,
    ) -> "StoragePlatform":
        """
        Platform for one in-process context. Pass the same ``durable_store``
        and ``hub`` to several contexts to make them share an origin.
        """
        return cls(
            session_store=InMemorySessionStore(quota_bytes=session_quota_bytes),
            durable_store=durable_store if durable_store is not None else InMemoryDurableStore(),
            broadcast=hub if hub is not None else InProcessBroadcastHub(),
        )
