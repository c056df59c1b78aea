"""
Storage and Messaging Ports

Protocols for the collaborators the cache subsystem consumes. Concrete
adapters live in ``stepcache.client.storage`` / ``stepcache.client.broadcast``
(in-process and Redis-backed); tests substitute in-memory fakes.

Architectural Decision: Protocol-based abstraction
- Components depend on these ports, never on a concrete backend
- Structural subtyping: adapters need no common base class
- ``@runtime_checkable`` so wiring code can assert an adapter fits
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SessionStore(Protocol):
    """
    Session-scoped string key/value store, quota bounded.

    Writes may raise (quota exceeded, store disabled); callers catch.
    """

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


@runtime_checkable
class DurableCollection(Protocol):
    """A named collection inside an opened durable store."""

    async def get(self, key: str) -> dict[str, Any] | None:
        ...

    async def put(self, key: str, value: dict[str, Any]) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


@runtime_checkable
class DurableStore(Protocol):
    """
    Durable structured key/value store.

    ``open`` creates the named store and collection if missing. It may raise
    when the store is unavailable; the client treats that as "no durable tier".
    """

    async def open(self, store_name: str, collection: str) -> DurableCollection:
        ...


MessageHandler = Callable[[dict[str, Any]], None]


@runtime_checkable
class BroadcastChannel(Protocol):
    """
    One participant's handle on a named channel.

    Messages posted on a channel are delivered to every *other* open handle
    of the same name. Delivery is best-effort and at-most-once.
    """

    async def post_message(self, message: dict[str, Any]) -> None:
        ...

    def subscribe(self, handler: MessageHandler) -> None:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class BroadcastTransport(Protocol):
    """Factory for broadcast channel handles."""

    async def open(self, channel_name: str) -> BroadcastChannel:
        ...
