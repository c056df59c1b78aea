"""
Client Cache Tiers

Each tier adapts one storage backend to a uniform read/write/clear interface.
The public methods never raise: any backend failure is captured into the
returned ``TierResult`` and the manager decides how to log it.

    MemoryTier   in-process variable, lost with the context
    SessionTier  session-scoped string store (JSON text)
    DurableTier  durable structured store (dicts), attached after async init
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from stepcache.client.document import CachedDocument
from stepcache.core.exceptions import StorageUnavailableError
from stepcache.core.interfaces.storage import DurableCollection, SessionStore


@dataclass(frozen=True)
class TierResult:
    """Outcome of one tier operation: a value (possibly None) or an error."""

    value: Any = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "TierResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "TierResult":
        return cls(error=error)


class CacheTier(ABC):
    """Base class wrapping backend calls with per-tier error capture."""

    name: str = "tier"

    async def read(self) -> TierResult:
        try:
            return TierResult.success(await self._read())
        except Exception as e:
            return TierResult.failure(e)

    async def write(self, doc: CachedDocument) -> TierResult:
        try:
            await self._write(doc)
            return TierResult.success()
        except Exception as e:
            return TierResult.failure(e)

    async def clear(self) -> TierResult:
        try:
            await self._clear()
            return TierResult.success()
        except Exception as e:
            return TierResult.failure(e)

    @abstractmethod
    async def _read(self) -> CachedDocument | None:
        ...

    @abstractmethod
    async def _write(self, doc: CachedDocument) -> None:
        ...

    @abstractmethod
    async def _clear(self) -> None:
        ...


class MemoryTier(CacheTier):
    """
    Tier 1. Synchronous accessors are exposed for the broadcast handler,
    which must update this tier without awaiting.
    """

    name = "memory"

    def __init__(self):
        self._doc: CachedDocument | None = None

    def peek(self) -> CachedDocument | None:
        return self._doc

    def replace(self, doc: CachedDocument | None) -> None:
        self._doc = doc

    async def _read(self) -> CachedDocument | None:
        return self._doc

    async def _write(self, doc: CachedDocument) -> None:
        self._doc = doc

    async def _clear(self) -> None:
        self._doc = None


class SessionTier(CacheTier):
    """Tier 2. Stores the document as JSON text under the cache key."""

    name = "session"

    def __init__(self, store: SessionStore, key: str):
        self._store = store
        self._key = key

    async def _read(self) -> CachedDocument | None:
        raw = self._store.get_item(self._key)
        if raw is None:
            return None
        return CachedDocument.model_validate_json(raw)

    async def _write(self, doc: CachedDocument) -> None:
        self._store.set_item(self._key, doc.model_dump_json())

    async def _clear(self) -> None:
        self._store.remove_item(self._key)

    def clear_now(self) -> TierResult:
        """Clear without awaiting, for the broadcast handler."""
        try:
            self._store.remove_item(self._key)
            return TierResult.success()
        except Exception as e:
            return TierResult.failure(e)


class DurableTier(CacheTier):
    """
    Tier 3. The collection is attached once the durable store has been
    opened; until then (or if opening failed) every call reports
    ``StorageUnavailableError``.
    """

    name = "durable"

    def __init__(self, key: str):
        self._key = key
        self._collection: DurableCollection | None = None

    def attach(self, collection: DurableCollection) -> None:
        self._collection = collection

    @property
    def available(self) -> bool:
        return self._collection is not None

    def _require_collection(self) -> DurableCollection:
        if self._collection is None:
            raise StorageUnavailableError("Durable store is not open", details={"tier": self.name})
        return self._collection

    async def _read(self) -> CachedDocument | None:
        raw = await self._require_collection().get(self._key)
        if raw is None:
            return None
        return CachedDocument.model_validate(raw)

    async def _write(self, doc: CachedDocument) -> None:
        await self._require_collection().put(self._key, doc.model_dump())

    async def _clear(self) -> None:
        await self._require_collection().delete(self._key)
