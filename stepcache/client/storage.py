"""
Storage Adapters for the Client Tiers

In-process adapters (one session store per client context, one durable store
shared by every context of the same origin) and a Redis-backed durable store
for contexts that live in different processes.
"""

import copy
from typing import Any

import orjson

from stepcache.core.config.constants import Stage
from stepcache.core.exceptions import StorageQuotaExceededError, StorageUnavailableError
from stepcache.core.logging.logger import get_logger
from stepcache.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)


# =============================================================================
# SESSION STORE
# =============================================================================


class InMemorySessionStore:
    """
    Quota-bounded string store scoped to one client context.

    Usage is measured as UTF-8 bytes of keys plus values. A write that would
    push usage past ``quota_bytes`` raises ``StorageQuotaExceededError`` and
    leaves the previous value in place.
    """

    def __init__(self, quota_bytes: int = 5 * 1024 * 1024):
        self._quota_bytes = quota_bytes
        self._items: dict[str, str] = {}

    @staticmethod
    def _size(key: str, value: str) -> int:
        return len(key.encode("utf-8")) + len(value.encode("utf-8"))

    @property
    def used_bytes(self) -> int:
        return sum(self._size(k, v) for k, v in self._items.items())

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        current = self._size(key, self._items[key]) if key in self._items else 0
        projected = self.used_bytes - current + self._size(key, value)
        if projected > self._quota_bytes:
            raise StorageQuotaExceededError(
                "Session store quota exceeded",
                details={"key": key, "quota_bytes": self._quota_bytes, "required_bytes": projected},
            )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


# =============================================================================
# DURABLE STORE (IN-PROCESS)
# =============================================================================


class InMemoryDurableCollection:
    """Collection handle; values are deep-copied in and out."""

    def __init__(self, owner: "InMemoryDurableStore", records: dict[str, dict[str, Any]]):
        self._owner = owner
        self._records = records

    def _check_available(self) -> None:
        if not self._owner.available:
            raise StorageUnavailableError("Durable store is unavailable")

    async def get(self, key: str) -> dict[str, Any] | None:
        self._check_available()
        value = self._records.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def put(self, key: str, value: dict[str, Any]) -> None:
        self._check_available()
        self._records[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self._check_available()
        self._records.pop(key, None)


class InMemoryDurableStore:
    """
    Durable store living for the process lifetime.

    Share one instance between client contexts to model same-origin storage.
    Setting ``available`` to False makes ``open`` and every collection call
    raise ``StorageUnavailableError``.
    """

    def __init__(self, available: bool = True):
        self.available = available
        self._stores: dict[tuple[str, str], dict[str, dict[str, Any]]] = {}

    async def open(self, store_name: str, collection: str) -> InMemoryDurableCollection:
        if not self.available:
            raise StorageUnavailableError(
                "Durable store is unavailable",
                details={"store": store_name, "collection": collection},
            )
        records = self._stores.setdefault((store_name, collection), {})
        return InMemoryDurableCollection(self, records)


# =============================================================================
# DURABLE STORE (REDIS)
# =============================================================================


class RedisDurableCollection:
    """
    One Redis hash per collection, named ``"{store}:{collection}"``.
    Values are orjson-encoded.
    """

    def __init__(self, client: RedisClient, hash_name: str):
        self._client = client
        self._hash_name = hash_name

    async def get(self, key: str) -> dict[str, Any] | None:
        raw = await self._client.hget(self._hash_name, key)
        if raw is None:
            return None
        return orjson.loads(raw)

    async def put(self, key: str, value: dict[str, Any]) -> None:
        await self._client.hset(self._hash_name, key, orjson.dumps(value).decode("utf-8"))

    async def delete(self, key: str) -> None:
        await self._client.hdel(self._hash_name, key)


class RedisDurableStore:
    """Durable store backed by Redis hashes; ``open`` connects the client."""

    def __init__(self, client: RedisClient):
        self._client = client

    async def open(self, store_name: str, collection: str) -> RedisDurableCollection:
        await self._client.connect()
        hash_name = f"{store_name}:{collection}"
        logger.debug("Durable store opened", stage=Stage.CLIENT_INIT.value, hash=hash_name)
        return RedisDurableCollection(self._client, hash_name)
