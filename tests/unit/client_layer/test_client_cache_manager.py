"""
Unit Tests for ClientCacheManager

Tests the tiered read path with promotion, best-effort writes, the version
handshake, invalidation, schema and owner handling, and degraded platforms.
"""

import pytest

from stepcache.client.cache_manager import ClientCacheManager
from stepcache.client.document import CachedDocument
from stepcache.client.platform import StoragePlatform
from stepcache.client.storage import InMemorySessionStore

PAYLOAD = {"menus": {"main": {"id": "main", "items": []}}, "locations": {"footer": "main"}}


@pytest.mark.unit
class TestReadPath:
    @pytest.mark.asyncio
    async def test_miss_on_empty_cache(self, cache_manager):
        assert await cache_manager.get() is None

    @pytest.mark.asyncio
    async def test_set_then_get_from_memory(self, cache_manager, clock):
        clock.set(1_000)
        written = await cache_manager.set(PAYLOAD, "v1")

        doc = await cache_manager.get()

        assert doc == written
        assert doc.server_version == "v1"
        assert doc.written_at == 1_000
        assert doc.schema_version == "1.0.0"

    @pytest.mark.asyncio
    async def test_durable_hit_is_promoted_into_memory_and_session(
        self, make_context, durable_store
    ):
        writer = make_context()
        await writer.set(PAYLOAD, "v1")

        reader = make_context()
        first = await reader.get()
        assert first is not None
        assert reader.peek_memory() == first

        durable_store.available = False
        reader._memory.replace(None)

        second = await reader.get()

        assert second == first

    @pytest.mark.asyncio
    async def test_session_hit_is_promoted_into_memory(self, cache_manager):
        await cache_manager.set(PAYLOAD, "v1")
        cache_manager._memory.replace(None)

        doc = await cache_manager.get()

        assert doc is not None
        assert cache_manager.peek_memory() == doc

    @pytest.mark.asyncio
    async def test_incompatible_schema_is_discarded(self, make_context, settings, clock):
        store = InMemorySessionStore()
        old = CachedDocument(
            payload=PAYLOAD, server_version="v0", written_at=0, schema_version="0.9.0"
        )
        store.set_item(settings.CLIENT_CACHE_KEY, old.model_dump_json())
        manager = make_context(session_store=store, durable_store=None)

        assert await manager.get() is None
        assert store.get_item(settings.CLIENT_CACHE_KEY) is None

    @pytest.mark.asyncio
    async def test_corrupt_session_entry_is_a_miss(self, make_context, settings):
        store = InMemorySessionStore()
        store.set_item(settings.CLIENT_CACHE_KEY, "{not json")
        manager = make_context(session_store=store, durable_store=None)

        assert await manager.get() is None


@pytest.mark.unit
class TestOwnerScoping:
    @pytest.mark.asyncio
    async def test_other_owner_is_a_miss(self, cache_manager):
        await cache_manager.set(PAYLOAD, "v1", owner_id="user-1")

        assert await cache_manager.get(owner_id="user-2") is None
        assert (await cache_manager.get(owner_id="user-1")).owner_id == "user-1"

    @pytest.mark.asyncio
    async def test_no_owner_filter_when_not_requested(self, cache_manager):
        await cache_manager.set(PAYLOAD, "v1", owner_id="user-1")

        assert await cache_manager.get() is not None


@pytest.mark.unit
class TestVersionHandshake:
    @pytest.mark.asyncio
    async def test_nothing_cached(self, cache_manager):
        assert await cache_manager.check_version("v2") is False

    @pytest.mark.asyncio
    async def test_mismatch(self, cache_manager):
        await cache_manager.set(PAYLOAD, "v1")

        assert await cache_manager.check_version("v2") is False

    @pytest.mark.asyncio
    async def test_match(self, cache_manager):
        await cache_manager.set(PAYLOAD, "v2")

        assert await cache_manager.check_version("v2") is True


@pytest.mark.unit
class TestInvalidate:
    @pytest.mark.asyncio
    async def test_clears_every_tier(self, make_context):
        manager = make_context()
        await manager.set(PAYLOAD, "v1")

        await manager.invalidate()

        assert await manager.get() is None
        assert await make_context().get() is None

    @pytest.mark.asyncio
    async def test_is_idempotent(self, cache_manager):
        await cache_manager.invalidate()
        await cache_manager.invalidate()

        assert await cache_manager.get() is None

        await cache_manager.set(PAYLOAD, "v1")
        await cache_manager.invalidate()
        await cache_manager.invalidate()

        assert await cache_manager.get() is None


@pytest.mark.unit
class TestBestEffortWrites:
    @pytest.mark.asyncio
    async def test_non_object_payload_is_rejected_without_raising(self, cache_manager):
        await cache_manager.set(PAYLOAD, "v1")

        assert await cache_manager.set(["main", "footer"], "v2") is None
        assert await cache_manager.set(PAYLOAD, 42) is None

        assert (await cache_manager.get()).server_version == "v1"

    @pytest.mark.asyncio
    async def test_session_quota_overflow_is_swallowed(self, make_context):
        manager = make_context(session_store=InMemorySessionStore(quota_bytes=10))

        doc = await manager.set(PAYLOAD, "v1")

        assert doc is not None
        assert manager.peek_memory() == doc

    @pytest.mark.asyncio
    async def test_unavailable_durable_store_degrades_to_two_tiers(self, make_context, durable_store):
        durable_store.available = False
        manager = make_context()

        await manager.set(PAYLOAD, "v1")
        manager._memory.replace(None)

        assert (await manager.get()).server_version == "v1"

    @pytest.mark.asyncio
    async def test_durable_store_lost_after_open(self, make_context, durable_store):
        manager = make_context()
        await manager.start()
        durable_store.available = False

        await manager.set(PAYLOAD, "v1")
        await manager.invalidate()

        assert await manager.get() is None


@pytest.mark.unit
class TestPredicatesAndAge:
    @pytest.mark.asyncio
    async def test_manager_predicates_use_clock(self, cache_manager, clock):
        doc = await cache_manager.set(PAYLOAD, "v1")

        clock.advance(30_000)
        assert cache_manager.is_stale(doc) is False
        clock.advance(60_000)
        assert cache_manager.is_stale(doc) is True
        assert cache_manager.is_expired(doc) is False
        clock.advance(220_000)
        assert cache_manager.is_expired(doc) is True
        assert cache_manager.cache_age(doc) == "5m ago"

    def test_missing_document_predicates(self, cache_manager):
        assert cache_manager.is_stale(None) is True
        assert cache_manager.is_expired(None) is True


@pytest.mark.unit
class TestDisabledPlatform:
    @pytest.mark.asyncio
    async def test_every_operation_is_a_noop(self, settings, clock):
        manager = ClientCacheManager(StoragePlatform.unavailable(), clock=clock, settings=settings)

        assert manager.enabled is False
        assert await manager.set(PAYLOAD, "v1") is None
        assert await manager.get() is None
        assert await manager.check_version("v1") is False
        await manager.invalidate()
        await manager.close()

    @pytest.mark.asyncio
    async def test_memory_only_platform(self, settings, clock):
        manager = ClientCacheManager(StoragePlatform(), clock=clock, settings=settings)

        await manager.set(PAYLOAD, "v1")

        assert (await manager.get()).server_version == "v1"
        assert manager.sync_enabled is False
