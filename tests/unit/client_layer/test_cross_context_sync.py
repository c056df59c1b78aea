"""
Unit Tests for Cross-Context Sync

Simulated tabs share one InProcessBroadcastHub and one durable store; each
has its own memory and session tiers.
"""

import pytest

from stepcache.client.broadcast import InProcessBroadcastHub
from stepcache.core.config.constants import BroadcastMessageType

PAYLOAD = {"menus": {"main": {"id": "main", "items": []}}, "locations": {"footer": "main"}}


@pytest.mark.unit
class TestCrossContextInvalidation:
    @pytest.mark.asyncio
    async def test_invalidate_clears_other_tab_memory(self, make_context):
        tab_a = make_context()
        tab_b = make_context()
        await tab_b.start()

        await tab_a.set(PAYLOAD, "v1")
        assert tab_b.peek_memory() is not None

        await tab_a.invalidate()

        assert tab_b.peek_memory() is None

    @pytest.mark.asyncio
    async def test_invalidate_clears_other_tab_session(self, make_context):
        tab_a = make_context()
        tab_b = make_context()
        await tab_a.start()
        await tab_b.set(PAYLOAD, "v1")

        await tab_a.invalidate()
        await tab_b.close()

        assert tab_b._session._store.get_item(tab_b._config.CLIENT_CACHE_KEY) is None
        assert await tab_b.get() is None

    @pytest.mark.asyncio
    async def test_get_right_after_remote_invalidate_is_a_miss(self, make_context):
        tab_a = make_context()
        tab_b = make_context()
        await tab_a.start()
        await tab_b.set(PAYLOAD, "v1")

        await tab_a.invalidate()

        assert await tab_b.get() is None
        assert tab_b.peek_memory() is None

    @pytest.mark.asyncio
    async def test_update_replaces_other_tab_memory(self, make_context):
        tab_a = make_context()
        tab_b = make_context()
        await tab_b.start()

        written = await tab_a.set(PAYLOAD, "v2")

        assert tab_b.peek_memory() == written

    @pytest.mark.asyncio
    async def test_late_subscriber_misses_earlier_messages(self, make_context):
        tab_a = make_context()
        await tab_a.set(PAYLOAD, "v1")

        tab_b = make_context()
        await tab_b.start()

        assert tab_b.peek_memory() is None


@pytest.mark.unit
class TestMessageHandling:
    @pytest.mark.asyncio
    async def test_own_origin_is_ignored(self, cache_manager):
        await cache_manager.set(PAYLOAD, "v1")

        cache_manager._on_message(
            {"type": BroadcastMessageType.CACHE_INVALIDATED.value, "origin": cache_manager.origin_id}
        )

        assert cache_manager.peek_memory() is not None

    def test_malformed_update_is_ignored(self, cache_manager):
        cache_manager._on_message(
            {"type": BroadcastMessageType.CACHE_UPDATED.value, "document": {"payload": "x"}, "origin": "other"}
        )

        assert cache_manager.peek_memory() is None

    def test_update_with_other_schema_is_ignored(self, cache_manager):
        cache_manager._on_message(
            {
                "type": BroadcastMessageType.CACHE_UPDATED.value,
                "document": {
                    "payload": PAYLOAD,
                    "server_version": "v1",
                    "written_at": 0,
                    "schema_version": "2.0.0",
                },
                "origin": "other",
            }
        )

        assert cache_manager.peek_memory() is None

    def test_unknown_type_is_ignored(self, cache_manager):
        cache_manager._on_message({"type": "something-else", "origin": "other"})

        assert cache_manager.peek_memory() is None

    @pytest.mark.asyncio
    async def test_close_detaches_from_hub(self, make_context, hub, settings):
        tab_a = make_context()
        tab_b = make_context()
        await tab_a.start()
        await tab_b.start()
        assert hub.subscriber_count(settings.CLIENT_BROADCAST_CHANNEL) == 2

        await tab_a.close()

        assert hub.subscriber_count(settings.CLIENT_BROADCAST_CHANNEL) == 1
        assert tab_a.sync_enabled is False


@pytest.mark.unit
class TestInProcessBroadcastHub:
    @pytest.mark.asyncio
    async def test_delivers_copies_to_other_channels_only(self):
        hub = InProcessBroadcastHub()
        sender = await hub.open("sync")
        receiver = await hub.open("sync")
        other = await hub.open("elsewhere")
        seen = {"sender": [], "receiver": [], "other": []}
        sender.subscribe(seen["sender"].append)
        receiver.subscribe(seen["receiver"].append)
        other.subscribe(seen["other"].append)

        message = {"type": "cache-invalidated"}
        await sender.post_message(message)

        assert seen["receiver"] == [message]
        assert seen["receiver"][0] is not message
        assert seen["sender"] == []
        assert seen["other"] == []

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_delivery(self):
        hub = InProcessBroadcastHub()
        sender = await hub.open("sync")
        receiver = await hub.open("sync")
        received = []

        def broken(message):
            raise RuntimeError("handler bug")

        receiver.subscribe(broken)
        receiver.subscribe(received.append)

        await sender.post_message({"type": "cache-invalidated"})

        assert received == [{"type": "cache-invalidated"}]

    @pytest.mark.asyncio
    async def test_closed_channel_neither_sends_nor_receives(self):
        hub = InProcessBroadcastHub()
        sender = await hub.open("sync")
        receiver = await hub.open("sync")
        received = []
        receiver.subscribe(received.append)

        await receiver.close()
        await sender.post_message({"type": "cache-invalidated"})
        await sender.close()
        await sender.post_message({"type": "cache-invalidated"})

        assert received == []
        assert hub.subscriber_count("sync") == 0
