"""
Broadcast Transports for Cross-Context Cache Sync

Two implementations of the ``BroadcastTransport`` port:

- **InProcessBroadcastHub**: channels opened on the same hub with the same
  name deliver to each other synchronously, inside ``post_message``. Used for
  client contexts sharing one event loop, and in tests.
- **RedisBroadcastTransport**: Redis pub/sub. Each channel handle runs a
  listener task; envelopes carry a sender id so a handle never receives its
  own messages.

Both are best-effort and at-most-once: a context that is not subscribed when
a message is posted never sees it.
"""

import asyncio
import copy
import uuid
from typing import Any

import orjson

from stepcache.core.config.constants import Stage
from stepcache.core.interfaces.storage import MessageHandler
from stepcache.core.logging.logger import get_logger, log_stage
from stepcache.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)


def _dispatch(handlers: list[MessageHandler], message: dict[str, Any], channel: str) -> None:
    for handler in list(handlers):
        try:
            handler(message)
        except Exception as e:
            log_stage(
                logger,
                Stage.CLIENT_BROADCAST,
                "Broadcast handler failed",
                level="warning",
                channel=channel,
                error=str(e),
            )


# =============================================================================
# IN-PROCESS
# =============================================================================


class InProcessChannel:
    def __init__(self, hub: "InProcessBroadcastHub", name: str):
        self._hub = hub
        self.name = name
        self._handlers: list[MessageHandler] = []
        self.closed = False

    async def post_message(self, message: dict[str, Any]) -> None:
        if self.closed:
            return
        self._hub._deliver(self, message)

    def subscribe(self, handler: MessageHandler) -> None:
        self._handlers.append(handler)

    def _receive(self, message: dict[str, Any]) -> None:
        _dispatch(self._handlers, message, self.name)

    async def close(self) -> None:
        self.closed = True
        self._handlers.clear()
        self._hub._detach(self)


class InProcessBroadcastHub:
    """
    Shared in-process event emitter standing in for a same-origin broadcast
    primitive. Each receiver gets its own copy of the message.
    """

    def __init__(self):
        self._channels: dict[str, list[InProcessChannel]] = {}

    async def open(self, channel_name: str) -> InProcessChannel:
        channel = InProcessChannel(self, channel_name)
        self._channels.setdefault(channel_name, []).append(channel)
        return channel

    def _deliver(self, sender: InProcessChannel, message: dict[str, Any]) -> None:
        for channel in list(self._channels.get(sender.name, [])):
            if channel is not sender and not channel.closed:
                channel._receive(copy.deepcopy(message))

    def _detach(self, channel: InProcessChannel) -> None:
        peers = self._channels.get(channel.name, [])
        if channel in peers:
            peers.remove(channel)

    def subscriber_count(self, channel_name: str) -> int:
        return len(self._channels.get(channel_name, []))


# =============================================================================
# REDIS PUB/SUB
# =============================================================================


class RedisBroadcastChannel:
    """
    Channel handle over Redis pub/sub.

    Wire format: ``{"sender": <handle id>, "message": {...}}`` encoded with
    orjson. Undecodable payloads are logged and dropped.
    """

    def __init__(self, client: RedisClient, name: str):
        self._client = client
        self.name = name
        self._sender_id = uuid.uuid4().hex
        self._handlers: list[MessageHandler] = []
        self._pubsub = None
        self._listener: asyncio.Task | None = None

    async def start(self) -> None:
        self._pubsub = self._client.pubsub()
        await self._pubsub.subscribe(self.name)
        self._listener = asyncio.create_task(self._listen())

    async def _listen(self) -> None:
        async for raw in self._pubsub.listen():
            if raw.get("type") != "message":
                continue
            self._handle_raw(raw.get("data"))

    def _handle_raw(self, data: Any) -> None:
        try:
            envelope = orjson.loads(data)
        except (orjson.JSONDecodeError, TypeError) as e:
            log_stage(
                logger,
                Stage.CLIENT_BROADCAST,
                "Dropping undecodable broadcast",
                level="warning",
                channel=self.name,
                error=str(e),
            )
            return

        if not isinstance(envelope, dict) or envelope.get("sender") == self._sender_id:
            return
        message = envelope.get("message")
        if isinstance(message, dict):
            _dispatch(self._handlers, message, self.name)

    async def post_message(self, message: dict[str, Any]) -> None:
        payload = orjson.dumps({"sender": self._sender_id, "message": message}).decode("utf-8")
        await self._client.publish(self.name, payload)

    def subscribe(self, handler: MessageHandler) -> None:
        self._handlers.append(handler)

    async def close(self) -> None:
        self._handlers.clear()
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
        if self._pubsub is not None:
            await self._pubsub.unsubscribe(self.name)
            await self._pubsub.aclose()
            self._pubsub = None


class RedisBroadcastTransport:
    """Opens Redis pub/sub channel handles; connects the client on first use."""

    def __init__(self, client: RedisClient):
        self._client = client

    async def open(self, channel_name: str) -> RedisBroadcastChannel:
        await self._client.connect()
        channel = RedisBroadcastChannel(self._client, channel_name)
        await channel.start()
        return channel
