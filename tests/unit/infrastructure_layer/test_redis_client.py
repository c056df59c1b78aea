"""
Unit Tests for RedisClient

Connection failures, command error conversion and the not-connected guard,
all against mocks.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError, ResponseError

from stepcache.core.exceptions import CacheConnectionError, CacheKeyError
from stepcache.infrastructure.cache import redis_client as redis_client_module
from stepcache.infrastructure.cache.redis_client import OperationExecutor, RedisClient


@pytest.mark.unit
class TestOperationExecutor:
    @pytest.mark.asyncio
    async def test_executes_command(self):
        client = MagicMock()
        client.hget = AsyncMock(return_value="value")

        result = await OperationExecutor(client).execute("hget", "hash", "key")

        assert result == "value"
        client.hget.assert_awaited_once_with("hash", "key")

    @pytest.mark.asyncio
    async def test_redis_error_becomes_cache_key_error(self):
        client = MagicMock()
        client.hset = AsyncMock(side_effect=ResponseError("WRONGTYPE"))

        with pytest.raises(CacheKeyError) as exc_info:
            await OperationExecutor(client).execute("hset", "hash", "key", "value")

        assert exc_info.value.details["command"] == "hset"
        assert exc_info.value.details["original_error"] == "ResponseError"


@pytest.mark.unit
class TestRedisClient:
    @pytest.mark.asyncio
    async def test_commands_require_connection(self, settings):
        client = RedisClient(settings)

        with pytest.raises(CacheConnectionError):
            await client.hget("hash", "key")

        with pytest.raises(CacheConnectionError):
            client.pubsub()

    @pytest.mark.asyncio
    async def test_connect_failure_raises_cache_connection_error(self, settings):
        client = RedisClient(settings)
        client._connection._connect_with_retry = AsyncMock(side_effect=ConnectionError("refused"))

        with pytest.raises(CacheConnectionError) as exc_info:
            await client.connect()

        assert exc_info.value.details["host"] == settings.REDIS_HOST

    @pytest.mark.asyncio
    async def test_connect_retries_before_giving_up(self, settings, monkeypatch):
        instance = MagicMock()
        instance.ping = AsyncMock(side_effect=ConnectionError("refused"))
        monkeypatch.setattr(redis_client_module.redis, "Redis", MagicMock(return_value=instance))

        with pytest.raises(CacheConnectionError) as exc_info:
            await RedisClient(settings).connect()

        assert instance.ping.await_count == redis_client_module.CONNECT_ATTEMPTS
        assert exc_info.value.details["attempts"] == redis_client_module.CONNECT_ATTEMPTS

    @pytest.mark.asyncio
    async def test_ping_false_when_not_connected(self, settings):
        assert await RedisClient(settings).ping() is False
