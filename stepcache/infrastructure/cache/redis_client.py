"""
Redis Client with Connection Pooling

Architecture:
    RedisClient (Public API)
        ├── ConnectionManager (Connection lifecycle)
        └── OperationExecutor (Command execution with error handling)

Used by the Redis-backed durable store (hash per collection) and the Redis
pub/sub broadcast transport. Connection setup is retried with exponential
backoff; individual commands are not retried, callers treat a failed command
as a miss or a dropped write.
"""

from typing import Any

import redis.asyncio as redis
from redis.asyncio.client import PubSub
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from stepcache.core.config.settings import Settings, get_settings
from stepcache.core.exceptions import CacheConnectionError, CacheKeyError
from stepcache.core.logging.logger import get_logger

logger = get_logger(__name__)

CONNECT_ATTEMPTS = 3


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# =============================================================================


class ConnectionManager:
    """
    Manages Redis connection lifecycle and pooling.

    Pool Configuration (from settings.redis):
    - Max connections
    - Socket and connect timeouts
    - Health check interval
    - decode_responses=True (strings, not bytes)
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._is_connected = False

    async def connect(self) -> redis.Redis:
        """
        Establish connection to Redis with connection pooling.

        STAGE-REDIS.2: Connection establishment

        Raises:
            CacheConnectionError: If every connection attempt fails
        """
        if self._is_connected and self._client:
            return self._client

        try:
            await self._connect_with_retry()
        except (ConnectionError, TimeoutError) as e:
            logger.error("Failed to connect to Redis", stage="REDIS.2", error=str(e))
            raise CacheConnectionError(
                message=f"Failed to connect to Redis: {e}",
                details={
                    "host": self._settings.redis.REDIS_HOST,
                    "port": self._settings.redis.REDIS_PORT,
                    "attempts": CONNECT_ATTEMPTS,
                },
            )

        self._is_connected = True
        logger.info(
            "Redis connected successfully",
            stage="REDIS.2",
            host=self._settings.redis.REDIS_HOST,
            port=self._settings.redis.REDIS_PORT,
            max_connections=self._settings.redis.REDIS_MAX_CONNECTIONS,
        )
        return self._client

    @retry(
        stop=stop_after_attempt(CONNECT_ATTEMPTS),
        wait=wait_exponential(multiplier=0.1, max=2.0) + wait_random(0, 0.1),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        before_sleep=lambda retry_state: logger.info(
            "Redis connect retry",
            stage="REDIS.RETRY",
            attempt=retry_state.attempt_number,
        ),
        reraise=True,
    )
    async def _connect_with_retry(self) -> None:
        redis_settings = self._settings.redis
        self._pool = ConnectionPool(
            host=redis_settings.REDIS_HOST,
            port=redis_settings.REDIS_PORT,
            db=redis_settings.REDIS_DB,
            password=redis_settings.REDIS_PASSWORD,
            max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=redis_settings.REDIS_SOCKET_CONNECT_TIMEOUT,
            socket_timeout=redis_settings.REDIS_SOCKET_TIMEOUT,
            retry_on_timeout=True,
            health_check_interval=redis_settings.REDIS_HEALTH_CHECK_INTERVAL,
            decode_responses=True,
        )
        self._client = redis.Redis(connection_pool=self._pool)

        # Verify the connection is actually usable
        await self._client.ping()

    async def disconnect(self) -> None:
        """
        Close Redis connection and pool.

        STAGE-REDIS.3: Connection cleanup
        """
        if self._client:
            await self._client.aclose()

        if self._pool:
            await self._pool.disconnect()

        self._is_connected = False

        logger.info("Redis disconnected", stage="REDIS.3")

    async def ping(self) -> bool:
        try:
            if self._client and self._is_connected:
                await self._client.ping()
                return True
        except (ConnectionError, TimeoutError):
            pass
        return False

    def get_client(self) -> redis.Redis | None:
        return self._client

    def is_connected(self) -> bool:
        return self._is_connected


# =============================================================================
# LAYER 2: OPERATION EXECUTION
# =============================================================================


class OperationExecutor:
    """
    Executes single Redis commands and converts Redis errors.

    Every RedisError becomes a CacheKeyError carrying the command and key so
    the caller can log it with context.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    async def execute(self, command: str, key: str, *args, **kwargs) -> Any:
        try:
            return await getattr(self._client, command)(key, *args, **kwargs)
        except RedisError as e:
            raise CacheKeyError.from_exception(
                e, message=f"Redis {command.upper()} failed", command=command, key=key
            )


# =============================================================================
# PUBLIC API
# =============================================================================


class RedisClient:
    """
    Redis client facade used by the client-cache Redis adapters.

    Usage:
        client = RedisClient(settings)
        await client.connect()
        await client.hset("menu-cache-db:menuCache", "stepleague_menu_cache", raw)
        await client.disconnect()
    """

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()
        self._connection = ConnectionManager(self._settings)
        self._executor: OperationExecutor | None = None

    async def connect(self) -> None:
        client = await self._connection.connect()
        self._executor = OperationExecutor(client)

    async def disconnect(self) -> None:
        await self._connection.disconnect()
        self._executor = None

    async def ping(self) -> bool:
        return await self._connection.ping()

    def _require_executor(self) -> OperationExecutor:
        if self._executor is None:
            raise CacheConnectionError("Redis client is not connected")
        return self._executor

    async def hget(self, name: str, key: str) -> str | None:
        return await self._require_executor().execute("hget", name, key)

    async def hset(self, name: str, key: str, value: str) -> int:
        return await self._require_executor().execute("hset", name, key, value)

    async def hdel(self, name: str, key: str) -> int:
        return await self._require_executor().execute("hdel", name, key)

    async def publish(self, channel: str, message: str) -> int:
        return await self._require_executor().execute("publish", channel, message)

    def pubsub(self) -> PubSub:
        client = self._connection.get_client()
        if client is None:
            raise CacheConnectionError("Redis client is not connected")
        return client.pubsub(ignore_subscribe_messages=True)
