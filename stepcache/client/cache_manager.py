#!/usr/bin/env python3
"""
Client Multi-Tier Cache Manager

Architecture:
    ClientCacheManager (Public API)
        ├── MemoryTier   (tier 1, never waits for initialisation)
        ├── SessionTier  (tier 2, session-scoped string store)
        ├── DurableTier  (tier 3, durable structured store)
        └── BroadcastChannel (cross-context sync)

Read path:  memory -> session -> durable, promoting a hit into every faster tier.
Write path: memory, then session and durable best-effort, then broadcast.

Initialisation (opening the durable store, subscribing to the sync channel)
runs once in a lazily started task. Tier-2/3 access awaits it; tier-1 reads
never do. A failed step disables only that tier or the sync.

Cross-context messages:
    {"type": "cache-updated", "document": {...}, "origin": <id>}
    {"type": "cache-invalidated", "origin": <id>}

Receivers ignore their own origin. ``cache-updated`` replaces tier 1;
``cache-invalidated`` clears tier 1 and, synchronously, the receiver's
own session tier. Receivers never re-broadcast.

No method raises. Storage failures become misses or dropped writes, logged at
warning level.
"""

import asyncio
import uuid
from typing import Any

from pydantic import ValidationError

from stepcache.client.document import CachedDocument, get_cache_age, is_expired, is_stale
from stepcache.client.platform import StoragePlatform
from stepcache.client.tiers import CacheTier, DurableTier, MemoryTier, SessionTier, TierResult
from stepcache.core.config.constants import BroadcastMessageType, Stage
from stepcache.core.config.settings import Settings, get_settings
from stepcache.core.interfaces.clock import Clock, system_clock
from stepcache.core.interfaces.storage import BroadcastChannel
from stepcache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


class ClientCacheManager:
    """
    Read-through cache for one configuration document per cache key.

    Args:
        platform: Storage backends and capability flag for this context
        clock: Epoch-milliseconds callable
        settings: Application settings (key names, durations, schema version)
        origin_id: Identifier stamped on outgoing broadcasts (random by default)

    Usage:
        manager = ClientCacheManager(StoragePlatform.in_memory())
        await manager.set({"menus": {...}, "locations": {...}}, "v1", owner_id="u1")
        doc = await manager.get(owner_id="u1")
    """

    def __init__(
        self,
        platform: StoragePlatform,
        clock: Clock | None = None,
        settings: Settings | None = None,
        origin_id: str | None = None,
    ):
        self._platform = platform
        self._clock = clock or system_clock
        self._config = (settings or get_settings()).client_cache
        self.origin_id = origin_id or uuid.uuid4().hex

        key = self._config.CLIENT_CACHE_KEY
        self._memory = MemoryTier()
        self._session: SessionTier | None = None
        if platform.session_store is not None:
            self._session = SessionTier(platform.session_store, key)
        self._durable: DurableTier | None = None
        if platform.durable_store is not None:
            self._durable = DurableTier(key)

        self._channel: BroadcastChannel | None = None
        self._init_task: asyncio.Task | None = None

    @property
    def enabled(self) -> bool:
        return self._platform.enabled

    @property
    def sync_enabled(self) -> bool:
        return self._channel is not None

    def now(self) -> int:
        return self._clock()

    def peek_memory(self) -> CachedDocument | None:
        """Current tier-1 document, without touching any other tier."""
        return self._memory.peek()

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Run initialisation now instead of on first tier-2/3 access."""
        await self._ensure_initialized()

    async def _ensure_initialized(self) -> None:
        if not self.enabled:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        await asyncio.shield(self._init_task)

    async def _initialize(self) -> None:
        if self._durable is not None:
            try:
                collection = await self._platform.durable_store.open(
                    self._config.CLIENT_DURABLE_STORE_NAME,
                    self._config.CLIENT_DURABLE_COLLECTION,
                )
                self._durable.attach(collection)
            except Exception as e:
                log_stage(
                    logger,
                    Stage.CLIENT_INIT,
                    "Durable store not available, continuing without it",
                    level="warning",
                    error=str(e),
                )

        if self._platform.broadcast is not None:
            try:
                channel = await self._platform.broadcast.open(self._config.CLIENT_BROADCAST_CHANNEL)
                channel.subscribe(self._on_message)
                self._channel = channel
            except Exception as e:
                log_stage(
                    logger,
                    Stage.CLIENT_INIT,
                    "Broadcast not available, cross-context sync disabled",
                    level="warning",
                    error=str(e),
                )

        log_stage(
            logger,
            Stage.CLIENT_INIT,
            "Client cache initialized",
            level="debug",
            origin=self.origin_id,
            session=self._session is not None,
            durable=self._durable is not None and self._durable.available,
            sync=self._channel is not None,
        )

    def _lower_tiers(self) -> list[CacheTier]:
        tiers: list[CacheTier] = []
        if self._session is not None:
            tiers.append(self._session)
        if self._durable is not None and self._durable.available:
            tiers.append(self._durable)
        return tiers

    @staticmethod
    def _warn_on_failure(result: TierResult, tier: CacheTier, stage: Stage, message: str) -> None:
        if not result.ok:
            log_stage(
                logger,
                stage,
                message,
                level="warning",
                tier=tier.name,
                error=str(result.error),
                error_type=result.error.__class__.__name__,
            )

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def _accept_owner(self, doc: CachedDocument, owner_id: str | None) -> CachedDocument | None:
        if owner_id is not None and doc.owner_id is not None and doc.owner_id != owner_id:
            log_stage(
                logger,
                Stage.CLIENT_TIER_READ,
                "Cached view belongs to another owner, treating as miss",
                owner_id=owner_id,
            )
            return None
        return doc

    async def get(self, owner_id: str | None = None) -> CachedDocument | None:
        """
        Return the cached document, consulting tiers fastest first.

        A hit in tier 2 is promoted into tier 1; a hit in tier 3 into tiers 1
        and 2. Documents written with another schema version are discarded.
        When ``owner_id`` is given, a document owned by somebody else is a miss.
        """
        if not self.enabled:
            return None

        doc = self._memory.peek()
        if doc is not None:
            return self._accept_owner(doc, owner_id)

        await self._ensure_initialized()

        promote_into: list[CacheTier] = [self._memory]
        for tier in self._lower_tiers():
            result = await tier.read()
            if not result.ok:
                self._warn_on_failure(result, tier, Stage.CLIENT_TIER_READ, "Tier read failed")
                promote_into.append(tier)
                continue

            doc = result.value
            if doc is None:
                promote_into.append(tier)
                continue

            if doc.schema_version != self._config.CLIENT_CACHE_SCHEMA_VERSION:
                log_stage(
                    logger,
                    Stage.CLIENT_TIER_READ,
                    "Discarding document with incompatible schema",
                    tier=tier.name,
                    found=doc.schema_version,
                    expected=self._config.CLIENT_CACHE_SCHEMA_VERSION,
                )
                cleared = await tier.clear()
                self._warn_on_failure(cleared, tier, Stage.CLIENT_TIER_READ, "Tier clear failed")
                promote_into.append(tier)
                continue

            for target in promote_into:
                written = await target.write(doc)
                self._warn_on_failure(written, target, Stage.CLIENT_TIER_PROMOTE, "Tier promotion failed")
            log_stage(
                logger,
                Stage.CLIENT_TIER_PROMOTE,
                "Cache hit in lower tier",
                level="debug",
                tier=tier.name,
                promoted_into=[t.name for t in promote_into],
            )
            return self._accept_owner(doc, owner_id)

        return None

    async def check_version(self, server_version: str) -> bool:
        """False when nothing is cached or the cached server version differs."""
        current = await self.get()
        if current is None:
            return False

        if current.server_version != server_version:
            log_stage(
                logger,
                Stage.CLIENT_VERSION_CHECK,
                "Server version mismatch",
                server_version=server_version,
                cached_version=current.server_version,
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    async def set(
        self, payload: dict[str, Any], server_version: str, owner_id: str | None = None
    ) -> CachedDocument | None:
        """Write a new document to every tier best-effort and broadcast it."""
        if not self.enabled:
            return None

        try:
            doc = CachedDocument(
                payload=payload,
                server_version=server_version,
                written_at=self._clock(),
                schema_version=self._config.CLIENT_CACHE_SCHEMA_VERSION,
                owner_id=owner_id,
            )
        except ValidationError as e:
            log_stage(
                logger,
                Stage.CLIENT_TIER_WRITE,
                "Rejected document that cannot be cached",
                level="warning",
                error=str(e),
            )
            return None
        self._memory.replace(doc)

        await self._ensure_initialized()
        for tier in self._lower_tiers():
            written = await tier.write(doc)
            self._warn_on_failure(written, tier, Stage.CLIENT_TIER_WRITE, "Tier write failed")

        await self._broadcast(
            {"type": BroadcastMessageType.CACHE_UPDATED.value, "document": doc.model_dump()}
        )
        return doc

    async def invalidate(self) -> None:
        """Clear every tier, then tell other contexts. Safe to call repeatedly."""
        if not self.enabled:
            return

        self._memory.replace(None)

        await self._ensure_initialized()
        for tier in self._lower_tiers():
            cleared = await tier.clear()
            self._warn_on_failure(cleared, tier, Stage.CLIENT_INVALIDATE, "Tier clear failed")

        log_stage(logger, Stage.CLIENT_INVALIDATE, "Client cache invalidated", level="debug")
        await self._broadcast({"type": BroadcastMessageType.CACHE_INVALIDATED.value})

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_stale(self, doc: CachedDocument | None) -> bool:
        return is_stale(doc, self._clock(), self._config.CLIENT_STALE_DURATION_MS)

    def is_expired(self, doc: CachedDocument | None) -> bool:
        return is_expired(doc, self._clock(), self._config.CLIENT_CACHE_DURATION_MS)

    def cache_age(self, doc: CachedDocument) -> str:
        return get_cache_age(doc.written_at, self._clock())

    # ------------------------------------------------------------------
    # Cross-context sync
    # ------------------------------------------------------------------

    async def _broadcast(self, message: dict[str, Any]) -> None:
        if self._channel is None:
            return
        message["origin"] = self.origin_id
        try:
            await self._channel.post_message(message)
        except Exception as e:
            log_stage(
                logger,
                Stage.CLIENT_BROADCAST,
                "Broadcast failed",
                level="warning",
                message_type=message.get("type"),
                error=str(e),
            )

    def _on_message(self, message: dict[str, Any]) -> None:
        if message.get("origin") == self.origin_id:
            return

        message_type = message.get("type")
        if message_type == BroadcastMessageType.CACHE_UPDATED.value:
            try:
                doc = CachedDocument.model_validate(message.get("document"))
            except ValidationError as e:
                log_stage(
                    logger,
                    Stage.CLIENT_BROADCAST,
                    "Ignoring malformed cache update",
                    level="warning",
                    error=str(e),
                )
                return
            if doc.schema_version != self._config.CLIENT_CACHE_SCHEMA_VERSION:
                return
            self._memory.replace(doc)

        elif message_type == BroadcastMessageType.CACHE_INVALIDATED.value:
            self._memory.replace(None)
            if self._session is not None:
                # Cleared before returning; a later get() must not find the old document in tier 2
                cleared = self._session.clear_now()
                self._warn_on_failure(cleared, self._session, Stage.CLIENT_BROADCAST, "Tier clear failed")

        else:
            logger.debug("Ignoring unknown broadcast", stage=Stage.CLIENT_BROADCAST.value, type=message_type)

    async def close(self) -> None:
        """Close the sync subscription once initialisation has settled."""
        if self._init_task is not None:
            await asyncio.shield(self._init_task)

        if self._channel is not None:
            channel, self._channel = self._channel, None
            try:
                await channel.close()
            except Exception as e:
                log_stage(
                    logger,
                    Stage.CLIENT_BROADCAST,
                    "Closing broadcast channel failed",
                    level="warning",
                    error=str(e),
                )
