"""
Menu Configuration Loader

Client-side consumer of the cache: decides when the cached view is good
enough and when the menus endpoint must be called.

    fresh cached view          -> returned, no network
    stale, not expired         -> returned, refresh scheduled in background
    expired / missing / skip   -> fetched from the endpoint
    fetch failed               -> cached view if any, else the static defaults

A server ``cacheVersion`` that differs from the cached one invalidates every
tier (and every other context) before the new document is stored.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx

from stepcache.client.cache_manager import ClientCacheManager
from stepcache.client.document import CachedDocument
from stepcache.core.config.constants import GUEST_OWNER_ID, Stage
from stepcache.core.config.menu_defaults import DEFAULT_MENU_LOCATIONS, DEFAULT_MENUS
from stepcache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


@dataclass
class MenuLoadResult:
    menus: dict[str, Any]
    locations: dict[str, Any]
    cache_version: str | None = None
    is_stale: bool = False
    cache_age: str | None = None
    from_cache: bool = False
    is_using_fallback: bool = False
    error: Exception | None = field(default=None, compare=False)


class MenuConfigLoader:
    """
    Loads the menu configuration through the client cache.

    Args:
        cache_manager: The context's client cache
        http_client: httpx client pointed at the API host
        endpoint: Path of the menus endpoint
    """

    def __init__(
        self,
        cache_manager: ClientCacheManager,
        http_client: httpx.AsyncClient,
        endpoint: str = "/api/menus",
    ):
        self._cache = cache_manager
        self._http = http_client
        self._endpoint = endpoint
        self._refresh_task: asyncio.Task | None = None

    def _from_cache(self, doc: CachedDocument, error: Exception | None = None) -> MenuLoadResult:
        return MenuLoadResult(
            menus=doc.payload.get("menus") or DEFAULT_MENUS,
            locations=doc.payload.get("locations") or DEFAULT_MENU_LOCATIONS,
            cache_version=doc.server_version,
            is_stale=self._cache.is_stale(doc),
            cache_age=self._cache.cache_age(doc),
            from_cache=True,
            is_using_fallback=not doc.payload.get("menus"),
            error=error,
        )

    async def load(self, owner_id: str | None = None, skip_cache: bool = False) -> MenuLoadResult:
        owner = owner_id or GUEST_OWNER_ID

        cached = None
        if not skip_cache:
            cached = await self._cache.get(owner_id=owner)
            if cached is not None and not self._cache.is_expired(cached):
                if self._cache.is_stale(cached):
                    self._schedule_refresh(owner, cached)
                return self._from_cache(cached)

        try:
            body = await self._fetch()
        except (httpx.HTTPError, ValueError) as e:
            log_stage(
                logger,
                Stage.CLIENT_LOADER,
                "Menu fetch failed",
                level="warning",
                endpoint=self._endpoint,
                error=str(e),
            )
            if cached is not None:
                return self._from_cache(cached, error=e)
            return MenuLoadResult(
                menus=DEFAULT_MENUS,
                locations=DEFAULT_MENU_LOCATIONS,
                is_using_fallback=True,
                error=e,
            )

        return await self._store(body, cached, owner)

    async def refresh(self, owner_id: str | None = None) -> MenuLoadResult:
        """Load bypassing the cache."""
        return await self.load(owner_id, skip_cache=True)

    async def invalidate(self, owner_id: str | None = None) -> MenuLoadResult:
        """Clear every tier, then reload from the endpoint."""
        await self._cache.invalidate()
        return await self.refresh(owner_id)

    async def wait_for_refresh(self) -> None:
        """Wait for a scheduled background refresh, if one is running."""
        if self._refresh_task is not None:
            await self._refresh_task

    async def _fetch(self) -> dict[str, Any]:
        response = await self._http.get(self._endpoint)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError("Menus endpoint returned a non-object body")
        return body

    async def _store(
        self, body: dict[str, Any], cached: CachedDocument | None, owner: str
    ) -> MenuLoadResult:
        server_version = body.get("cacheVersion")

        if cached is not None and server_version:
            if not await self._cache.check_version(server_version):
                log_stage(
                    logger,
                    Stage.CLIENT_LOADER,
                    "Server version changed, invalidating client cache",
                    cached_version=cached.server_version,
                    server_version=server_version,
                )
                await self._cache.invalidate()

        menus = body.get("menus")
        locations = body.get("locations")
        if menus and locations:
            await self._cache.set(
                {"menus": menus, "locations": locations},
                server_version or str(self._cache.now()),
                owner_id=owner,
            )

        return MenuLoadResult(
            menus=menus or DEFAULT_MENUS,
            locations=locations or DEFAULT_MENU_LOCATIONS,
            cache_version=server_version,
            is_using_fallback=not menus,
        )

    def _schedule_refresh(self, owner: str, cached: CachedDocument) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.ensure_future(self._background_refresh(owner, cached))

    async def _background_refresh(self, owner: str, cached: CachedDocument) -> None:
        log_stage(logger, Stage.CLIENT_LOADER, "Revalidating stale menus", level="debug")
        try:
            body = await self._fetch()
        except (httpx.HTTPError, ValueError) as e:
            log_stage(
                logger,
                Stage.CLIENT_LOADER,
                "Background menu refresh failed",
                level="warning",
                error=str(e),
            )
            return
        await self._store(body, cached, owner)
