"""
Menu Service

Business-logic layer between the menu routes and the server cache.

    MenuService
        ├── InMemoryMenuRepository (source of truth, versioned on every write)
        └── ServerCache fetcher tagged "menus" (timeout, breaker, fallback)

Reads go through the cached fetcher; writes go to the repository and then
invalidate the "menus" tag so the next read recomputes.
"""

import copy
from typing import Any

from stepcache.application.api.models.menus import DEFAULT_MENU_CONFIG, MenuConfig
from stepcache.core.config.constants import CacheTag
from stepcache.core.config.menu_defaults import DEFAULT_MENU_LOCATIONS, DEFAULT_MENUS
from stepcache.core.interfaces.clock import Clock, system_clock
from stepcache.core.logging.logger import get_logger
from stepcache.infrastructure.cache.server_cache import ServerCache

logger = get_logger(__name__)


class InMemoryMenuRepository:
    """
    Process-local menu store.

    Every write bumps the revision; the cache version reported to clients is
    derived from the revision and the write time so a client can tell that
    the menus changed without comparing payloads.
    """

    def __init__(
        self,
        menus: dict[str, Any] | None = None,
        locations: dict[str, Any] | None = None,
        clock: Clock | None = None,
    ):
        self._clock = clock or system_clock
        self._menus = copy.deepcopy(menus if menus is not None else DEFAULT_MENUS)
        self._locations = copy.deepcopy(locations if locations is not None else DEFAULT_MENU_LOCATIONS)
        self._revision = 1
        self._updated_at = self._clock()

    @property
    def cache_version(self) -> str:
        return f"{self._revision}-{self._updated_at}"

    async def load(self) -> MenuConfig:
        return MenuConfig(
            menus=copy.deepcopy(self._menus),
            locations=copy.deepcopy(self._locations),
            cache_version=self.cache_version,
        )

    async def upsert_menu(self, menu_id: str, label: str | None, items: list[dict[str, Any]]) -> str:
        menu: dict[str, Any] = {"id": menu_id, "items": copy.deepcopy(items)}
        if label is not None:
            menu["label"] = label
        self._menus[menu_id] = menu
        self._revision += 1
        self._updated_at = self._clock()
        return self.cache_version


class MenuService:
    """
    Menu reads and writes on top of the server cache.

    Args:
        server_cache: Registry the menus fetcher is created in
        repository: Menu source of truth
    """

    def __init__(self, server_cache: ServerCache, repository: InMemoryMenuRepository):
        self._server_cache = server_cache
        self._repository = repository
        self._fetch_menus = server_cache.create_cached_fetcher(
            tag=CacheTag.MENUS,
            fetcher=repository.load,
            fallback=DEFAULT_MENU_CONFIG,
        )

    async def get_menus(self) -> MenuConfig:
        return await self._fetch_menus()

    async def update_menu(self, menu_id: str, label: str | None, items: list[dict[str, Any]]) -> str:
        version = await self._repository.upsert_menu(menu_id, label, items)
        self._server_cache.invalidate_cache(CacheTag.MENUS)
        logger.info("Menu updated", menu_id=menu_id, cache_version=version)
        return version

    def warmers(self) -> list:
        """Cached fetchers to run at startup."""
        return [self._fetch_menus]
