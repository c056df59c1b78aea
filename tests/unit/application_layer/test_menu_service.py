"""
Unit Tests for MenuService and InMemoryMenuRepository
"""

import pytest

from stepcache.application.api.models.menus import DEFAULT_MENU_CONFIG
from stepcache.application.services.menu_service import InMemoryMenuRepository, MenuService
from stepcache.infrastructure.cache.server_cache import ServerCache


@pytest.fixture
def server_cache(settings, clock):
    return ServerCache(settings=settings, clock=clock)


@pytest.mark.unit
class TestInMemoryMenuRepository:
    @pytest.mark.asyncio
    async def test_upsert_bumps_version(self, clock):
        repository = InMemoryMenuRepository(clock=clock)
        before = repository.cache_version

        clock.advance(10)
        version = await repository.upsert_menu("main", "Main", [])

        assert version != before
        assert (await repository.load()).cache_version == version

    @pytest.mark.asyncio
    async def test_load_returns_copies(self, clock):
        repository = InMemoryMenuRepository(clock=clock)

        config = await repository.load()
        config.menus["main"] = "tampered"

        assert (await repository.load()).menus["main"] != "tampered"


@pytest.mark.unit
class TestMenuService:
    @pytest.mark.asyncio
    async def test_reads_are_cached_until_update(self, server_cache, clock):
        repository = InMemoryMenuRepository(clock=clock)
        service = MenuService(server_cache, repository)

        first = await service.get_menus()
        assert await service.get_menus() is first

        version = await service.update_menu("help", "Help", [{"label": "FAQ"}])

        updated = await service.get_menus()
        assert updated.cache_version == version
        assert updated.menus["help"]["items"] == [{"label": "FAQ"}]

    @pytest.mark.asyncio
    async def test_failing_repository_serves_static_config(self, server_cache, clock):
        repository = InMemoryMenuRepository(clock=clock)

        async def broken_load():
            raise RuntimeError("database unavailable")

        repository.load = broken_load
        service = MenuService(server_cache, repository)

        assert await service.get_menus() == DEFAULT_MENU_CONFIG
