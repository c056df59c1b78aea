"""
Unit Tests for MenuConfigLoader

The menus endpoint is served by an httpx.MockTransport so every path runs
without a network: fresh, stale with background refresh, expired, version
change and fetch failure.
"""

import httpx
import pytest

from stepcache.client.menu_loader import MenuConfigLoader
from stepcache.core.config.menu_defaults import DEFAULT_MENUS

SERVER_MENUS = {"main": {"id": "main", "items": [{"label": "Dashboard", "href": "/dashboard"}]}}
SERVER_LOCATIONS = {"app_header": {"menu_ids": ["main"]}}


class MenusEndpoint:
    """Mock menus endpoint with a switchable version and failure mode."""

    def __init__(self, version="v1"):
        self.version = version
        self.fail = False
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.fail:
            return httpx.Response(503, json={"error": "unavailable"})
        return httpx.Response(
            200,
            json={"menus": SERVER_MENUS, "locations": SERVER_LOCATIONS, "cacheVersion": self.version},
        )


@pytest.fixture
def endpoint():
    return MenusEndpoint()


@pytest.fixture
async def http_client(endpoint):
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(endpoint), base_url="http://testserver"
    ) as client:
        yield client


@pytest.fixture
def loader(cache_manager, http_client):
    return MenuConfigLoader(cache_manager, http_client)


@pytest.mark.unit
class TestMenuConfigLoader:
    @pytest.mark.asyncio
    async def test_cold_load_fetches_and_caches(self, loader, cache_manager, endpoint):
        result = await loader.load("user-1")

        assert result.menus == SERVER_MENUS
        assert result.cache_version == "v1"
        assert result.from_cache is False
        assert endpoint.calls == 1
        cached = await cache_manager.get(owner_id="user-1")
        assert cached.server_version == "v1"

    @pytest.mark.asyncio
    async def test_fresh_cache_skips_network(self, loader, endpoint, clock):
        await loader.load("user-1")
        clock.advance(30_000)

        result = await loader.load("user-1")

        assert result.from_cache is True
        assert result.is_stale is False
        assert result.cache_age == "30s ago"
        assert endpoint.calls == 1

    @pytest.mark.asyncio
    async def test_stale_cache_served_and_refreshed_in_background(
        self, loader, cache_manager, endpoint, clock
    ):
        await loader.load("user-1")
        clock.advance(90_000)

        result = await loader.load("user-1")
        assert result.from_cache is True
        assert result.is_stale is True

        await loader.wait_for_refresh()

        assert endpoint.calls == 2
        refreshed = await cache_manager.get(owner_id="user-1")
        assert refreshed.written_at == clock()

    @pytest.mark.asyncio
    async def test_expired_cache_fetches(self, loader, endpoint, clock):
        await loader.load("user-1")
        clock.advance(310_000)

        result = await loader.load("user-1")

        assert result.from_cache is False
        assert endpoint.calls == 2

    @pytest.mark.asyncio
    async def test_version_change_invalidates_before_storing(
        self, loader, cache_manager, endpoint, clock
    ):
        await loader.load("user-1")
        endpoint.version = "v2"
        clock.advance(310_000)

        result = await loader.load("user-1")

        assert result.cache_version == "v2"
        assert (await cache_manager.get(owner_id="user-1")).server_version == "v2"

    @pytest.mark.asyncio
    async def test_fetch_failure_without_cache_uses_defaults(self, loader, endpoint):
        endpoint.fail = True

        result = await loader.load()

        assert result.is_using_fallback is True
        assert result.menus == DEFAULT_MENUS
        assert isinstance(result.error, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_fetch_failure_with_expired_cache_serves_cache(self, loader, endpoint, clock):
        await loader.load("user-1")
        endpoint.fail = True
        clock.advance(310_000)

        result = await loader.load("user-1")

        assert result.from_cache is True
        assert result.menus == SERVER_MENUS
        assert result.error is not None

    @pytest.mark.asyncio
    async def test_refresh_bypasses_cache(self, loader, endpoint):
        await loader.load("user-1")

        await loader.refresh("user-1")

        assert endpoint.calls == 2

    @pytest.mark.asyncio
    async def test_invalidate_clears_and_reloads(self, loader, cache_manager, endpoint):
        await loader.load("user-1")

        result = await loader.invalidate("user-1")

        assert endpoint.calls == 2
        assert result.cache_version == "v1"
        assert await cache_manager.get(owner_id="user-1") is not None

    @pytest.mark.asyncio
    async def test_guest_is_default_owner(self, loader, cache_manager):
        await loader.load()

        assert (await cache_manager.get()).owner_id == "guest"
