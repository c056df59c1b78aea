"""
FastAPI Dependency Injection

Route handlers receive the application's components through these providers.
The components are created once per application in ``create_app`` and stored
on ``app.state``; tests build an app with their own settings and repository
and the routes pick those up unchanged.

Example:
    @router.get("/example")
    async def my_route(settings: SettingsDep):
        return {"env": settings.app.ENVIRONMENT}
"""

from typing import Annotated

from fastapi import Depends, Request

from stepcache.application.services.menu_service import MenuService
from stepcache.core.config.settings import Settings
from stepcache.infrastructure.cache.server_cache import ServerCache


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_server_cache(request: Request) -> ServerCache:
    return request.app.state.server_cache


def get_menu_service(request: Request) -> MenuService:
    return request.app.state.menu_service


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ServerCacheDep = Annotated[ServerCache, Depends(get_server_cache)]
MenuServiceDep = Annotated[MenuService, Depends(get_menu_service)]
