"""
Menu Routes

Public read endpoint for the navigation configuration, served through the
"menus" cached fetcher. The response never fails because of the menu source;
the fetcher degrades to the static configuration instead.
"""

from fastapi import APIRouter, Response

from stepcache.application.api.dependencies import MenuServiceDep
from stepcache.application.api.models.menus import MenuConfig
from stepcache.core.config.constants import MENUS_CACHE_CONTROL

router = APIRouter(tags=["Menus"])


@router.get(
    "/menus",
    response_model=MenuConfig,
    response_model_by_alias=True,
    summary="Get menu configuration",
)
async def get_menus(response: Response, menu_service: MenuServiceDep) -> MenuConfig:
    config = await menu_service.get_menus()
    response.headers["Cache-Control"] = MENUS_CACHE_CONTROL
    return config
