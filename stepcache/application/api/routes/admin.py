"""
Admin Routes

Menu mutations. Each write bumps the menu version in the repository and
invalidates the "menus" server cache tag; clients notice the new
``cacheVersion`` on their next fetch and drop their own tiers.

Authentication is out of scope here; deployments put these routes behind the
platform's admin gateway.
"""

from fastapi import APIRouter

from stepcache.application.api.dependencies import MenuServiceDep
from stepcache.application.api.models.menus import MenuUpdateRequest, MenuUpdateResponse

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.put(
    "/menus/{menu_id}",
    response_model=MenuUpdateResponse,
    response_model_by_alias=True,
    summary="Replace a menu definition",
)
async def update_menu(
    menu_id: str, body: MenuUpdateRequest, menu_service: MenuServiceDep
) -> MenuUpdateResponse:
    version = await menu_service.update_menu(menu_id, body.label, body.items)
    return MenuUpdateResponse(menu_id=menu_id, cache_version=version)
