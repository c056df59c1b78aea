from .menus import (
    DEFAULT_MENU_CONFIG,
    MenuConfig,
    MenuUpdateRequest,
    MenuUpdateResponse,
    RevalidateWebhook,
)

__all__ = [
    "DEFAULT_MENU_CONFIG",
    "MenuConfig",
    "MenuUpdateRequest",
    "MenuUpdateResponse",
    "RevalidateWebhook",
]
