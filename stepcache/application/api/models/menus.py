"""
Menu API Models

Request and response bodies for the menu, admin and revalidation endpoints.
Field names on the wire follow the frontend's camelCase (``cacheVersion``).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from stepcache.core.config.menu_defaults import (
    DEFAULT_CACHE_VERSION,
    DEFAULT_MENU_LOCATIONS,
    DEFAULT_MENUS,
)


class MenuConfig(BaseModel):
    """
    Full menu configuration as served by ``GET /api/menus``.

    ``locations`` may be null when location data could not be read; clients
    fall back to their static locations in that case.
    """

    model_config = ConfigDict(populate_by_name=True)

    menus: dict[str, Any] = Field(..., description="Menu definitions keyed by menu id")
    locations: dict[str, Any] | None = Field(default=None, description="Menu locations")
    cache_version: str | None = Field(
        default=None, alias="cacheVersion", description="Server-side version for staleness detection"
    )


DEFAULT_MENU_CONFIG = MenuConfig(
    menus=DEFAULT_MENUS,
    locations=DEFAULT_MENU_LOCATIONS,
    cache_version=DEFAULT_CACHE_VERSION,
)


class MenuUpdateRequest(BaseModel):
    """Replacement definition for one menu."""

    label: str | None = Field(default=None, max_length=100)
    items: list[dict[str, Any]] = Field(default_factory=list)


class MenuUpdateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    menu_id: str
    cache_version: str = Field(..., alias="cacheVersion")


class RevalidateWebhook(BaseModel):
    """
    Database change event.

    Example:
        {"type": "UPDATE", "table": "menu_items", "record": {...}, "old_record": {...}}
    """

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    table: str | None = None
    record: dict[str, Any] | None = None
    old_record: dict[str, Any] | None = None
