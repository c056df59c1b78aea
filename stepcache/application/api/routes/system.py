"""
System Routes

Revalidation webhook called by the database on row changes. The changed
table is mapped to server cache tags, which are then invalidated.
"""

import hmac

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse

from stepcache.application.api.dependencies import ServerCacheDep, SettingsDep
from stepcache.application.api.models.menus import RevalidateWebhook
from stepcache.core.config.constants import HEADER_ADMIN_TOKEN, TABLE_CACHE_TAGS
from stepcache.core.logging.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/system", tags=["System"])


def tags_for_table(table: str | None) -> list[str]:
    """Cache tags affected by a change to ``table``, deduplicated, in order."""
    tags: list[str] = []
    for tag in TABLE_CACHE_TAGS.get(table or "", ()):
        if tag.value not in tags:
            tags.append(tag.value)
    return tags


@router.post("/revalidate", summary="Invalidate cache tags for a database change")
async def revalidate(
    event: RevalidateWebhook,
    settings: SettingsDep,
    server_cache: ServerCacheDep,
    admin_token: str | None = Header(default=None, alias=HEADER_ADMIN_TOKEN),
):
    if admin_token is None or not hmac.compare_digest(
        admin_token.encode("utf-8"), settings.app.REVALIDATION_TOKEN.encode("utf-8")
    ):
        logger.warning("Rejected revalidation request", table=event.table)
        return JSONResponse(status_code=401, content={"message": "Invalid token"})

    tags = tags_for_table(event.table)
    if not tags:
        return {"message": "No tags matched", "revalidated": False}

    for tag in tags:
        server_cache.invalidate_cache(tag)

    logger.info("Revalidated cache tags", table=event.table, tags=tags)
    return {"revalidated": True, "tags": tags, "now": server_cache.now()}
