"""
Debug Routes

Developer-only view of the server cache counters. Hidden (404) in production.
"""

from fastapi import APIRouter, HTTPException, status

from stepcache.application.api.dependencies import ServerCacheDep, SettingsDep

router = APIRouter(prefix="/debug", tags=["Debug"])


@router.get("/cache-health", summary="Per-tag cache hit/miss/timeout counters")
async def cache_health(settings: SettingsDep, server_cache: ServerCacheDep):
    if settings.app.ENVIRONMENT == "production":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return server_cache.get_cache_health()
