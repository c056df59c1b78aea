"""
StepLeague configuration cache.

- ``stepcache.client``: multi-tier client cache with cross-context sync
- ``stepcache.infrastructure.cache``: server cached fetchers with timeout fallback
  and circuit breaker
- ``stepcache.application``: FastAPI surface (menus, admin, revalidation, debug)
"""

__version__ = "1.0.0"
