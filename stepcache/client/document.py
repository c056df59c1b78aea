"""
Cached Document Model

The unit stored in every client tier, plus the time predicates that decide
whether a document may be served.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CachedDocument(BaseModel):
    """
    One cached configuration view.

    Attributes:
        payload: JSON-serialisable configuration ({"menus": ..., "locations": ...})
        server_version: Opaque version supplied by the server
        written_at: Epoch milliseconds when the document was written
        schema_version: Shape version of this model, not of the payload
        owner_id: Principal the view belongs to (user id, "guest", or None)
    """

    model_config = ConfigDict(frozen=True)

    payload: dict[str, Any]
    server_version: str
    written_at: int = Field(ge=0)
    schema_version: str
    owner_id: str | None = None

    def age_ms(self, now: int) -> int:
        return now - self.written_at


def is_stale(doc: CachedDocument | None, now: int, stale_duration_ms: int) -> bool:
    """Missing documents are always stale."""
    if doc is None:
        return True
    return doc.age_ms(now) > stale_duration_ms


def is_expired(doc: CachedDocument | None, now: int, cache_duration_ms: int) -> bool:
    """Missing documents are always expired."""
    if doc is None:
        return True
    return doc.age_ms(now) > cache_duration_ms


def get_cache_age(written_at: int, now: int) -> str:
    """
    Human-readable age of a document.

    Example:
        >>> get_cache_age(0, 42_000)
        '42s ago'
        >>> get_cache_age(0, 5 * 60_000)
        '5m ago'
    """
    age_seconds = max(now - written_at, 0) // 1000
    if age_seconds < 60:
        return f"{age_seconds}s ago"

    age_minutes = age_seconds // 60
    if age_minutes < 60:
        return f"{age_minutes}m ago"

    return f"{age_minutes // 60}h ago"
