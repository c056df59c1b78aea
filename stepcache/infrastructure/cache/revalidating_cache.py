"""
Revalidating Cache (stale-while-revalidate with tag invalidation)

Memoises zero-argument async functions under a string key, with a set of
invalidation tags and a revalidation period.

Read path for a memoised function:
    1. No entry, or entry invalidated by tag -> compute and await (single-flight)
    2. Entry older than the revalidation period -> return it, refresh in background
    3. Otherwise -> return the entry

Tag invalidation works by epochs: ``revalidate_tag`` bumps the tag's epoch and
every entry remembers the epochs it was computed under. An entry whose tag
epochs moved is dirty. A compute that was already running when the tag was
invalidated stores its result as dirty, so the next call recomputes.

Entries are kept in an OrderedDict used as an LRU; the least recently read
entry is evicted once ``max_entries`` is exceeded.
"""

import asyncio
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from functools import partial
from typing import Any

from stepcache.core.config.constants import Stage
from stepcache.core.interfaces.clock import Clock, system_clock
from stepcache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

TagEpochs = tuple[tuple[str, int], ...]


@dataclass
class CacheEntry:
    value: Any
    computed_at: int
    tag_epochs: TagEpochs


class RevalidatingCache:
    """
    In-process revalidating cache with tag invalidation.

    Args:
        max_entries: Maximum number of memoised keys kept
        clock: Epoch-milliseconds callable
    """

    def __init__(self, max_entries: int = 256, clock: Clock | None = None):
        self._max_entries = max_entries
        self._clock = clock or system_clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._tag_epochs: dict[str, int] = {}
        self._inflight: dict[str, tuple[asyncio.Task, TagEpochs]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def memoize(
        self,
        fn: Callable[[], Awaitable[Any]],
        key_parts: Iterable[str],
        tags: Iterable[str],
        revalidate_seconds: int,
    ) -> Callable[[], Awaitable[Any]]:
        """
        Wrap ``fn`` so its result is cached under ``key_parts``.

        Exceptions raised by ``fn`` propagate to the callers awaiting that
        compute and nothing is stored.
        """
        key = ":".join(key_parts)
        tag_list = tuple(tags)
        revalidate_ms = revalidate_seconds * 1000

        async def cached() -> Any:
            return await self._read(key, fn, tag_list, revalidate_ms)

        return cached

    def revalidate_tag(self, tag: str) -> int:
        """
        Mark every entry carrying ``tag`` dirty.

        Returns:
            Number of cached entries affected
        """
        self._tag_epochs[tag] = self._tag_epochs.get(tag, 0) + 1
        affected = sum(
            1 for entry in self._entries.values() if any(t == tag for t, _ in entry.tag_epochs)
        )
        log_stage(logger, Stage.SERVER_INVALIDATE, "Tag revalidated", tag=tag, entries=affected)
        return affected

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _current_epochs(self, tags: tuple[str, ...]) -> TagEpochs:
        return tuple((tag, self._tag_epochs.get(tag, 0)) for tag in tags)

    def _is_dirty(self, tag_epochs: TagEpochs) -> bool:
        return any(self._tag_epochs.get(tag, 0) != epoch for tag, epoch in tag_epochs)

    async def _read(
        self,
        key: str,
        fn: Callable[[], Awaitable[Any]],
        tags: tuple[str, ...],
        revalidate_ms: int,
    ) -> Any:
        entry = self._entries.get(key)

        if entry is None or self._is_dirty(entry.tag_epochs):
            task = self._start_compute(key, fn, tags)
            # Shield so a cancelled caller does not cancel a compute others share
            return await asyncio.shield(task)

        self._entries.move_to_end(key)

        if self._clock() - entry.computed_at >= revalidate_ms and key not in self._inflight:
            log_stage(logger, Stage.SERVER_REVALIDATE, "Serving stale entry, refreshing", key=key)
            task = self._start_compute(key, fn, tags)
            task.add_done_callback(partial(self._log_background_failure, key))

        return entry.value

    def _start_compute(
        self, key: str, fn: Callable[[], Awaitable[Any]], tags: tuple[str, ...]
    ) -> asyncio.Task:
        inflight = self._inflight.get(key)
        if inflight is not None:
            task, epochs = inflight
            if not self._is_dirty(epochs):
                return task

        epochs = self._current_epochs(tags)
        task = asyncio.ensure_future(self._compute(key, fn, epochs))
        self._inflight[key] = (task, epochs)
        task.add_done_callback(partial(self._clear_inflight, key))
        return task

    async def _compute(
        self, key: str, fn: Callable[[], Awaitable[Any]], epochs: TagEpochs
    ) -> Any:
        value = await fn()
        self._store(key, value, epochs)
        return value

    def _store(self, key: str, value: Any, epochs: TagEpochs) -> None:
        current = self._entries.get(key)
        if current is not None and self._is_dirty(epochs) and not self._is_dirty(current.tag_epochs):
            # A compute started before invalidation finished after a newer one
            return

        self._entries[key] = CacheEntry(value=value, computed_at=self._clock(), tag_epochs=epochs)
        self._entries.move_to_end(key)

        while len(self._entries) > self._max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cache entry", stage=Stage.SERVER_COMPUTE.value, key=evicted_key)

    def _clear_inflight(self, key: str, task: asyncio.Task) -> None:
        inflight = self._inflight.get(key)
        if inflight is not None and inflight[0] is task:
            del self._inflight[key]

    @staticmethod
    def _log_background_failure(key: str, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log_stage(
                logger,
                Stage.SERVER_REVALIDATE,
                "Background refresh failed",
                level="warning",
                key=key,
                error=str(exc),
            )
