"""
Server Cache Wrapper

Wraps fallible, possibly slow async fetchers with:

    ServerCache.create_cached_fetcher(tag, fetcher, fallback)
        └── RevalidatingCache (key = tag, tags = {tag})
              └── guarded fetch
                    ├── FetcherCircuitBreaker   (open -> fallback, fetcher not called)
                    ├── timeout race            (timeout -> fallback)
                    └── exception capture       (error -> fallback)

The guarded fetch runs inside the revalidating cache, so a fallback produced
by a timeout or an open circuit is cached like any other value until the tag
is invalidated or the entry is revalidated.

No failure of a fetcher reaches the caller. Upstream trouble is visible only
through ``get_cache_health()`` and the error reporter.

Hit counting is approximate: a call during which the guarded fetch did not
run counts as a hit, every run of the guarded fetch counts as a miss. A caller
that joins a compute already in flight is counted as a hit.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import asdict, dataclass
from typing import Any, TypeVar

from stepcache.core.config.constants import CacheTag, Stage
from stepcache.core.config.settings import Settings, get_settings
from stepcache.core.exceptions import AppError, ErrorCode
from stepcache.core.interfaces.clock import Clock, system_clock
from stepcache.core.interfaces.reporting import ErrorReporter
from stepcache.core.logging.logger import get_logger, log_stage
from stepcache.core.observability.error_reporter import LoggingErrorReporter, report_error
from stepcache.core.resilience.circuit_breaker import FetcherCircuitBreaker
from stepcache.infrastructure.cache.revalidating_cache import RevalidatingCache

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class CacheStats:
    """Per-tag counters. Process-local, never persisted."""

    hits: int = 0
    misses: int = 0
    timeouts: int = 0
    last_invalidated: int | None = None

    def snapshot(self) -> dict[str, Any]:
        return asdict(self)


def _tag_name(tag: CacheTag | str) -> str:
    return tag.value if isinstance(tag, CacheTag) else tag


def _discard_late_result(tag: str, task: asyncio.Task) -> None:
    """Consume the outcome of a fetch that lost the timeout race."""
    if task.cancelled():
        return
    exc = task.exception()
    logger.debug(
        "Late fetch result discarded",
        stage=Stage.SERVER_TIMEOUT.value,
        tag=tag,
        failed=exc is not None,
    )


class ServerCache:
    """
    Registry of cached fetchers with their stats and circuit breakers.

    One instance per application; independent instances share nothing.

    Args:
        settings: Application settings (timeouts, breaker thresholds, LRU size)
        clock: Epoch-milliseconds callable
        error_reporter: Sink for timeout and fetch-failure errors
        revalidating_cache: Underlying memoisation primitive
    """

    def __init__(
        self,
        settings: Settings | None = None,
        clock: Clock | None = None,
        error_reporter: ErrorReporter | None = None,
        revalidating_cache: RevalidatingCache | None = None,
    ):
        self._settings = settings or get_settings()
        self._clock = clock or system_clock
        self._reporter = error_reporter or LoggingErrorReporter()
        self._cache = revalidating_cache or RevalidatingCache(
            max_entries=self._settings.server_cache.SERVER_CACHE_MAX_ENTRIES,
            clock=self._clock,
        )
        self._stats: dict[str, CacheStats] = {}
        self._breakers: dict[str, FetcherCircuitBreaker] = {}
        self._pending_reports: set[asyncio.Task] = set()

    def now(self) -> int:
        return self._clock()

    def _get_stats(self, tag: str) -> CacheStats:
        if tag not in self._stats:
            self._stats[tag] = CacheStats()
        return self._stats[tag]

    def get_breaker(self, tag: CacheTag | str) -> FetcherCircuitBreaker | None:
        """Breaker of the most recently created fetcher for ``tag``."""
        return self._breakers.get(_tag_name(tag))

    def _report(self, error: AppError) -> None:
        report_error(self._reporter, error, pending=self._pending_reports)

    # ------------------------------------------------------------------
    # Cached fetcher
    # ------------------------------------------------------------------

    def create_cached_fetcher(
        self,
        tag: CacheTag | str,
        fetcher: Callable[[], Awaitable[T]],
        fallback: T,
        timeout_ms: int | None = None,
        revalidate_seconds: int | None = None,
    ) -> Callable[[], Awaitable[T]]:
        """
        Build a zero-argument async function returning the cached value.

        The returned function never raises; every failure degrades to
        ``fallback``.
        """
        tag = _tag_name(tag)
        if timeout_ms is None:
            timeout_ms = self._settings.server_cache.SERVER_CACHE_TIMEOUT_MS
        if revalidate_seconds is None:
            revalidate_seconds = self._settings.server_cache.SERVER_CACHE_REVALIDATE_SECONDS

        stats = self._get_stats(tag)
        breaker = FetcherCircuitBreaker(
            name=tag,
            failure_threshold=self._settings.circuit_breaker.CB_FAILURE_THRESHOLD,
            cooldown_ms=self._settings.circuit_breaker.CB_COOLDOWN_MS,
            clock=self._clock,
        )
        self._breakers[tag] = breaker
        compute_count = 0

        def record_failure(exc: BaseException) -> T:
            breaker.record_failure()
            log_stage(
                logger,
                Stage.SERVER_FETCH_FAILED,
                "Fetch failed, using fallback",
                level="error",
                tag=tag,
                error=str(exc) or exc.__class__.__name__,
            )
            self._report(
                AppError(
                    code=ErrorCode.UNKNOWN_ERROR,
                    message=f"Cache fetch failed for {tag}",
                    context={"tag": tag, "original_error": str(exc)},
                    recoverable=True,
                    severity="error",
                )
            )
            return fallback

        async def guarded_fetch() -> T:
            nonlocal compute_count
            compute_count += 1
            stats.misses += 1

            if not breaker.allow_request():
                log_stage(
                    logger,
                    Stage.CIRCUIT_BREAKER,
                    "Circuit open, returning fallback",
                    level="warning",
                    tag=tag,
                )
                return fallback

            log_stage(logger, Stage.SERVER_COMPUTE, "Fetching", level="debug", tag=tag)

            try:
                task = asyncio.ensure_future(fetcher())
            except Exception as e:
                return record_failure(e)

            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)

            if not done:
                # The fetch keeps running; its eventual outcome is ignored
                task.add_done_callback(lambda t: _discard_late_result(tag, t))
                stats.timeouts += 1
                breaker.record_failure()
                log_stage(
                    logger,
                    Stage.SERVER_TIMEOUT,
                    "Fetch timed out, using fallback",
                    level="warning",
                    tag=tag,
                    timeout_ms=timeout_ms,
                )
                self._report(
                    AppError(
                        code=ErrorCode.TIMEOUT_ERROR,
                        message=f"Cache fetch timed out for {tag}",
                        context={"tag": tag, "timeout_ms": timeout_ms},
                        recoverable=True,
                        severity="warning",
                    )
                )
                return fallback

            if task.cancelled():
                return record_failure(asyncio.CancelledError())

            exc = task.exception()
            if exc is not None:
                return record_failure(exc)

            return task.result()

        cached = self._cache.memoize(
            guarded_fetch,
            key_parts=[tag],
            tags=[tag],
            revalidate_seconds=revalidate_seconds,
        )

        async def cached_fetcher() -> T:
            computes_before = compute_count
            try:
                value = await cached()
            except Exception:
                logger.exception("Cached fetcher failed unexpectedly", tag=tag)
                return fallback

            if compute_count == computes_before:
                stats.hits += 1
            return value

        return cached_fetcher

    # ------------------------------------------------------------------
    # Invalidation, health, warming
    # ------------------------------------------------------------------

    def invalidate_cache(self, tag: CacheTag | str) -> None:
        """Mark ``tag`` dirty so the next call recomputes, and stamp the stats."""
        tag = _tag_name(tag)
        stats = self._get_stats(tag)
        stats.last_invalidated = self._clock()
        self._cache.revalidate_tag(tag)
        log_stage(logger, Stage.SERVER_INVALIDATE, "Invalidated tag", tag=tag)

    def get_cache_health(self) -> dict[str, dict[str, Any]]:
        """Snapshot copies of the per-tag counters."""
        return {tag: stats.snapshot() for tag, stats in self._stats.items()}

    async def warm_caches(self, fetchers: Iterable[Callable[[], Awaitable[Any]]]) -> dict[str, int]:
        """
        Run every fetcher concurrently and wait for all of them to settle.

        Returns:
            {"fulfilled": n, "rejected": m}
        """
        fetchers = list(fetchers)
        log_stage(logger, Stage.SERVER_WARM, "Warming caches", count=len(fetchers))

        async def settle(fetch: Callable[[], Awaitable[Any]]) -> Any:
            return await fetch()

        results = await asyncio.gather(*(settle(f) for f in fetchers), return_exceptions=True)
        rejected = sum(1 for r in results if isinstance(r, BaseException))
        summary = {"fulfilled": len(results) - rejected, "rejected": rejected}

        log_stage(logger, Stage.SERVER_WARM, "Warming complete", **summary)
        return summary
