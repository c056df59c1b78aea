"""
Error Reporting

Default sink for ``AppError`` instances raised inside the server cache. The
sink writes one structured log event per error, at a level derived from the
error's severity. A different sink (an APM client, a webhook) can be injected
into ``ServerCache`` as long as it satisfies ``ErrorReporter``.
"""

import asyncio

from stepcache.core.exceptions.reporting import AppError
from stepcache.core.interfaces.reporting import ErrorReporter
from stepcache.core.logging.logger import get_logger

logger = get_logger(__name__)


class LoggingErrorReporter:
    """Reports errors as structlog events."""

    async def report(self, error: AppError) -> None:
        log_func = logger.warning if error.severity == "warning" else logger.error
        log_func(
            error.message,
            stage="ERR.REPORT",
            code=error.code.value,
            recoverable=error.recoverable,
            context=error.context,
        )


def _consume_report_result(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning("Error reporter failed", stage="ERR.REPORT", error=str(exc))


def report_error(
    reporter: ErrorReporter, error: AppError, pending: set[asyncio.Task] | None = None
) -> None:
    """
    Schedule ``reporter.report(error)`` without waiting for it.

    Failures of the reporter, synchronous or asynchronous, are logged and
    never raised. Pass ``pending`` to keep a strong reference to the task
    until it finishes.
    """
    try:
        task = asyncio.ensure_future(reporter.report(error))
    except Exception as e:
        logger.warning("Error reporter failed", stage="ERR.REPORT", error=str(e))
        return

    task.add_done_callback(_consume_report_result)
    if pending is not None:
        pending.add(task)
        task.add_done_callback(pending.discard)
