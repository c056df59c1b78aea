"""
Error-Reporting Sink Protocol
"""

from typing import Protocol, runtime_checkable

from stepcache.core.exceptions.reporting import AppError


@runtime_checkable
class ErrorReporter(Protocol):
    """
    Accepts structured errors from the server cache.

    Implementations may be slow or fail; the server cache schedules
    ``report`` without awaiting it on the response path and consumes any
    exception it raises.
    """

    async def report(self, error: AppError) -> None:
        ...
