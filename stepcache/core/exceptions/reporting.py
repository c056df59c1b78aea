"""
Reportable Application Errors

Typed errors handed to the error-reporting sink. They carry a stable code
for programmatic handling, free-form context, a recoverable flag and a
severity that the reporter maps onto a log level.
"""

from enum import Enum
from typing import Any, Literal

from stepcache.core.exceptions.base import StepCacheError

Severity = Literal["warning", "error"]


class ErrorCode(str, Enum):
    """Stable error codes used by the cache subsystem."""

    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class AppError(StepCacheError):
    """
    Structured error for the external error-reporting sink.

    Example:
        AppError(
            code=ErrorCode.TIMEOUT_ERROR,
            message="Cache fetch timed out for menus",
            context={"tag": "menus", "timeout_ms": 3000},
            severity="warning",
        )
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: dict[str, Any] | None = None,
        recoverable: bool = True,
        severity: Severity = "error",
        request_id: str | None = None,
    ):
        super().__init__(message, request_id=request_id, details=context)
        self.code = code
        self.recoverable = recoverable
        self.severity = severity

    @property
    def context(self) -> dict[str, Any]:
        return self.details

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update(
            code=self.code.value,
            recoverable=self.recoverable,
            severity=self.severity,
        )
        return payload
