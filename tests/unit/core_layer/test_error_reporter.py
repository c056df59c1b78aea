"""
Unit Tests for Error Reporting
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from stepcache.core.exceptions import AppError, ErrorCode
from stepcache.core.observability.error_reporter import LoggingErrorReporter, report_error


def _error(severity="error"):
    return AppError(
        code=ErrorCode.UNKNOWN_ERROR,
        message="Cache fetch failed for menus",
        context={"tag": "menus"},
        severity=severity,
    )


@pytest.mark.unit
class TestReportError:
    @pytest.mark.asyncio
    async def test_schedules_report(self):
        reporter = MagicMock()
        reporter.report = AsyncMock()
        pending: set = set()
        error = _error()

        report_error(reporter, error, pending=pending)
        await asyncio.gather(*pending)

        reporter.report.assert_awaited_once_with(error)
        assert not pending

    @pytest.mark.asyncio
    async def test_async_reporter_failure_is_contained(self):
        reporter = MagicMock()
        reporter.report = AsyncMock(side_effect=RuntimeError("sink down"))
        pending: set = set()

        report_error(reporter, _error(), pending=pending)
        await asyncio.gather(*pending, return_exceptions=True)
        await asyncio.sleep(0)

        reporter.report.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sync_reporter_failure_is_contained(self):
        reporter = MagicMock()
        reporter.report = MagicMock(side_effect=RuntimeError("sink down"))

        report_error(reporter, _error())

        reporter.report.assert_called_once()


@pytest.mark.unit
class TestLoggingErrorReporter:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("severity", ["warning", "error"])
    async def test_report_does_not_raise(self, severity):
        await LoggingErrorReporter().report(_error(severity))
