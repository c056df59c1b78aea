from .error_reporter import LoggingErrorReporter, report_error

__all__ = ["LoggingErrorReporter", "report_error"]
