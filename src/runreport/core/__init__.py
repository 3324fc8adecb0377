"""Core definitions shared across run reporting."""

from runreport.core.errors import (
    ConfigurationError,
    EventFormatError,
    ExitCode,
    RecordStateError,
    ReportingStateError,
    RunHistoryError,
    RunHistoryUnavailable,
    RunReportError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "RunReportError",
    "ConfigurationError",
    "RunHistoryError",
    "RunHistoryUnavailable",
    "ValidationError",
    "EventFormatError",
    "ReportingStateError",
    "RecordStateError",
    "main_with_error_handling",
    "format_error_message",
]
