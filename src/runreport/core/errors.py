"""
Error taxonomy for run reporting.

Per-resource failures never surface here: they are captured on the
resource's change record. These exceptions cover the run-level contract
with the run history service, malformed inputs, and misuse of the
session/record lifecycle.

Exit Codes (CLI):
- 0: Success
- 1: Warning (report built, submission skipped)
- 10: Configuration error
- 11: Run history service error
- 12: Validation error
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    WARNING = 1
    CONFIG_ERROR = 10
    RUN_HISTORY_ERROR = 11
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127


class RunReportError(Exception):
    """Base exception for run reporting errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(RunReportError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class RunHistoryError(RunReportError):
    """Raised when the run history service rejects a request."""

    exit_code = ExitCode.RUN_HISTORY_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code


class RunHistoryUnavailable(RunHistoryError):
    """Raised when the run history service stays unreachable after retries."""


class ValidationError(RunReportError):
    """Raised for validation failures."""

    exit_code = ExitCode.VALIDATION_ERROR


class EventFormatError(ValidationError):
    """Raised when a recorded event cannot be decoded."""


class ReportingStateError(ValidationError):
    """Raised when the run session lifecycle is driven out of order."""


class RecordStateError(ValidationError):
    """Raised when a change record is finalized twice or aggregated unfinished."""


F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
    on_error: Callable[[str], None] | None = None,
) -> Callable[[F], F]:
    """
    Decorator for CLI entry points that maps exceptions to exit codes.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog
        on_error: Called with the formatted message of a RunReportError

    Exit codes:
        - RunReportError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except RunReportError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if on_error is not None:
                    on_error(format_error_message(e))
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: RunReportError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
