"""Utils module for the TruthTrack transparency pipeline."""

from truthtrack.utils.logger import LogContext, configure_from_settings, get_logger, setup_logging
from truthtrack.utils.errors import (
    AppError,
    AppTimeoutError,
    ConfigurationError,
    ErrorHandler,
    MalformedResponseError,
    PersistenceError,
    ServiceUnavailableError,
    ValidationError,
)
from truthtrack.utils.formatters import ReportFormatter

__all__ = [
    "get_logger",
    "setup_logging",
    "configure_from_settings",
    "LogContext",
    "ReportFormatter",
    "ErrorHandler",
    "AppError",
    "AppTimeoutError",
    "ConfigurationError",
    "MalformedResponseError",
    "PersistenceError",
    "ServiceUnavailableError",
    "ValidationError",
]
