"""
Application error types and error categorization.

External collaborators (AI services, the data store) raise these so that the
pipeline can tell degradable failures from fatal ones.
"""

import asyncio
from typing import Any, Optional

import httpx

# =============================================================================
# Custom Exceptions
# =============================================================================

class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(AppError):
    """A required setting (e.g. an API key) is missing."""
    pass


class ServiceUnavailableError(AppError):
    """An external service could not be reached or answered with an error."""
    pass


class MalformedResponseError(AppError):
    """An external service answered, but not in the expected shape."""
    pass


class PersistenceError(AppError):
    """The data store failed to read or write a record."""
    pass


class AppTimeoutError(AppError):
    pass


class ValidationError(AppError):
    """Input rejected before any processing took place."""

    def __init__(self, code: str, message: str, details: Optional[dict] = None):
        super().__init__(message, details)
        self.code = code


# =============================================================================
# Error Handler
# =============================================================================

class ErrorHandler:
    """Centralized error categorization."""

    DEGRADABLE = frozenset({
        "CONFIGURATION_ERROR",
        "SERVICE_UNAVAILABLE",
        "MALFORMED_RESPONSE",
        "TIMEOUT_ERROR",
        "NETWORK_ERROR",
    })

    @staticmethod
    def categorize_error(error: Exception) -> str:
        """Categorize errors for appropriate handling."""
        if isinstance(error, ValidationError):
            return "VALIDATION_ERROR"
        if isinstance(error, PersistenceError):
            return "PERSISTENCE_ERROR"
        if isinstance(error, ConfigurationError):
            return "CONFIGURATION_ERROR"
        if isinstance(error, MalformedResponseError):
            return "MALFORMED_RESPONSE"
        if isinstance(error, (AppTimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
            return "TIMEOUT_ERROR"
        if isinstance(error, ServiceUnavailableError):
            return "SERVICE_UNAVAILABLE"
        if isinstance(error, (httpx.TransportError, ConnectionError)):
            return "NETWORK_ERROR"
        if isinstance(error, (ValueError, TypeError)):
            return "VALIDATION_ERROR"

        err_str = str(error).lower()
        if "timeout" in err_str: return "TIMEOUT_ERROR"
        if "api key" in err_str or "not configured" in err_str: return "CONFIGURATION_ERROR"
        if "connection" in err_str: return "NETWORK_ERROR"

        return "UNKNOWN_ERROR"

    @classmethod
    def is_degradable(cls, error: Exception) -> bool:
        """Whether a fallback path may replace the failed operation."""
        return cls.categorize_error(error) in cls.DEGRADABLE
