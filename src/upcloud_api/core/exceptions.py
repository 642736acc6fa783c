"""
UpCloud API - Exception Hierarchy

This module contains all custom exceptions raised by the UpCloud API client.

Transport failures (no answer received), application failures (the provider
answered with a non-2xx status) and parse failures (the provider answered with
malformed data) are kept apart so callers can tell them from each other.
"""

from datetime import datetime
from typing import Any


class UpCloudError(Exception):
    """Base exception for all UpCloud client errors with enhanced context."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


class ConfigurationError(UpCloudError):
    """Client not configured or invalid configuration."""


class ValidationError(UpCloudError):
    """Input parameter validation failed."""


class TransportError(UpCloudError):
    """No response was received (DNS, TCP, TLS or transport timeout)."""


class RequestTimeoutError(TransportError):
    """Request timed out before a response arrived."""


class ApplicationError(UpCloudError):
    """The provider answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        error_code: str | None = None,
        response_text: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code=error_code, context=context)
        self.status_code = status_code
        self.response_text = response_text

    @property
    def not_found(self) -> bool:
        return self.status_code == 404

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class ParseError(UpCloudError):
    """Response body is not valid JSON or lacks an expected key."""


class PollTimeoutError(UpCloudError):
    """Resource did not reach the wanted state before the deadline."""


class ResourceDisappearedError(UpCloudError):
    """Polled resource no longer exists."""


class PollCancelledError(UpCloudError):
    """Polling was stopped by the caller before it finished."""
