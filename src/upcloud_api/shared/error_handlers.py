"""
UpCloud API - Error Handling Helpers

This module provides error handling utilities and user-friendly error response generation
for the MCP tools.
"""

import json
import logging
import re
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict

from ..core.exceptions import (
    ApplicationError,
    ConfigurationError,
    ParseError,
    PollCancelledError,
    PollTimeoutError,
    RequestTimeoutError,
    ResourceDisappearedError,
    TransportError,
    UpCloudError,
    ValidationError,
)
from .constants import IP_FAMILIES, STORAGE_TYPES

if TYPE_CHECKING:
    from mcp.server.fastmcp import Context

logger = logging.getLogger("upcloud-api")


class ErrorSeverity(str, Enum):
    """Enumeration for error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorResponse:
    """Structured error response system with user-friendly messaging."""

    def __init__(self, error: Exception, operation: str, severity: ErrorSeverity = ErrorSeverity.MEDIUM):
        """Initialize error response.

        Args:
            error: The exception that occurred
            operation: Name of the operation that failed
            severity: Severity level of the error
        """
        self.error = error
        self.operation = operation
        self.severity = severity
        self.timestamp = datetime.utcnow()
        self.error_id = f"{operation}_{int(self.timestamp.timestamp())}"

    def get_user_message(self) -> str:
        """Get user-friendly error message.

        Returns:
            Human-readable error message
        """
        if isinstance(self.error, ConfigurationError):
            return "UpCloud connection not configured. Please configure the connection first."
        elif isinstance(self.error, ValidationError):
            return f"Invalid input: {self.error.message}"
        elif isinstance(self.error, RequestTimeoutError):
            return "Request timed out. The UpCloud API may be overloaded."
        elif isinstance(self.error, TransportError):
            return "Cannot connect to the UpCloud API. Please check the API URL and network connectivity."
        elif isinstance(self.error, ApplicationError):
            if self.error.status_code == 401:
                return "Authentication failed. Please check your UpCloud credentials."
            elif self.error.status_code == 403:
                return "Access denied. Your account has no permission for this operation."
            elif self.error.not_found:
                return "The requested resource was not found."
            elif self.error.status_code == 429:
                return "API rate limit exceeded. Please wait before trying again."
            else:
                return f"API error: {self.error.message}"
        elif isinstance(self.error, ParseError):
            return f"Unexpected response from UpCloud: {self.error.message}"
        elif isinstance(self.error, PollTimeoutError):
            return f"Timed out waiting: {self.error.message}"
        elif isinstance(self.error, ResourceDisappearedError):
            return f"Resource no longer exists: {self.error.message}"
        elif isinstance(self.error, PollCancelledError):
            return "Waiting was cancelled."
        else:
            return f"An unexpected error occurred during {self.operation}."

    def get_technical_details(self) -> Dict[str, Any]:
        """Get technical error details for logging.

        Returns:
            Dictionary containing technical error information
        """
        details = {
            "error_id": self.error_id,
            "operation": self.operation,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "error_type": type(self.error).__name__,
            "message": str(self.error)
        }

        if isinstance(self.error, UpCloudError):
            details.update(self.error.to_dict())

        if isinstance(self.error, ApplicationError):
            details["response_text"] = self.error.response_text

        return details


async def handle_tool_error(
    ctx: 'Context',
    operation: str,
    error: Exception,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
) -> str:
    """Centralized error handling for MCP tools.

    Args:
        ctx: MCP context for error reporting
        operation: Name of the operation that failed
        error: The exception that occurred
        severity: Severity level of the error

    Returns:
        User-friendly error message
    """
    error_response = ErrorResponse(error, operation, severity)

    technical_details = error_response.get_technical_details()
    logger.error(
        f"Tool error in {operation}: {json.dumps(technical_details, indent=2, default=str)}",
        exc_info=error,
    )

    user_message = error_response.get_user_message()
    await ctx.error(user_message)

    return f"Error: {user_message}"


UUID_PATTERN = re.compile(r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.IGNORECASE)


def validate_uuid(uuid: str, operation: str) -> None:
    """Validate UUID format.

    Args:
        uuid: UUID string to validate
        operation: Operation name for error context

    Raises:
        ValidationError: If UUID format is invalid
    """
    if not UUID_PATTERN.match(uuid):
        raise ValidationError(
            f"Invalid UUID format: {uuid}",
            context={"uuid": uuid, "operation": operation, "expected_format": "xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx"}
        )


def validate_choice(value: str, choices: tuple, parameter: str, operation: str) -> None:
    """Validate that a parameter is one of the allowed values.

    Raises:
        ValidationError: If the value is not allowed
    """
    if value not in choices:
        raise ValidationError(f"Invalid {parameter} '{value}'. Must be one of: {list(choices)}",
                              context={"operation": operation, "parameter": parameter, "value": value})


def validate_ip_family(family: str, operation: str) -> None:
    validate_choice(family, IP_FAMILIES, "IP family", operation)


def validate_storage_type(storage_type: str, operation: str) -> None:
    validate_choice(storage_type, STORAGE_TYPES, "storage type", operation)


def validate_firewall_parameters(
    direction: str,
    action: str,
    family: str,
    protocol: str | None,
    operation: str
) -> None:
    """Validate common firewall rule parameters.

    Args:
        direction: Traffic direction (in, out)
        action: Rule action (accept, reject, drop)
        family: IP family (IPv4, IPv6)
        protocol: Transport protocol (tcp, udp, icmp) or None for any
        operation: Operation name for error context

    Raises:
        ValidationError: If any parameter is invalid
    """
    validate_choice(direction, ("in", "out"), "direction", operation)
    validate_choice(action, ("accept", "reject", "drop"), "action", operation)
    validate_choice(family, IP_FAMILIES, "IP family", operation)
    if protocol is not None:
        validate_choice(protocol, ("tcp", "udp", "icmp"), "protocol", operation)
