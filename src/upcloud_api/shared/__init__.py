"""
UpCloud API - Shared Utilities

This package contains shared utilities and constants used across the client and MCP server.
"""

from . import constants
from .error_handlers import (
    ErrorResponse,
    ErrorSeverity,
    handle_tool_error,
    validate_choice,
    validate_firewall_parameters,
    validate_ip_family,
    validate_storage_type,
    validate_uuid,
)

__all__ = [
    "ErrorResponse",
    "ErrorSeverity",
    "constants",
    "handle_tool_error",
    "validate_choice",
    "validate_firewall_parameters",
    "validate_ip_family",
    "validate_storage_type",
    "validate_uuid",
]
