"""
UpCloud API

An asynchronous client for the UpCloud cloud provider REST API, with helpers
that wait for asynchronous server and storage operations to settle, plus a
Model Context Protocol (MCP) server exposing the same operations as tools.
"""

__version__ = "1.0.0"

from .core.api import OperationResult, UpCloudApi
from .core.client import ApiResponse, UpCloudClient
from .core.exceptions import (
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
from .core.models import IPAddressKind, StopType, UpCloudConfig, tag_selector
from .core.poller import Disappeared, Reached, TimedOut, poll_until

__all__ = [
    # Exceptions
    "UpCloudError",
    "ConfigurationError",
    "ValidationError",
    "TransportError",
    "RequestTimeoutError",
    "ApplicationError",
    "ParseError",
    "PollTimeoutError",
    "ResourceDisappearedError",
    "PollCancelledError",
    # Core classes
    "UpCloudConfig",
    "UpCloudClient",
    "UpCloudApi",
    "ApiResponse",
    "OperationResult",
    "IPAddressKind",
    "StopType",
    "tag_selector",
    # Polling
    "poll_until",
    "Reached",
    "Disappeared",
    "TimedOut",
]
