"""
UpCloud API - Core Infrastructure

This package contains the request executor, resource snapshots, the state
poller and the operation facade.
"""

from .api import OperationResult, UpCloudApi
from .client import ApiResponse, RequestResponseLogger, UpCloudClient
from .exceptions import (
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
from .models import IPAddressKind, MultipleTags, SingleTag, StopType, TagSelector, UpCloudConfig, tag_selector
from .poller import Disappeared, PollOutcome, Reached, TimedOut, poll_until, state_is
from .resources import Account, FirewallRule, IPAddress, Plan, Server, ServerSize, Storage, Tag
from .state import ServerState

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
    # Models
    "UpCloudConfig",
    "IPAddressKind",
    "StopType",
    "TagSelector",
    "SingleTag",
    "MultipleTags",
    "tag_selector",
    # Resources
    "Account",
    "FirewallRule",
    "IPAddress",
    "Plan",
    "Server",
    "ServerSize",
    "Storage",
    "Tag",
    # Client
    "ApiResponse",
    "UpCloudClient",
    "RequestResponseLogger",
    # Poller
    "Reached",
    "Disappeared",
    "TimedOut",
    "PollOutcome",
    "poll_until",
    "state_is",
    # Facade
    "UpCloudApi",
    "OperationResult",
    # State
    "ServerState",
]
