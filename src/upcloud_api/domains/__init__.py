"""
UpCloud API - Domain Modules

This package contains the MCP tool implementations organized by feature area.
"""

# Domain modules are imported here to register their MCP tools
from . import (
    account,
    configuration,
    networking,
    servers,
    storage,
)

__all__ = [
    "account",
    "configuration",
    "networking",
    "servers",
    "storage",
]
