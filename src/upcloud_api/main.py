#!/usr/bin/env python3
"""
UpCloud API - MCP Server Entry Point

This module configures logging and registers all domain-specific tools on the
shared FastMCP instance.
"""

import logging

from .app import mcp, server_state

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("upcloud-api")

# Import domain modules to register their MCP tools
from .domains import configuration  # Connection setup
from .domains import account        # Account information and catalogue
from .domains import servers        # Server lifecycle and state waiting
from .domains import storage        # Storage, backups and templates
from .domains import networking     # Firewall rules, tags and IP addresses

__all__ = ["mcp", "server_state", "main"]


def main() -> None:
    """Run the MCP server over stdio."""
    logger.info("Starting UpCloud MCP server")
    mcp.run()


# Entry point for running the server
if __name__ == "__main__":
    main()
