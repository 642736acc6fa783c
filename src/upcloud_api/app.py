"""
UpCloud API - MCP Application

The FastMCP instance and the global server state shared by all domain modules.
"""

from mcp.server.fastmcp import FastMCP

from .core.state import ServerState

# Initialize FastMCP server
mcp = FastMCP(
    "UpCloud MCP Server",
    instructions="Manage UpCloud servers, storages, tags, firewall rules and IP addresses via MCP",
)

# Initialize global server state
server_state = ServerState()
