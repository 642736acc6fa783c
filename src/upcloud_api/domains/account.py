"""
UpCloud API - Account Domain

Tools for account information and the catalogue of plans and server sizes.
"""

import logging

from mcp.server.fastmcp import Context

from ..app import mcp
from ..shared.error_handlers import handle_tool_error
from .configuration import format_result, get_upcloud_api

logger = logging.getLogger("upcloud-api")


@mcp.tool(name="get_account_information", description="Get UpCloud account details including credits")
async def get_account_information(ctx: Context) -> str:
    """Get account details, including the remaining credits.

    Args:
        ctx: MCP context

    Returns:
        JSON string with account information
    """
    try:
        api = await get_upcloud_api()
        return format_result(await api.account_information())
    except Exception as e:
        return await handle_tool_error(ctx, "get_account_information", e)


@mcp.tool(name="list_plans", description="List predefined UpCloud server plans")
async def list_plans(ctx: Context) -> str:
    try:
        api = await get_upcloud_api()
        return format_result(await api.plans())
    except Exception as e:
        return await handle_tool_error(ctx, "list_plans", e)


@mcp.tool(name="list_server_sizes", description="List available core/memory combinations for custom servers")
async def list_server_sizes(ctx: Context) -> str:
    try:
        api = await get_upcloud_api()
        return format_result(await api.server_configurations())
    except Exception as e:
        return await handle_tool_error(ctx, "list_server_sizes", e)
