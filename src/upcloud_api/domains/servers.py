"""
UpCloud API - Servers Domain

This module provides tools for the server lifecycle: listing, creation,
modification, start/stop/restart, deletion and waiting for a server state.

Tools included:
- list_servers: List all servers
- get_server: Get details of one server
- create_server: Create a server from a template
- modify_server: Change title, hostname or size of a stopped server
- start_server / stop_server / restart_server: Power operations
- delete_server: Delete a stopped server
- wait_for_server_state: Poll until a server reaches a state
"""

import logging
from typing import Any, Optional

from mcp.server.fastmcp import Context

from ..app import mcp
from ..core.exceptions import ValidationError
from ..shared.constants import DEFAULT_STORAGE_TIER, DEFAULT_ZONE, START_SERVER_TIMEOUT
from ..shared.error_handlers import handle_tool_error, validate_choice, validate_uuid
from .configuration import format_result, get_upcloud_api

logger = logging.getLogger("upcloud-api")

SERVER_STATES = ("started", "stopped", "maintenance", "error")


# ========== HELPER FUNCTIONS ==========


def _split_list(value: Optional[str]) -> Optional[list[str]]:
    """Split a comma-separated tool argument into trimmed items."""
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


# ========== SERVER TOOLS ==========


@mcp.tool(name="list_servers", description="List all UpCloud servers")
async def list_servers(ctx: Context) -> str:
    """List all servers of the account.

    Args:
        ctx: MCP context

    Returns:
        JSON string with the servers
    """
    try:
        api = await get_upcloud_api()
        return format_result(await api.servers())
    except Exception as e:
        return await handle_tool_error(ctx, "list_servers", e)


@mcp.tool(name="get_server", description="Get details of an UpCloud server")
async def get_server(ctx: Context, server_uuid: str) -> str:
    try:
        validate_uuid(server_uuid, "get_server")
        api = await get_upcloud_api()
        server = await api.server_details(server_uuid)
        if server is None:
            return f"Server {server_uuid} not found"
        return format_result(server)
    except Exception as e:
        return await handle_tool_error(ctx, "get_server", e)


@mcp.tool(name="create_server", description="Create a new UpCloud server from a storage template")
async def create_server(
    ctx: Context,
    title: str,
    hostname: str,
    template_uuid: str,
    storage_size: int = 10,
    storage_tier: str = DEFAULT_STORAGE_TIER,
    zone: str = DEFAULT_ZONE,
    plan: Optional[str] = None,
    core_number: int = 1,
    memory_amount: int = 1024,
    ip_addresses: Optional[str] = None,
    ssh_key: Optional[str] = None,
) -> str:
    """Create a new server whose system disk is cloned from a template.

    The server starts deploying immediately; use wait_for_server_state to wait
    until it is "started".

    Args:
        ctx: MCP context
        title: Server title
        hostname: Server hostname
        template_uuid: UUID of the template storage to clone
        storage_size: Size of the system disk in GB
        storage_tier: "maxiops" or "hdd"
        zone: Zone, e.g. fi-hel1, de-fra1, uk-lon1
        plan: Predefined plan such as "1xCPU-1GB"; overrides core_number/memory_amount
        core_number: CPU cores for a custom configuration
        memory_amount: Memory in MiB for a custom configuration
        ip_addresses: Comma-separated kinds: public, private, ipv6 (default: all)
        ssh_key: Public SSH key for the root login user

    Returns:
        JSON string with the created server
    """
    try:
        validate_uuid(template_uuid, "create_server")
        api = await get_upcloud_api()

        login_user = None
        if ssh_key:
            login_user = {"username": "root", "ssh_keys": {"ssh_key": [ssh_key]}}

        response = await api.create_server(
            title=title,
            hostname=hostname,
            storage_devices=[{
                "action": "clone",
                "storage": template_uuid,
                "title": f"{hostname}-disk",
                "size": storage_size,
                "tier": storage_tier,
            }],
            zone=zone,
            core_number=core_number,
            memory_amount=memory_amount,
            ip_addresses=_split_list(ip_addresses),
            plan=plan,
            login_user=login_user,
        )
        await ctx.info(f"Server '{title}' is being created")
        return format_result(response)
    except Exception as e:
        return await handle_tool_error(ctx, "create_server", e)


@mcp.tool(name="modify_server", description="Modify attributes of a stopped UpCloud server")
async def modify_server(
    ctx: Context,
    server_uuid: str,
    title: Optional[str] = None,
    hostname: Optional[str] = None,
    plan: Optional[str] = None,
    core_number: Optional[int] = None,
    memory_amount: Optional[int] = None,
) -> str:
    """Modify a stopped server. Only the given attributes change.

    Args:
        ctx: MCP context
        server_uuid: UUID of the server
        title: New title
        hostname: New hostname
        plan: New plan
        core_number: New number of CPU cores (custom configuration)
        memory_amount: New memory in MiB (custom configuration)

    Returns:
        JSON string with the modified server
    """
    try:
        validate_uuid(server_uuid, "modify_server")
        params: dict[str, Any] = {
            key: value
            for key, value in (
                ("title", title),
                ("hostname", hostname),
                ("plan", plan),
                ("core_number", core_number),
                ("memory_amount", memory_amount),
            )
            if value is not None
        }
        if not params:
            raise ValidationError("Nothing to modify", context={"operation": "modify_server"})

        api = await get_upcloud_api()
        return format_result(await api.modify_server(server_uuid, params))
    except Exception as e:
        return await handle_tool_error(ctx, "modify_server", e)


@mcp.tool(name="start_server", description="Start a stopped UpCloud server")
async def start_server(ctx: Context, server_uuid: str, wait: bool = False) -> str:
    """Start a stopped server.

    Args:
        ctx: MCP context
        server_uuid: UUID of the server
        wait: Wait until the server is "started"

    Returns:
        JSON string with the response and, when waiting, the wait outcome
    """
    try:
        validate_uuid(server_uuid, "start_server")
        api = await get_upcloud_api()
        result = await api.start_server(server_uuid, asynchronous=not wait)
        return format_result(result)
    except Exception as e:
        return await handle_tool_error(ctx, "start_server", e)


@mcp.tool(name="stop_server", description="Stop a running UpCloud server and wait until it is stopped")
async def stop_server(
    ctx: Context,
    server_uuid: str,
    stop_type: str = "soft",
    timeout: Optional[int] = None,
    wait: bool = True,
) -> str:
    """Stop a running server.

    Args:
        ctx: MCP context
        server_uuid: UUID of the server
        stop_type: "soft" (ACPI shutdown) or "hard" (power off)
        timeout: Seconds after which a soft stop turns into a hard stop
        wait: Wait until the server is "stopped" (default)

    Returns:
        JSON string with the response and, when waiting, the wait outcome
    """
    try:
        validate_uuid(server_uuid, "stop_server")
        validate_choice(stop_type, ("soft", "hard"), "stop type", "stop_server")
        api = await get_upcloud_api()
        result = await api.stop_server(
            server_uuid, stop_type=stop_type, timeout=timeout, asynchronous=not wait
        )
        return format_result(result)
    except Exception as e:
        return await handle_tool_error(ctx, "stop_server", e)


@mcp.tool(name="restart_server", description="Restart a running UpCloud server")
async def restart_server(
    ctx: Context,
    server_uuid: str,
    stop_type: str = "soft",
    timeout: Optional[int] = None,
    timeout_action: str = "ignore",
) -> str:
    try:
        validate_uuid(server_uuid, "restart_server")
        api = await get_upcloud_api()
        response = await api.restart_server(
            server_uuid, stop_type=stop_type, timeout=timeout, timeout_action=timeout_action
        )
        return format_result(response)
    except Exception as e:
        return await handle_tool_error(ctx, "restart_server", e)


@mcp.tool(name="delete_server", description="Delete a stopped UpCloud server (storages are kept)")
async def delete_server(ctx: Context, server_uuid: str) -> str:
    try:
        validate_uuid(server_uuid, "delete_server")
        api = await get_upcloud_api()
        await api.delete_server(server_uuid)
        return f"Server {server_uuid} deleted"
    except Exception as e:
        return await handle_tool_error(ctx, "delete_server", e)


@mcp.tool(name="wait_for_server_state", description="Wait until an UpCloud server reaches a given state")
async def wait_for_server_state(
    ctx: Context,
    server_uuid: str,
    state: str = "started",
    timeout: float = START_SERVER_TIMEOUT,
    poll_interval: Optional[float] = None,
) -> str:
    """Poll a server until it reaches `state`, disappears, or the timeout elapses.

    Args:
        ctx: MCP context
        server_uuid: UUID of the server
        state: Wanted state: started, stopped, maintenance or error
        timeout: Maximum seconds to wait
        poll_interval: Seconds between polls (default from configuration)

    Returns:
        JSON string with the outcome: reached, disappeared or timed_out
    """
    try:
        validate_uuid(server_uuid, "wait_for_server_state")
        validate_choice(state, SERVER_STATES, "server state", "wait_for_server_state")
        api = await get_upcloud_api()
        outcome = await api.wait_for_server_state(
            server_uuid, state, timeout=timeout, poll_interval=poll_interval
        )
        return format_result(outcome)
    except Exception as e:
        return await handle_tool_error(ctx, "wait_for_server_state", e)
