"""
UpCloud API - Networking Domain

This module provides tools for server firewall rules, tags and IP addresses.
"""

import logging
from typing import Any, Optional

from mcp.server.fastmcp import Context

from ..app import mcp
from ..shared.error_handlers import (
    handle_tool_error,
    validate_firewall_parameters,
    validate_ip_family,
    validate_uuid,
)
from .configuration import format_result, get_upcloud_api

logger = logging.getLogger("upcloud-api")


def _tag_names(tags: str) -> list[str]:
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


# ========== FIREWALL TOOLS ==========


@mcp.tool(name="list_firewall_rules", description="List firewall rules of an UpCloud server")
async def list_firewall_rules(ctx: Context, server_uuid: str) -> str:
    try:
        validate_uuid(server_uuid, "list_firewall_rules")
        api = await get_upcloud_api()
        return format_result(await api.firewall_rules(server_uuid))
    except Exception as e:
        return await handle_tool_error(ctx, "list_firewall_rules", e)


@mcp.tool(name="create_firewall_rule", description="Add a firewall rule to an UpCloud server")
async def create_firewall_rule(
    ctx: Context,
    server_uuid: str,
    direction: str,
    action: str,
    family: str = "IPv4",
    protocol: Optional[str] = None,
    source_address_start: Optional[str] = None,
    source_address_end: Optional[str] = None,
    destination_port_start: Optional[str] = None,
    destination_port_end: Optional[str] = None,
    position: Optional[int] = None,
    comment: Optional[str] = None,
) -> str:
    """Add a firewall rule to a server.

    Args:
        ctx: MCP context
        server_uuid: UUID of the server
        direction: "in" or "out"
        action: "accept", "reject" or "drop"
        family: "IPv4" or "IPv6"
        protocol: "tcp", "udp" or "icmp"; any protocol if omitted
        source_address_start: First source address of the matched range
        source_address_end: Last source address of the matched range
        destination_port_start: First destination port
        destination_port_end: Last destination port
        position: Position of the rule (1-1000); appended if omitted
        comment: Free-form description

    Returns:
        JSON string with the created rule
    """
    try:
        validate_uuid(server_uuid, "create_firewall_rule")
        validate_firewall_parameters(direction, action, family, protocol, "create_firewall_rule")

        params: dict[str, Any] = {"direction": direction, "action": action, "family": family}
        optional = {
            "protocol": protocol,
            "source_address_start": source_address_start,
            "source_address_end": source_address_end,
            "destination_port_start": destination_port_start,
            "destination_port_end": destination_port_end,
            "position": position,
            "comment": comment,
        }
        params.update({key: value for key, value in optional.items() if value is not None})

        api = await get_upcloud_api()
        return format_result(await api.create_firewall_rule(server_uuid, params))
    except Exception as e:
        return await handle_tool_error(ctx, "create_firewall_rule", e)


@mcp.tool(name="remove_firewall_rule", description="Remove a firewall rule from an UpCloud server")
async def remove_firewall_rule(ctx: Context, server_uuid: str, position: int) -> str:
    try:
        validate_uuid(server_uuid, "remove_firewall_rule")
        api = await get_upcloud_api()
        await api.remove_firewall_rule(server_uuid, position)
        return f"Firewall rule {position} removed from server {server_uuid}"
    except Exception as e:
        return await handle_tool_error(ctx, "remove_firewall_rule", e)


# ========== TAG TOOLS ==========


@mcp.tool(name="list_tags", description="List UpCloud tags and the servers they are attached to")
async def list_tags(ctx: Context) -> str:
    try:
        api = await get_upcloud_api()
        return format_result(await api.tags())
    except Exception as e:
        return await handle_tool_error(ctx, "list_tags", e)


@mcp.tool(name="create_tag", description="Create an UpCloud tag")
async def create_tag(
    ctx: Context,
    name: str,
    description: Optional[str] = None,
    servers: Optional[str] = None,
) -> str:
    """Create a tag.

    Args:
        ctx: MCP context
        name: Tag name
        description: Tag description
        servers: Comma-separated server UUIDs to attach the tag to

    Returns:
        JSON string with the created tag
    """
    try:
        server_uuids = _tag_names(servers) if servers else []
        for server_uuid in server_uuids:
            validate_uuid(server_uuid, "create_tag")
        api = await get_upcloud_api()
        return format_result(await api.create_tag(name, description=description, servers=server_uuids))
    except Exception as e:
        return await handle_tool_error(ctx, "create_tag", e)


@mcp.tool(name="delete_tag", description="Delete an UpCloud tag")
async def delete_tag(ctx: Context, name: str) -> str:
    try:
        api = await get_upcloud_api()
        await api.delete_tag(name)
        return f"Tag '{name}' deleted"
    except Exception as e:
        return await handle_tool_error(ctx, "delete_tag", e)


@mcp.tool(name="tag_server", description="Attach one or more tags to an UpCloud server")
async def tag_server(ctx: Context, server_uuid: str, tags: str) -> str:
    """Attach tags to a server.

    Args:
        ctx: MCP context
        server_uuid: UUID of the server
        tags: Tag name, or comma-separated tag names

    Returns:
        JSON string with the updated server
    """
    try:
        validate_uuid(server_uuid, "tag_server")
        api = await get_upcloud_api()
        return format_result(await api.add_tag_to_server(server_uuid, _tag_names(tags)))
    except Exception as e:
        return await handle_tool_error(ctx, "tag_server", e)


@mcp.tool(name="untag_server", description="Remove one or more tags from an UpCloud server")
async def untag_server(ctx: Context, server_uuid: str, tags: str) -> str:
    try:
        validate_uuid(server_uuid, "untag_server")
        api = await get_upcloud_api()
        return format_result(await api.remove_tag_from_server(server_uuid, _tag_names(tags)))
    except Exception as e:
        return await handle_tool_error(ctx, "untag_server", e)


# ========== IP ADDRESS TOOLS ==========


@mcp.tool(name="list_ip_addresses", description="List IP addresses of the UpCloud account")
async def list_ip_addresses(ctx: Context) -> str:
    try:
        api = await get_upcloud_api()
        return format_result(await api.ip_addresses())
    except Exception as e:
        return await handle_tool_error(ctx, "list_ip_addresses", e)


@mcp.tool(name="add_ip_address", description="Assign a new public IP address to a stopped UpCloud server")
async def add_ip_address(ctx: Context, server_uuid: str, family: str = "IPv4") -> str:
    try:
        validate_uuid(server_uuid, "add_ip_address")
        validate_ip_family(family, "add_ip_address")
        api = await get_upcloud_api()
        return format_result(await api.new_ip_address_to_server(server_uuid, family=family))
    except Exception as e:
        return await handle_tool_error(ctx, "add_ip_address", e)


@mcp.tool(name="set_ip_address_ptr", description="Set the reverse DNS (PTR) record of a public IP address")
async def set_ip_address_ptr(ctx: Context, address: str, ptr_record: str) -> str:
    try:
        api = await get_upcloud_api()
        return format_result(await api.change_ip_address_ptr(address, ptr_record))
    except Exception as e:
        return await handle_tool_error(ctx, "set_ip_address_ptr", e)


@mcp.tool(name="remove_ip_address", description="Release an IP address from its UpCloud server")
async def remove_ip_address(ctx: Context, address: str) -> str:
    try:
        api = await get_upcloud_api()
        await api.remove_ip_address(address)
        return f"IP address {address} removed"
    except Exception as e:
        return await handle_tool_error(ctx, "remove_ip_address", e)
