"""
UpCloud API - Storage Domain

This module provides tools for storages: creation, modification, cloning,
templates, backups and restores, attaching to servers and favorites.
Long running operations wait for the affected storage to come back online
unless asked not to.
"""

import logging
from typing import Optional

from mcp.server.fastmcp import Context

from ..app import mcp
from ..shared.constants import DEFAULT_STORAGE_TIER, DEFAULT_ZONE
from ..shared.error_handlers import handle_tool_error, validate_storage_type, validate_uuid
from .configuration import format_result, get_upcloud_api

logger = logging.getLogger("upcloud-api")


def _backup_rule(interval: Optional[str], time: Optional[str], retention: Optional[int]) -> Optional[dict]:
    if interval is None:
        return None
    return {"interval": interval, "time": time or "0430", "retention": retention or 7}


# ========== STORAGE QUERIES ==========


@mcp.tool(name="list_storages", description="List UpCloud storages, optionally filtered by type")
async def list_storages(ctx: Context, storage_type: Optional[str] = None) -> str:
    """List storages.

    Args:
        ctx: MCP context
        storage_type: public, private, normal, backup, cdrom, template or favorite

    Returns:
        JSON string with the storages
    """
    try:
        if storage_type is not None:
            validate_storage_type(storage_type, "list_storages")
        api = await get_upcloud_api()
        return format_result(await api.storages(type=storage_type))
    except Exception as e:
        return await handle_tool_error(ctx, "list_storages", e)


@mcp.tool(name="get_storage", description="Get details of an UpCloud storage")
async def get_storage(ctx: Context, storage_uuid: str) -> str:
    try:
        validate_uuid(storage_uuid, "get_storage")
        api = await get_upcloud_api()
        storage = await api.storage_details(storage_uuid)
        if storage is None:
            return f"Storage {storage_uuid} not found"
        return format_result(storage)
    except Exception as e:
        return await handle_tool_error(ctx, "get_storage", e)


# ========== STORAGE MANAGEMENT ==========


@mcp.tool(name="create_storage", description="Create a new UpCloud storage")
async def create_storage(
    ctx: Context,
    size: int,
    title: str,
    tier: str = DEFAULT_STORAGE_TIER,
    zone: str = DEFAULT_ZONE,
    backup_interval: Optional[str] = None,
    backup_time: Optional[str] = None,
    backup_retention: Optional[int] = None,
) -> str:
    """Create a new storage.

    Args:
        ctx: MCP context
        size: Size in GB (10-2048)
        title: Storage title
        tier: "maxiops" or "hdd"
        zone: Zone of the storage
        backup_interval: daily or mon..sun; enables automatic backups
        backup_time: Backup time of day, "0000"-"2359" (default "0430")
        backup_retention: Days to keep backups, 1-1095 (default 7)

    Returns:
        JSON string with the created storage
    """
    try:
        api = await get_upcloud_api()
        response = await api.create_storage(
            size=size, title=title, tier=tier, zone=zone,
            backup_rule=_backup_rule(backup_interval, backup_time, backup_retention),
        )
        return format_result(response)
    except Exception as e:
        return await handle_tool_error(ctx, "create_storage", e)


@mcp.tool(name="modify_storage", description="Resize or rename an UpCloud storage")
async def modify_storage(
    ctx: Context,
    storage_uuid: str,
    size: Optional[int] = None,
    title: Optional[str] = None,
) -> str:
    try:
        validate_uuid(storage_uuid, "modify_storage")
        api = await get_upcloud_api()
        return format_result(await api.modify_storage(storage_uuid, size=size, title=title))
    except Exception as e:
        return await handle_tool_error(ctx, "modify_storage", e)


@mcp.tool(name="clone_storage", description="Clone an UpCloud storage and wait until the clone is online")
async def clone_storage(
    ctx: Context,
    storage_uuid: str,
    title: str,
    zone: str = DEFAULT_ZONE,
    tier: str = DEFAULT_STORAGE_TIER,
    wait: bool = True,
) -> str:
    try:
        validate_uuid(storage_uuid, "clone_storage")
        api = await get_upcloud_api()
        result = await api.clone_storage(
            storage_uuid, title=title, zone=zone, tier=tier, asynchronous=not wait
        )
        return format_result(result)
    except Exception as e:
        return await handle_tool_error(ctx, "clone_storage", e)


@mcp.tool(name="templatize_storage", description="Create a template from an UpCloud storage")
async def templatize_storage(ctx: Context, storage_uuid: str, title: str, wait: bool = True) -> str:
    try:
        validate_uuid(storage_uuid, "templatize_storage")
        api = await get_upcloud_api()
        result = await api.templatize_storage(storage_uuid, title=title, asynchronous=not wait)
        return format_result(result)
    except Exception as e:
        return await handle_tool_error(ctx, "templatize_storage", e)


@mcp.tool(name="create_backup", description="Back up an UpCloud storage")
async def create_backup(ctx: Context, storage_uuid: str, title: str, wait: bool = True) -> str:
    try:
        validate_uuid(storage_uuid, "create_backup")
        api = await get_upcloud_api()
        result = await api.create_backup(storage_uuid, title=title, asynchronous=not wait)
        return format_result(result)
    except Exception as e:
        return await handle_tool_error(ctx, "create_backup", e)


@mcp.tool(name="restore_backup", description="Restore a backup onto the storage it was taken from")
async def restore_backup(ctx: Context, backup_uuid: str, wait: bool = False) -> str:
    """Restore a backup. A server using the storage must be stopped first.

    Args:
        ctx: MCP context
        backup_uuid: UUID of the backup storage
        wait: Wait until the restored storage is "online"

    Returns:
        JSON string with the response and, when waiting, the wait outcome
    """
    try:
        validate_uuid(backup_uuid, "restore_backup")
        api = await get_upcloud_api()
        result = await api.restore_backup(backup_uuid, asynchronous=not wait)
        return format_result(result)
    except Exception as e:
        return await handle_tool_error(ctx, "restore_backup", e)


@mcp.tool(name="attach_storage", description="Attach a storage to a stopped UpCloud server")
async def attach_storage(
    ctx: Context,
    server_uuid: str,
    storage_uuid: str,
    device_type: str = "disk",
    address: Optional[str] = None,
) -> str:
    try:
        validate_uuid(server_uuid, "attach_storage")
        validate_uuid(storage_uuid, "attach_storage")
        api = await get_upcloud_api()
        response = await api.attach_storage(
            server_uuid, storage_uuid=storage_uuid, type=device_type, address=address
        )
        return format_result(response)
    except Exception as e:
        return await handle_tool_error(ctx, "attach_storage", e)


@mcp.tool(name="detach_storage", description="Detach a storage from a stopped UpCloud server")
async def detach_storage(ctx: Context, server_uuid: str, address: str) -> str:
    try:
        validate_uuid(server_uuid, "detach_storage")
        api = await get_upcloud_api()
        return format_result(await api.detach_storage(server_uuid, address=address))
    except Exception as e:
        return await handle_tool_error(ctx, "detach_storage", e)


@mcp.tool(name="favorite_storage", description="Add or remove an UpCloud storage from favorites")
async def favorite_storage(ctx: Context, storage_uuid: str, favorite: bool = True) -> str:
    try:
        validate_uuid(storage_uuid, "favorite_storage")
        api = await get_upcloud_api()
        if favorite:
            await api.favorite_storage(storage_uuid)
            return f"Storage {storage_uuid} added to favorites"
        await api.defavorite_storage(storage_uuid)
        return f"Storage {storage_uuid} removed from favorites"
    except Exception as e:
        return await handle_tool_error(ctx, "favorite_storage", e)


@mcp.tool(name="delete_storage", description="Delete a detached UpCloud storage (backups are kept)")
async def delete_storage(ctx: Context, storage_uuid: str) -> str:
    try:
        validate_uuid(storage_uuid, "delete_storage")
        api = await get_upcloud_api()
        await api.delete_storage(storage_uuid)
        return f"Storage {storage_uuid} deleted"
    except Exception as e:
        return await handle_tool_error(ctx, "delete_storage", e)
