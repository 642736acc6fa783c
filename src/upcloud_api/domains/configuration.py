"""
UpCloud API - Configuration Domain

This module provides the tool that connects the MCP server to an UpCloud
account, plus the helpers every other domain uses to reach the API and render
results.
"""

import json
import logging
from typing import Any

from mcp.server.fastmcp import Context

from ..app import mcp, server_state
from ..core import (
    ApplicationError,
    ConfigurationError,
    TransportError,
    UpCloudApi,
)
from ..core.api import OperationResult
from ..core.client import ApiResponse
from ..core.config_loader import ConfigLoader
from ..core.poller import Disappeared, Reached, TimedOut
from ..core.resources import Resource

logger = logging.getLogger("upcloud-api")


# ========== HELPER FUNCTIONS ==========


async def get_upcloud_api() -> UpCloudApi:
    """Get the UpCloud API facade from server state with validation."""
    return await server_state.get_api()


def _plain(value: Any) -> Any:
    if isinstance(value, Resource):
        return value.raw()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, ApiResponse):
        return value.json()
    if isinstance(value, Reached):
        return {
            "outcome": "reached",
            "attempts": value.attempts,
            "elapsed": round(value.elapsed, 3),
            "snapshot": _plain(value.snapshot),
        }
    if isinstance(value, Disappeared):
        return {
            "outcome": "disappeared",
            "attempts": value.attempts,
            "elapsed": round(value.elapsed, 3),
        }
    if isinstance(value, TimedOut):
        last_state = getattr(value.last_snapshot, "state", None)
        return {
            "outcome": "timed_out",
            "attempts": value.attempts,
            "elapsed": round(value.elapsed, 3),
            "timeout": value.timeout,
            "last_state": last_state,
            "last_error": str(value.last_error) if value.last_error else None,
        }
    if isinstance(value, OperationResult):
        result = {"response": _plain(value.response)}
        if value.waited:
            result["wait"] = _plain(value.outcome)
        return result
    return value


def format_result(value: Any) -> str:
    """Render snapshots, responses and wait outcomes as indented JSON."""
    return json.dumps(_plain(value), indent=2)


# ========== CONFIGURATION TOOLS ==========


@mcp.tool(
    name="configure_upcloud_connection",
    description="Configure the UpCloud connection using locally stored credentials (never sends credentials to LLM)",
)
async def configure_upcloud_connection(ctx: Context, profile: str = "default") -> str:
    """Configure the UpCloud connection using locally stored credentials.

    **SECURITY:** Credentials are loaded from local storage only and never sent to the LLM.

    **Setup Required:** Before using this tool, credentials must be configured using:
    1. CLI command: `upcloud-api setup` (recommended)
    2. Environment variables: UPCLOUD_USERNAME, UPCLOUD_PASSWORD
    3. Config file: ~/.upcloud-api/config.json

    Args:
        ctx: MCP context
        profile: Profile name to load credentials from (default: "default")

    Returns:
        Success message with connection details (no credentials exposed)
    """
    try:
        logger.info(f"Loading UpCloud configuration for profile: {profile}")
        config = ConfigLoader.load(profile)

        await server_state.initialize(config)

        # Track current profile for credential rotation detection
        server_state._current_profile = profile

        await ctx.info(f"UpCloud connection configured successfully using profile '{profile}'")

        return (
            f"✅ UpCloud connection configured successfully!\n\n"
            f"Profile: {profile}\n"
            f"API: {config.base_url}\n"
            f"SSL Verification: {'Enabled' if config.verify_ssl else 'Disabled'}\n\n"
            f"🔒 Security: Credentials loaded from local storage (never exposed to LLM)"
        )

    except ConfigurationError as e:
        error_msg = f"Configuration error: {e!s}"
        logger.error(error_msg, exc_info=True)
        await ctx.error(error_msg)

        return (
            f"❌ Configuration Error: {e!s}\n\n"
            f"📖 Setup Instructions:\n"
            f"1. Run: upcloud-api setup --profile {profile}\n"
            f"2. Or set environment variables: UPCLOUD_USERNAME, UPCLOUD_PASSWORD\n"
            f"3. Or create config file: {ConfigLoader.DEFAULT_CONFIG_FILE}\n\n"
            f"💡 Tip: Use 'upcloud-api list-profiles' to see configured profiles"
        )

    except ApplicationError as e:
        error_msg = f"UpCloud rejected the connection: {e!s}"
        logger.error(error_msg, exc_info=True)
        await ctx.error(error_msg)
        if e.status_code == 401:
            return (
                f"❌ Authentication Error: {e!s}\n\n"
                f"The credentials for profile '{profile}' appear to be invalid.\n"
                f"Please verify that API access is enabled for the account.\n\n"
                f"Run: upcloud-api setup --profile {profile} (to update credentials)"
            )
        return f"❌ API Error: {e!s}"

    except TransportError as e:
        error_msg = f"Network error: {e!s}"
        logger.error(error_msg, exc_info=True)
        await ctx.error(error_msg)
        return (
            f"❌ Network Error: {e!s}\n\n"
            f"Could not reach the UpCloud API.\n"
            f"Run: upcloud-api test-connection --profile {profile} (to diagnose)"
        )
