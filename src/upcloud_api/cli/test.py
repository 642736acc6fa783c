"""
UpCloud API - Test Connection Command

Test connection to the UpCloud API with a stored profile.
"""

import asyncio
from typing import Any, Dict

import typer

from ..core.client import UpCloudClient
from ..core.config_loader import ConfigLoader
from ..core.exceptions import ApplicationError, ConfigurationError, TransportError, UpCloudError
from ..core.models import UpCloudConfig
from ..shared.constants import API_ACCOUNT


def test_command(
    profile: str = typer.Option("default", "--profile", "-p", help="Profile name to test")
):
    """
    Test connection to the UpCloud API.

    Examples:
        # Test default profile
        upcloud-api test-connection

        # Test specific profile
        upcloud-api test-connection --profile production
    """
    typer.echo("\n🔍 Testing UpCloud Connection\n")
    typer.echo(f"Profile: {typer.style(profile, fg=typer.colors.CYAN, bold=True)}\n")

    try:
        typer.echo("📡 Loading credentials...")
        config = ConfigLoader.load(profile)
    except ConfigurationError as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        typer.echo("\n💡 Run 'upcloud-api setup' to configure credentials")
        raise typer.Exit(1)

    typer.echo(f"API: {config.base_url}")
    typer.echo(f"SSL Verification: {'Enabled' if config.verify_ssl else 'Disabled'}\n")

    typer.echo("🔌 Connecting to UpCloud...")
    result = asyncio.run(test_connection_async(config))

    if result["success"]:
        typer.echo(
            f"\n✅ {typer.style('Connection successful!', fg=typer.colors.GREEN, bold=True)}"
        )

        account = result.get("account") or {}
        if account:
            typer.echo("\n📊 Account Information:")
            if "username" in account:
                typer.echo(f"   Username: {account['username']}")
            if "credits" in account:
                typer.echo(f"   Credits: {account['credits']}")

        typer.echo("\n✓ Your UpCloud connection is properly configured")

    else:
        typer.echo(f"\n❌ {typer.style('Connection failed', fg=typer.colors.RED, bold=True)}")
        typer.echo(f"\nError: {result.get('error', 'Unknown error')}")
        typer.echo("\n💡 Troubleshooting tips:")
        typer.echo("   • Check the username and password are valid")
        typer.echo("   • Ensure API access is enabled for the account")
        typer.echo("   • Ensure the API allows connections from your IP address")
        raise typer.Exit(1)


async def test_connection_async(config: UpCloudConfig) -> Dict[str, Any]:
    """
    Fetch account information to check the credentials.

    Args:
        config: UpCloud configuration

    Returns:
        Dictionary with test results
    """
    async with UpCloudClient(config) as client:
        try:
            response = await client.request_json("GET", API_ACCOUNT, operation="test_connection")
            return {"success": True, "account": response.unwrap("account")}

        except ApplicationError as e:
            if e.status_code == 401:
                return {"success": False, "error": f"Authentication failed: {e!s}"}
            return {"success": False, "error": str(e)}

        except TransportError as e:
            return {"success": False, "error": f"Network error: {e!s}"}

        except UpCloudError as e:
            return {"success": False, "error": str(e)}
