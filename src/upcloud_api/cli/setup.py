"""
UpCloud API - Setup Command

Interactive setup for configuring UpCloud credentials.
"""

import asyncio
import getpass

import pydantic
import typer

from ..core.config_loader import ConfigLoader
from ..core.exceptions import ConfigurationError
from ..core.models import UpCloudConfig
from ..shared.constants import DEFAULT_API_URL
from .test import test_connection_async


def setup_command(
    profile: str = typer.Option(
        "default", "--profile", "-p", help="Profile name (default, production, staging, etc.)"
    ),
    username: str | None = typer.Option(None, "--username", "-u", help="UpCloud API username"),
    password: str | None = typer.Option(None, "--password", help="UpCloud API password"),
    api_url: str = typer.Option(DEFAULT_API_URL, "--api-url", help="UpCloud API root URL"),
    verify_ssl: bool = typer.Option(
        True, "--verify-ssl/--no-verify-ssl", help="Verify SSL certificates"
    ),
    interactive: bool = typer.Option(
        True, "--interactive/--non-interactive", help="Interactive mode with prompts"
    ),
    skip_test: bool = typer.Option(False, "--skip-test", help="Save without testing the connection"),
):
    """
    Configure UpCloud account credentials.

    Examples:
        # Interactive setup
        upcloud-api setup

        # Non-interactive setup
        upcloud-api setup --username USER --password PASS --non-interactive

        # Setup production profile
        upcloud-api setup --profile production
    """
    typer.echo("\n🔧 UpCloud API - Credential Setup\n")
    typer.echo(f"Profile: {typer.style(profile, fg=typer.colors.CYAN, bold=True)}\n")

    if interactive:
        if not username:
            username = typer.prompt("API username")

        if not password:
            password = getpass.getpass("API password (hidden): ")

    elif not all([username, password]):
        typer.echo(
            "❌ Error: In non-interactive mode, --username and --password are required",
            err=True,
        )
        raise typer.Exit(1)

    try:
        config = UpCloudConfig(
            username=username, password=password, api_url=api_url, verify_ssl=verify_ssl
        )
    except pydantic.ValidationError as e:
        typer.echo(f"❌ Invalid configuration: {e}", err=True)
        raise typer.Exit(1)

    if not skip_test:
        typer.echo("\n🔍 Testing connection...")
        result = asyncio.run(test_connection_async(config))
        if result["success"]:
            typer.echo("✅ Connection successful!")
        else:
            typer.echo(f"⚠️  Connection failed: {result['error']}")
            if not typer.confirm("Continue with save?", default=False):
                typer.echo("Setup cancelled")
                raise typer.Exit(0)

    try:
        ConfigLoader.save_profile(profile, config)
    except (ConfigurationError, OSError) as e:
        typer.echo(f"\n❌ Error saving profile: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"\n✅ Profile '{profile}' saved successfully!")
    typer.echo(f"\n📍 Config location: {ConfigLoader.DEFAULT_CONFIG_FILE}")
    typer.echo("🔒 File permissions: 0600 (owner read/write only)")

    typer.echo("\n📖 Usage:")
    typer.echo(f'   • In your MCP client, say: "Configure UpCloud connection using profile {profile}"')
    typer.echo(f"   • Test connection: upcloud-api test-connection --profile {profile}")
    typer.echo("   • List profiles: upcloud-api list-profiles")
