"""
UpCloud API - List Profiles Command

Show the stored UpCloud accounts as a table, without their passwords.
"""

import os
from typing import Optional

import typer

from ..core.config_loader import ConfigLoader
from ..core.exceptions import ConfigurationError

COLUMNS = ("PROFILE", "ACCOUNT", "API URL", "TLS")


def _rows(profiles):
    for name in profiles:
        info = ConfigLoader.get_profile_info(name)
        yield (
            name,
            info["username_preview"],
            info["api_url"],
            "verify" if info["verify_ssl"] else "off",
        )


def list_command(
    profile: Optional[str] = typer.Argument(None, help="Only show this profile"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Also show where credentials are read from"
    ),
):
    """
    List stored UpCloud account profiles.

    Examples:
        upcloud-api list-profiles
        upcloud-api list-profiles staging --verbose
    """
    try:
        profiles = ConfigLoader.list_profiles()
        if profile is not None:
            if profile not in profiles:
                typer.echo(f"❌ Profile '{profile}' not found", err=True)
                raise typer.Exit(1)
            profiles = [profile]
        rows = list(_rows(profiles))
    except ConfigurationError as e:
        typer.echo(f"❌ Error listing profiles: {e}", err=True)
        raise typer.Exit(1)

    if not rows:
        typer.echo("No UpCloud profiles stored. Run 'upcloud-api setup' to add one.")
        return

    widths = [max(len(str(row[i])) for row in rows + [COLUMNS]) for i in range(len(COLUMNS))]
    header = "  ".join(col.ljust(width) for col, width in zip(COLUMNS, widths))
    typer.echo(typer.style(header, bold=True))
    for row in rows:
        typer.echo("  ".join(str(cell).ljust(width) for cell, width in zip(row, widths)))

    if os.getenv("UPCLOUD_USERNAME"):
        typer.echo(
            typer.style(
                "\n⚠️  UPCLOUD_USERNAME is set: environment credentials take priority over every profile",
                fg=typer.colors.YELLOW,
            )
        )

    if verbose:
        config_file = ConfigLoader.DEFAULT_CONFIG_FILE
        mode = oct(config_file.stat().st_mode & 0o777)
        typer.echo(f"\nConfig file: {config_file} (mode {mode})")
        typer.echo(f"Keyring service (legacy): {ConfigLoader.KEYRING_SERVICE_NAME}")
