"""
UpCloud API - Delete Profile Command

Remove one or more stored UpCloud account profiles.
"""

from typing import List

import typer

from ..core.config_loader import ConfigLoader
from ..core.exceptions import ConfigurationError


def delete_command(
    profiles: List[str] = typer.Argument(..., help="Profile name(s) to delete"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
    purge_keyring: bool = typer.Option(
        False, "--purge-keyring", help="Also remove legacy keyring entries with the same names"
    ),
):
    """
    Delete stored credential profiles.

    Every named profile must exist; nothing is deleted otherwise.

    Examples:
        upcloud-api delete-profile staging
        upcloud-api delete-profile staging testing --force --purge-keyring
    """
    try:
        stored = ConfigLoader.list_profiles()
        missing = [name for name in profiles if name not in stored]
        if missing:
            typer.echo(f"❌ Unknown profile(s): {', '.join(missing)}", err=True)
            typer.echo(f"Stored profiles: {', '.join(stored) or 'none'}")
            raise typer.Exit(1)

        for name in profiles:
            info = ConfigLoader.get_profile_info(name)
            typer.echo(f"  {typer.style(name, bold=True)}  account {info['username_preview']}  {info['api_url']}")

        if not force and not typer.confirm(f"Delete {len(profiles)} profile(s)?", default=False):
            typer.echo("Operation cancelled")
            raise typer.Exit(0)

        for name in profiles:
            ConfigLoader.delete_profile(name)
            keyring_note = ""
            if purge_keyring and ConfigLoader.remove_from_keyring(name):
                keyring_note = " (keyring entry removed)"
            typer.echo(f"✅ Deleted '{name}'{keyring_note}")
    except ConfigurationError as e:
        typer.echo(f"❌ Error: {e}", err=True)
        raise typer.Exit(1)

    remaining = ConfigLoader.list_profiles()
    typer.echo(f"Remaining profiles: {', '.join(remaining) if remaining else 'none'}")
