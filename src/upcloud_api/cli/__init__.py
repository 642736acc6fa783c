"""
UpCloud API - CLI Interface

This module provides the command-line interface for managing UpCloud credentials
and profiles without exposing them to the LLM.
"""

import sys

import typer

from .delete import delete_command
from .list import list_command
from .setup import setup_command
from .test import test_command

# Create main CLI app
app = typer.Typer(
    name="upcloud-api",
    help="UpCloud API - Credential management",
    add_completion=False
)

# Register commands
app.command(name="setup", help="Configure UpCloud account credentials")(setup_command)
app.command(name="list-profiles", help="List all configured profiles")(list_command)
app.command(name="test-connection", help="Test connection to the UpCloud API")(test_command)
app.command(name="delete-profile", help="Delete a credential profile")(delete_command)


def main():
    """CLI entry point."""
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("\n\nOperation cancelled by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
