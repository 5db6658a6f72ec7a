"""Main CLI callback: global options shared by all commands."""

from pathlib import Path
from typing import Optional

import typer

from gitai import __version__
from gitai.cli.utils import setup_logging


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gitai {__version__}")
        raise typer.Exit(0)


def main_command(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Turn verbose (debug) logging on",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Use a custom settings file instead of ~/.gitai/config.yaml",
    ),
    ai_api_url: Optional[str] = typer.Option(
        None,
        "--ai-api-url",
        help="Base URL of the completion API",
    ),
    ai_api_token: Optional[str] = typer.Option(
        None,
        "--ai-api-token",
        help="API token for the completion API",
    ),
    local_repo: Optional[Path] = typer.Option(
        None,
        "--local-repo",
        "-l",
        help="Path to the local repository (defaults to the current directory)",
    ),
) -> None:
    """Generate commit messages for staged changes with a text completion model."""
    setup_logging(verbose)

    ctx.obj = {
        "config_file": config_file,
        "ai_api_url": ai_api_url,
        "ai_api_token": ai_api_token,
        "local_repo": str(local_repo) if local_repo else None,
    }

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
