"""Shared utility functions for CLI commands."""

import logging
import sys
from typing import Optional

import typer

from gitai.config import ConfigError, Settings, load_settings

DIVIDER = "=" * 60


def setup_logging(verbose: bool = False) -> None:
    """Send log records to stderr; DEBUG when verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger("gitai").setLevel(logging.DEBUG if verbose else logging.WARNING)
    # Keep transport chatter out of verbose output
    for name in ("httpx", "httpcore", "openai"):
        logging.getLogger(name).setLevel(logging.WARNING)


def load_effective_settings(
    ctx: typer.Context,
    ai_overrides: Optional[dict] = None,
    git_overrides: Optional[dict] = None,
) -> Settings:
    """Load settings, layering global CLI options and command options on top.

    Raises:
        typer.Exit: If the configuration is invalid.
    """
    options = ctx.obj or {}
    ai = {
        "api_url": options.get("ai_api_url"),
        "api_key": options.get("ai_api_token"),
    }
    ai.update(ai_overrides or {})
    git = {"local_path": options.get("local_repo")}
    git.update(git_overrides or {})

    try:
        return load_settings(config_file=options.get("config_file"), ai_overrides=ai, git_overrides=git)
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)


def mask_secret(secret: Optional[str]) -> str:
    """Mask an API key for display."""
    if not secret:
        return "not set"
    return secret[:8] + "..." + secret[-4:] if len(secret) > 12 else "***"


def confirm_candidate(candidate: str, position: int, total: int) -> bool:
    """Show a candidate message and ask whether to commit it.

    Any answer starting with "y" (case-insensitive) accepts; everything
    else, including an empty answer or closed input, declines.

    Args:
        candidate: The candidate commit message.
        position: 1-based position of the candidate.
        total: Number of candidates.

    Returns:
        True if the operator accepted the candidate.
    """
    typer.echo("")
    if total == 1:
        typer.echo("Here is your AI generated commit message:")
    else:
        typer.echo(f"AI generated commit message {position} of {total}:")
    typer.echo(DIVIDER)
    typer.echo(candidate)
    typer.echo(DIVIDER)

    try:
        reply = typer.prompt("Commit with this message? [y/N]", default="n", show_default=False)
    except typer.Abort:
        # stdin closed (EOF) or Ctrl-C: no answer, so no commit
        typer.echo("")
        return False
    return reply.strip().lower().startswith("y")
