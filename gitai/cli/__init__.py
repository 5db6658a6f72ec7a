"""CLI entry point for gitai.

This module provides the main CLI application that combines all commands
and subcommands into a single unified interface.
"""

import typer

from gitai.cli.commit import commit_command
from gitai.cli.config import config_app
from gitai.cli.main import main_command
from gitai.cli.models import models_command

# Main application
app = typer.Typer(
    name="gitai",
    help="gitai: AI generated commit messages for staged changes",
    add_completion=False,
)

# Add subcommand groups
app.add_typer(config_app, name="config")

# Add individual commands
app.command("commit")(commit_command)
app.command("models")(models_command)

# Set the main callback for global options (includes --version flag)
app.callback(invoke_without_command=True)(main_command)


__all__ = [
    "app",
    "config_app",
    "commit_command",
    "models_command",
    "main_command",
]
