"""CLI commands for global configuration management."""

import typer
import yaml

from gitai import global_config
from gitai.cli.utils import load_effective_settings, mask_secret
from gitai.config import API_KEY_CREDENTIAL, default_config_dict, settings_to_dict

# Subcommand group for configuration management
config_app = typer.Typer(
    name="config",
    help="Manage global gitai configuration in ~/.gitai/",
    add_completion=False,
)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    settings = load_effective_settings(ctx)

    source = (ctx.obj or {}).get("config_file") or global_config.get_config_file_path()
    typer.echo(f"Effective gitai configuration (settings file: {source}):")
    if not (ctx.obj or {}).get("config_file") and not global_config.is_configured():
        typer.echo("  (settings file not created yet, run: gitai config init)")
    typer.echo()
    typer.echo(yaml.dump(settings_to_dict(settings), default_flow_style=False, sort_keys=False).rstrip())
    typer.echo()
    typer.echo(f"  API Key: {mask_secret(settings.ai.api_key)}")


@config_app.command("set-key")
def config_set_key() -> None:
    """Set or update the API key for the completion endpoint."""
    api_key = typer.prompt("Enter your API key", hide_input=True)

    try:
        global_config.save_credential(API_KEY_CREDENTIAL, api_key.strip())
    except global_config.GlobalConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ API key saved to {global_config.get_credentials_file_path()}")


@config_app.command("init")
def config_init() -> None:
    """Write ~/.gitai/config.yaml with default values."""
    try:
        created = global_config.initialize_default_config(default_config_dict())
    except global_config.GlobalConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    path = global_config.get_config_file_path()
    if created:
        typer.echo(f"✓ Default configuration written to {path}")
        typer.echo("Set your API key with: gitai config set-key")
    else:
        typer.echo(f"Configuration already exists at {path}")
