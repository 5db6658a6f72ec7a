"""CLI command for listing the models of the completion endpoint."""

import typer

from gitai.cli.utils import load_effective_settings
from gitai.llm import CompletionClient, HttpStatusError, LLMError


def models_command(ctx: typer.Context) -> None:
    """List available models (good for testing connectivity)."""
    settings = load_effective_settings(ctx)

    try:
        with CompletionClient(
            api_key=settings.ai.api_key,
            base_url=settings.ai.api_url,
            timeout=settings.ai.timeout,
        ) as client:
            models = client.get_models()
    except HttpStatusError as e:
        typer.echo(f"Error: the completion endpoint returned HTTP {e.status_code}", err=True)
        if e.body:
            typer.echo(e.body, err=True)
        raise typer.Exit(1)
    except LLMError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"{len(models)} model(s) available at {settings.ai.api_url}:")
    for name in sorted(models):
        owner = models[name].get("owned_by")
        typer.echo(f"  - {name} ({owner})" if owner else f"  - {name}")
