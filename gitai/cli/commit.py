"""CLI command for generating a commit message and committing with it."""

from functools import partial
from typing import Optional

import typer

from gitai.cli.utils import confirm_candidate, load_effective_settings
from gitai.config import MAX_NUM_TRIES, MIN_NUM_TRIES
from gitai.git import (
    GitError,
    NoStagedChangesError,
    commit,
    get_repo_root,
    get_staged_diff,
)
from gitai.llm import (
    CompletionClient,
    HttpStatusError,
    LLMError,
)
from gitai.pipeline import CommitPipeline, PipelineRun, PipelineState


def commit_command(
    ctx: typer.Context,
    stochastic: bool = typer.Option(
        False,
        "--stochastic",
        "-s",
        help="Send several randomly chosen prompt variants instead of one prompt",
    ),
    num_tries: Optional[int] = typer.Option(
        None,
        "--num-tries",
        "-n",
        min=MIN_NUM_TRIES,
        max=MAX_NUM_TRIES,
        help="Number of candidate messages to generate",
    ),
    programming_language: Optional[str] = typer.Option(
        None,
        "--programming-language",
        "-p",
        help="Language of the changed code, very useful for small commits",
    ),
    auto_ai: bool = typer.Option(
        False,
        "--auto-ai",
        "-i",
        help="Commit with the first generated message without review (DANGEROUS)",
    ),
    auto_add: bool = typer.Option(
        False,
        "--auto-add",
        "-a",
        help="Stage all changes (git add --all) before generating (DANGEROUS)",
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model",
        "-m",
        help="Completion model to use",
    ),
    gpg_sign_commit: bool = typer.Option(
        False,
        "--gpg-sign-commit",
        help="Sign the commit",
    ),
    gpg_key_id: Optional[str] = typer.Option(
        None,
        "--gpg-key-id",
        help="Signing key id (only used with --gpg-sign-commit)",
    ),
) -> None:
    """Generate a commit message for the staged changes and commit with it."""
    settings = load_effective_settings(
        ctx,
        ai_overrides={
            "stochastic": stochastic or None,
            "num_tries": num_tries,
            "language": programming_language,
            "auto_ai": auto_ai or None,
            "model": model,
        },
        git_overrides={
            "auto_add": auto_add or None,
            "sign_commits": gpg_sign_commit or None,
            "key_id": gpg_key_id,
        },
    )
    git = settings.git

    try:
        repo_root = get_repo_root(git.local_path)
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    client = CompletionClient(
        api_key=settings.ai.api_key,
        base_url=settings.ai.api_url,
        timeout=settings.ai.timeout,
    )
    pipeline = CommitPipeline(
        settings=settings.ai,
        client=client,
        diff_source=partial(get_staged_diff, repo_root, auto_add=git.auto_add),
        commit_sink=partial(
            commit,
            repo_path=repo_root,
            sign=git.sign_commits,
            key_id=git.key_id,
            user_name=git.user_name,
            user_email=git.user_email,
        ),
        confirm=confirm_candidate,
    )

    run = PipelineRun()
    typer.echo("Generating commit message...", err=True)
    try:
        with client:
            pipeline.run(run)
    except NoStagedChangesError:
        typer.echo("nothing to commit (no changes staged for commit)", err=True)
        typer.echo("", err=True)
        typer.echo("Stage your changes first with:", err=True)
        typer.echo("  git add <file>...", err=True)
        typer.echo("or run gitai commit --auto-add", err=True)
        raise typer.Exit(1)
    except HttpStatusError as e:
        typer.echo(f"Error: the completion endpoint returned HTTP {e.status_code}", err=True)
        if e.body:
            typer.echo(e.body, err=True)
        raise typer.Exit(1)
    except LLMError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except GitError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if run.state is PipelineState.DECLINED:
        typer.echo("")
        typer.echo(f"Commit cancelled. {run.usage.total_tokens} tokens used.")
        raise typer.Exit(0)

    typer.echo("")
    typer.echo("Commit successful!", err=True)
    typer.echo(run.commit_id)
