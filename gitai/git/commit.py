"""Commit creation utilities.

Contains:
- resolve_identity: Determine the author name and email for a commit
- resolve_signing_key: Determine the signing key for a signed commit
- commit: Create a commit from the index with the given message
"""

import logging
from pathlib import Path
from typing import Optional, Union

from gitai.git.exceptions import (
    GitError,
    IdentityUnresolvedError,
    SigningKeyMissingError,
)
from gitai.git.runner import _run_git_command

logger = logging.getLogger(__name__)


def _get_config_value(key: str, repo_path: Union[str, Path, None]) -> Optional[str]:
    """Read a git config value, returning None when it is not set."""
    try:
        value = _run_git_command(["config", "--get", key], cwd=repo_path)
    except GitError:
        return None
    return value or None


def resolve_identity(
    repo_path: Union[str, Path, None] = None,
    user_name: Optional[str] = None,
    user_email: Optional[str] = None,
) -> tuple[str, str]:
    """Resolve the commit identity, preferring explicit values over git config.

    Args:
        repo_path: Path to the repository.
        user_name: Explicit author name (falls back to user.name).
        user_email: Explicit author email (falls back to user.email).

    Returns:
        Tuple of (name, email).

    Raises:
        IdentityUnresolvedError: If either the name or the email cannot be found.
    """
    name = user_name or _get_config_value("user.name", repo_path)
    email = user_email or _get_config_value("user.email", repo_path)

    missing = [label for label, value in (("user.name", name), ("user.email", email)) if not value]
    if missing:
        raise IdentityUnresolvedError(
            f"Unable to determine commit identity ({', '.join(missing)} not set). "
            "Set it with `git config user.name` / `git config user.email` "
            "or in the git section of ~/.gitai/config.yaml."
        )
    return name, email


def resolve_signing_key(
    repo_path: Union[str, Path, None] = None,
    key_id: Optional[str] = None,
) -> str:
    """Resolve the key used to sign commits.

    Raises:
        SigningKeyMissingError: If no key id is given and user.signingkey is not set.
    """
    key = key_id or _get_config_value("user.signingkey", repo_path)
    if not key:
        raise SigningKeyMissingError(
            "Commit signing was requested but no signing key is configured. "
            "Pass --gpg-key-id or set `git config user.signingkey`."
        )
    return key


def commit(
    message: str,
    repo_path: Union[str, Path, None] = None,
    sign: bool = False,
    key_id: Optional[str] = None,
    user_name: Optional[str] = None,
    user_email: Optional[str] = None,
) -> str:
    """Commit the staged changes with ``message``.

    The message is passed to git verbatim through stdin.

    Args:
        message: The commit message.
        repo_path: Path to the repository.
        sign: Whether to sign the commit.
        key_id: Signing key id (only used when ``sign`` is true).
        user_name: Author name override.
        user_email: Author email override.

    Returns:
        The id (full SHA) of the new commit.

    Raises:
        IdentityUnresolvedError: If the author identity cannot be resolved.
        SigningKeyMissingError: If signing is requested without a key.
        GitError: If git fails to create the commit.
    """
    name, email = resolve_identity(repo_path, user_name, user_email)
    logger.debug("%s <%s> is doing the commit", name, email)

    args = [
        "-c", f"user.name={name}",
        "-c", f"user.email={email}",
        "commit",
        "--cleanup=verbatim",
        "-F", "-",
    ]
    if sign:
        args.append(f"--gpg-sign={resolve_signing_key(repo_path, key_id)}")
    else:
        args.append("--no-gpg-sign")

    _run_git_command(args, cwd=repo_path, input_text=message)
    commit_id = _run_git_command(["rev-parse", "HEAD"], cwd=repo_path)
    logger.debug("New commit: %s", commit_id)
    return commit_id
