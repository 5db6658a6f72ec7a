"""Git command runner and repository utilities.

Contains:
- _run_git_command: Run a git command and return its text output
- _run_git_command_raw: Run a git command and return its undecoded output
- get_repo_root: Get the root directory of the git repository
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Union

from gitai.git.exceptions import GitError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _run_git_command_raw(
    args: list[str],
    cwd: Optional[PathLike] = None,
    input_data: Optional[bytes] = None,
) -> bytes:
    """Run a git command and return its stdout as bytes.

    The output is not decoded so callers can decide how to treat content
    that is not valid text (diff bodies may contain binary data).

    Args:
        args: List of arguments to pass to git.
        cwd: Directory to run the command in (defaults to the current directory).
        input_data: Optional bytes fed to the command's stdin.

    Returns:
        The raw stdout of the git command.

    Raises:
        GitError: If the command fails or git is not installed.
    """
    logger.debug("Running git %s", " ".join(args))
    try:
        result = subprocess.run(
            ["git"] + args,
            cwd=str(cwd) if cwd is not None else None,
            input=input_data,
            capture_output=True,
            check=True,
        )
        return result.stdout
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
        raise GitError(f"Git command failed: git {' '.join(args)}\n{stderr}")
    except FileNotFoundError:
        raise GitError("Git is not installed or not in PATH.")


def _run_git_command(
    args: list[str],
    cwd: Optional[PathLike] = None,
    input_text: Optional[str] = None,
) -> str:
    """Run a git command and return its output.

    Args:
        args: List of arguments to pass to git.
        cwd: Directory to run the command in (defaults to the current directory).
        input_text: Optional text fed to the command's stdin.

    Returns:
        The stdout of the git command, stripped.

    Raises:
        GitError: If the command fails.
    """
    input_data = input_text.encode("utf-8") if input_text is not None else None
    output = _run_git_command_raw(args, cwd=cwd, input_data=input_data)
    return output.decode("utf-8", errors="replace").strip()


def get_repo_root(path: Optional[PathLike] = None) -> Path:
    """Get the root directory of the git repository containing ``path``.

    Args:
        path: A directory inside the repository (defaults to the current directory).

    Returns:
        Path to the repository root.

    Raises:
        GitError: If not in a git repository.
    """
    try:
        root = _run_git_command(["rev-parse", "--show-toplevel"], cwd=path)
        return Path(root)
    except GitError:
        raise GitError("Not in a git repository. Please run this command from within a git repo.")
