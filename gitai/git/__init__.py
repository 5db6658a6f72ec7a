"""Git collaborators for gitai.

This package wraps the git binary:
- exceptions: GitError and its subclasses
- runner: _run_git_command, _run_git_command_raw, get_repo_root
- diff: StructuredDiff, parse_diff, get_staged_diff, normalize_diff
- commit: resolve_identity, resolve_signing_key, commit
"""

# Exceptions
from gitai.git.exceptions import (
    GitError,
    DiffUnavailableError,
    NoStagedChangesError,
    DiffEncodingError,
    IdentityUnresolvedError,
    SigningKeyMissingError,
)

# Runner utilities
from gitai.git.runner import (
    _run_git_command,
    _run_git_command_raw,
    get_repo_root,
)

# Diff utilities
from gitai.git.diff import (
    DiffFile,
    DiffHunk,
    DiffLine,
    StructuredDiff,
    get_staged_diff,
    normalize_diff,
    parse_diff,
)

# Commit utilities
from gitai.git.commit import (
    commit,
    resolve_identity,
    resolve_signing_key,
)


__all__ = [
    # Exceptions
    "GitError",
    "DiffUnavailableError",
    "NoStagedChangesError",
    "DiffEncodingError",
    "IdentityUnresolvedError",
    "SigningKeyMissingError",
    # Runner
    "_run_git_command",
    "_run_git_command_raw",
    "get_repo_root",
    # Diff
    "DiffFile",
    "DiffHunk",
    "DiffLine",
    "StructuredDiff",
    "get_staged_diff",
    "normalize_diff",
    "parse_diff",
    # Commit
    "commit",
    "resolve_identity",
    "resolve_signing_key",
]
