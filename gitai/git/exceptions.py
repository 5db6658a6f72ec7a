"""Git-related exception classes.

Contains all exception classes for Git operations:
- GitError: Base exception for git-related errors
- DiffUnavailableError: Raised when no diff can be produced for the staged changes
- NoStagedChangesError: Raised when there are no staged changes
- DiffEncodingError: Raised when the diff contains content that is not valid text
- IdentityUnresolvedError: Raised when no author name/email can be determined
- SigningKeyMissingError: Raised when signing is requested without a key
"""


class GitError(Exception):
    """Custom exception for git-related errors."""

    pass


class DiffUnavailableError(GitError):
    """Raised when the staged diff cannot be computed (no prior commit, unreadable repo)."""

    pass


class NoStagedChangesError(DiffUnavailableError):
    """Raised when there are no staged changes."""

    pass


class DiffEncodingError(DiffUnavailableError):
    """Raised when a diff line is not valid UTF-8 text."""

    pass


class IdentityUnresolvedError(GitError):
    """Raised when the commit author name or email cannot be resolved."""

    pass


class SigningKeyMissingError(GitError):
    """Raised when a signed commit is requested but no signing key is configured."""

    pass
