"""LLM-related exception classes.

Contains all exception classes for completion endpoint operations:
- LLMError: Base exception for LLM-related errors
- MissingAPIKeyError: Raised when no API key is configured
- TransportError: Raised on connectivity failures, timeouts and redirect loops
- HttpStatusError: Raised when the endpoint answers with a non-2xx status
- DecodeError: Raised when the response body is not well-formed
- EmptyCompletionError: Raised when a response carries no usable candidate
"""

from typing import Optional


class LLMError(Exception):
    """Base exception for LLM-related errors."""

    pass


class MissingAPIKeyError(LLMError):
    """Raised when the required API key is not set."""

    pass


class TransportError(LLMError):
    """Raised when the endpoint cannot be reached (network, timeout, redirect loop)."""

    pass


class HttpStatusError(LLMError):
    """Raised when the endpoint returns a non-2xx response.

    Attributes:
        status_code: The HTTP status code.
        body: The raw response body.
    """

    def __init__(self, status_code: int, body: str, message: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"Completion endpoint returned HTTP {status_code}: {body}")


class DecodeError(LLMError):
    """Raised when the response body is not valid JSON or misses required fields."""

    pass


class EmptyCompletionError(LLMError):
    """Raised when every completion in a response is empty."""

    pass
