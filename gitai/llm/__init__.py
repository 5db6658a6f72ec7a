"""Completion endpoint module for gitai.

This module provides the client, the request/response models, the prompt
templates and the response length budget used to generate commit messages.
"""

from gitai.llm.budget import estimate_max_tokens
from gitai.llm.client import CompletionClient
from gitai.llm.exceptions import (
    DecodeError,
    EmptyCompletionError,
    HttpStatusError,
    LLMError,
    MissingAPIKeyError,
    TransportError,
)
from gitai.llm.models import (
    BatchSlot,
    CompletionRequest,
    CompletionResponse,
    CompletionResult,
    FinishReason,
    UsageReport,
)


# Export commonly used items
__all__ = [
    "CompletionClient",
    "estimate_max_tokens",
    "LLMError",
    "MissingAPIKeyError",
    "TransportError",
    "HttpStatusError",
    "DecodeError",
    "EmptyCompletionError",
    "BatchSlot",
    "CompletionRequest",
    "CompletionResponse",
    "CompletionResult",
    "FinishReason",
    "UsageReport",
]
