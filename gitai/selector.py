"""Candidate cleanup and collection.

Contains:
- clean: Drop blank lines from a candidate
- collect: Gather the cleaned candidates of one response
"""

from typing import Iterable

from gitai.llm.exceptions import EmptyCompletionError
from gitai.llm.models import CompletionResult


def clean(raw_text: str) -> str:
    """Remove empty and whitespace-only lines.

    The remaining lines keep their order and exact content.

    Args:
        raw_text: The candidate text as returned by the endpoint.

    Returns:
        The non-blank lines joined with newlines.
    """
    return "\n".join(line for line in raw_text.split("\n") if line.strip())


def collect(results: Iterable[CompletionResult]) -> list[str]:
    """Extract and clean every non-empty completion text.

    Results without text (or with only blank lines) are skipped.

    Args:
        results: The results of one response, in the order the client returned them.

    Returns:
        The cleaned candidate strings, in result order.

    Raises:
        EmptyCompletionError: If no result has usable text.
    """
    candidates = []
    for result in results:
        if not result.text:
            continue
        text = clean(result.text)
        if text:
            candidates.append(text)

    if not candidates:
        raise EmptyCompletionError("The completion endpoint responded but with no completions.")
    return candidates
