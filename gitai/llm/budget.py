"""Response length budget for completion requests.

A commit message should be short relative to the diff it summarizes, so the
requested completion length is a fraction of the prompt's character count,
capped by a ceiling and never below one token.
"""

DEFAULT_TOKEN_DIVISOR = 4
DEFAULT_TOKEN_CEILING = 256


def estimate_max_tokens(
    rendered_prompt: str,
    divisor: int = DEFAULT_TOKEN_DIVISOR,
    ceiling: int = DEFAULT_TOKEN_CEILING,
) -> int:
    """Estimate the max_tokens cap for a prompt.

    Args:
        rendered_prompt: The full prompt text.
        divisor: Characters of prompt per token of answer.
        ceiling: Hard upper bound on the result.

    Returns:
        ``len(rendered_prompt) // divisor`` clamped to ``[1, ceiling]``.

    Raises:
        ValueError: If divisor or ceiling is below 1.
    """
    if divisor < 1:
        raise ValueError(f"divisor must be >= 1, got {divisor}")
    if ceiling < 1:
        raise ValueError(f"ceiling must be >= 1, got {ceiling}")

    return max(1, min(ceiling, len(rendered_prompt) // divisor))
