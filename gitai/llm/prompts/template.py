"""Prompt template rendering.

A prompt is a framing sentence that names the target language, a divider,
the normalized diff, a second divider and a closing instruction. The
dividers let the model tell instructions apart from diff content.
"""

from dataclasses import dataclass, replace

SEPARATOR_WIDTH = 16
DEFAULT_SEPARATOR = "="


@dataclass(frozen=True)
class PromptTemplate:
    """A parameterized prompt.

    Attributes:
        preamble: Text before the target language.
        target_language: Language of the code being changed (e.g. "Python").
        postamble: Text between the target language and the diff.
        separator: Single character repeated to build the dividers.
        diff_body: The normalized diff text.
        closing_instruction: Instruction placed after the diff.
    """

    preamble: str
    postamble: str
    closing_instruction: str
    target_language: str = ""
    diff_body: str = ""
    separator: str = DEFAULT_SEPARATOR

    def __post_init__(self):
        if len(self.separator) != 1:
            raise ValueError(f"separator must be a single character, got {self.separator!r}")

    @property
    def divider(self) -> str:
        return self.separator * SEPARATOR_WIDTH

    def with_inputs(self, diff_text: str, target_language: str) -> "PromptTemplate":
        """Return a copy carrying this run's diff and target language."""
        return replace(self, diff_body=diff_text, target_language=target_language)

    def render(self) -> str:
        return (
            f"{self.preamble} {self.target_language} {self.postamble}\n"
            f"{self.divider}\n"
            f"{self.diff_body}\n"
            f"{self.divider}\n"
            f"{self.closing_instruction}"
        )


def render(template: PromptTemplate, diff_text: str, target_language: str) -> str:
    """Render ``template`` for the given diff and target language.

    Pure: the same arguments always produce the same string.

    Args:
        template: The template (usually a preset) to render.
        diff_text: The normalized diff.
        target_language: Language hint for the code in the diff.

    Returns:
        The rendered prompt.
    """
    return template.with_inputs(diff_text, target_language).render()
