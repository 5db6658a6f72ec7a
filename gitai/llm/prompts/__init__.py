"""Prompt templates for commit message generation.

This package contains:
- template: PromptTemplate and the render function
- presets: The closed set of built-in presets used by default and stochastic mode
"""

from gitai.llm.prompts.template import (
    DEFAULT_SEPARATOR,
    SEPARATOR_WIDTH,
    PromptTemplate,
    render,
)
from gitai.llm.prompts.presets import (
    DEFAULT_PRESET,
    PRESETS,
    PromptPreset,
    choose_presets,
    get_preset,
)


__all__ = [
    "DEFAULT_SEPARATOR",
    "SEPARATOR_WIDTH",
    "PromptTemplate",
    "render",
    "DEFAULT_PRESET",
    "PRESETS",
    "PromptPreset",
    "choose_presets",
    "get_preset",
]
