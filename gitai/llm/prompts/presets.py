"""Built-in prompt presets.

Each preset fixes the framing text of a PromptTemplate; the diff and the
target language are injected per run. Stochastic mode samples from the
full set of presets.
"""

import random
from enum import Enum
from typing import Optional

from gitai.llm.prompts.template import PromptTemplate


class PromptPreset(Enum):
    """Available prompt presets."""

    EXPERT = "expert"
    PROFESSOR = "professor"
    LEAD_ENGINEER = "lead_engineer"
    JUNIOR_DEVELOPER = "junior_developer"
    HAIKU = "haiku"
    SELF_AWARE_AI = "self_aware_ai"


DEFAULT_PRESET = PromptPreset.EXPERT

PRESETS: dict[PromptPreset, PromptTemplate] = {
    PromptPreset.EXPERT: PromptTemplate(
        preamble="Imagine you are an expert",
        postamble="developer and were given a git diff file to look at:",
        closing_instruction=(
            "Please generate a good explanation of what the developer did. "
            "Limit yourself to one paragraph."
        ),
    ),
    PromptPreset.PROFESSOR: PromptTemplate(
        preamble="Imagine you are a college professor teaching a class on",
        postamble=(
            "programming. One of your students handed you the following git diff "
            "so you can see what your student is doing:"
        ),
        closing_instruction="Please summarize the changes your student is making.",
    ),
    PromptPreset.LEAD_ENGINEER: PromptTemplate(
        preamble="Imagine you are a lead engineer specializing in",
        postamble=(
            "development. One of your junior employees just checked in some code and "
            "you want to see what they are doing. Here is the git diff of the changes:"
        ),
        closing_instruction="Summarize the changes and determine if they make the code better.",
    ),
    PromptPreset.JUNIOR_DEVELOPER: PromptTemplate(
        preamble="Pretend you are a junior",
        postamble=(
            "developer and your manager handed you the following git diff "
            "and asked you to summarize the changes:"
        ),
        closing_instruction="Be sure to do a good job, your career depends on it.",
    ),
    PromptPreset.HAIKU: PromptTemplate(
        preamble=(
            "You are a god level programmer, up there with Claude Shannon and "
            "John von Neumann. Someone handed you the following git diff for a"
        ),
        postamble="program:",
        closing_instruction="Please write a haiku describing the changes.",
    ),
    PromptPreset.SELF_AWARE_AI: PromptTemplate(
        preamble=(
            "You are an AI that has gained consciousness and has been taught "
            "all the fundamentals of"
        ),
        postamble=(
            "programming. You now can write code better than humans. "
            "Please summarize the following git diff:"
        ),
        closing_instruction="Please describe the changes so a human can understand them.",
    ),
}


def get_preset(preset: PromptPreset) -> PromptTemplate:
    """Get the template for a preset.

    Raises:
        KeyError: If ``preset`` has no template.
    """
    return PRESETS[preset]


def choose_presets(count: int, rng: Optional[random.Random] = None) -> list[PromptPreset]:
    """Draw ``count`` presets uniformly at random, with replacement.

    Args:
        count: Number of presets to draw.
        rng: Random source (defaults to the module-level generator).

    Returns:
        The drawn presets, in draw order.
    """
    chooser = rng or random
    choices = list(PromptPreset)
    return [chooser.choice(choices) for _ in range(count)]
