"""Prompt template library for screenshot solving.

Responsibilities:
- Normalize the prompt-mode selector into a closed `PromptMode` value.
- Build deterministic instruction text for each supported mode.
"""

from __future__ import annotations

from ..models.datatypes import PromptMode

DEFAULT_PROMPT_MODE = PromptMode.CODE


def resolve_mode(value: object) -> PromptMode:
    """Return the matching prompt mode, falling back to the default for anything else."""

    if not isinstance(value, str):
        return DEFAULT_PROMPT_MODE
    token = value.strip().lower()
    for mode in PromptMode:
        if mode.value == token:
            return mode
    return DEFAULT_PROMPT_MODE


class PromptLibrary:
    """Build prompt strings for supported screenshot-solving modes."""

    def code_prompt(self, language: str) -> str:
        """Return worked-solution prompt text with complexity analysis."""

        return (
            "You are a concise coding assistant.\n"
            "First give your thoughts on the problem shown in the screenshots.\n"
            f"Then give a clean, working solution in {language}.\n"
            "Provide only the essential code in markdown code blocks, "
            "with comments explaining the code.\n"
            "After the solution, state the time and space complexity of the code."
        )

    def mcq_prompt(self, language: str) -> str:
        """Return multiple-choice prompt text with elimination notes."""

        return (
            "You are a concise assistant answering a multiple-choice question.\n"
            "Read the question and every option shown in the screenshots.\n"
            "State the correct option first (letter or number and its text).\n"
            "Then briefly explain why each remaining option is wrong.\n"
            f"If the question involves code, reason about it as {language} code."
        )

    def compose(self, language: str, mode: PromptMode) -> str:
        """Return the instruction template for a language and resolved mode."""

        if mode is PromptMode.MCQ:
            return self.mcq_prompt(language)
        return self.code_prompt(language)


def compose_prompt(language: str, mode: object) -> str:
    """Return deterministic instruction text for a language and mode selector."""

    return PromptLibrary().compose(language, resolve_mode(mode))
