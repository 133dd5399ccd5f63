"""Editor AI commands: prompts and deterministic responses.

Responses are canned and depend only on (command, source text, language), so
the same input always yields the same output.
"""

from __future__ import annotations

from enum import Enum


class AICommand(str, Enum):
    """Commands offered on selected code (or the whole buffer)."""

    EXPLAIN = "explain"
    IMPROVE = "improve"
    REFACTOR = "refactor"
    COMMENT = "comment"
    FIX = "fix"

    @property
    def label(self) -> str:
        return _LABELS[self]

    def prompt(self, code: str, language: str) -> str:
        """Render the prompt that would be sent to a model."""
        return _PROMPTS[self].format(code=code, language=language)


_LABELS: dict[AICommand, str] = {
    AICommand.EXPLAIN: "Explain code",
    AICommand.IMPROVE: "Suggest improvements",
    AICommand.REFACTOR: "Refactor code",
    AICommand.COMMENT: "Add comments",
    AICommand.FIX: "Fix bugs",
}

_PROMPTS: dict[AICommand, str] = {
    AICommand.EXPLAIN: "Explain this {language} code in simple terms:\n\n{code}",
    AICommand.IMPROVE: "Suggest improvements for this {language} code:\n\n{code}",
    AICommand.REFACTOR: (
        "Refactor this {language} code to make it more efficient and cleaner:\n\n{code}"
    ),
    AICommand.COMMENT: "Add helpful comments to this {language} code:\n\n{code}",
    AICommand.FIX: "Find and fix potential bugs in this {language} code:\n\n{code}",
}

IMPROVEMENT_SUGGESTIONS = (
    "Use more descriptive variable names",
    "Add error handling",
    "Consider performance optimizations",
    "Add proper documentation",
)


def _fenced(code: str, language: str) -> str:
    return f"```{language}\n{code}\n```"


def respond(command: AICommand, source_text: str, language: str) -> str:
    """Return the canned response for a command.

    Args:
        command: Command to run.
        source_text: Selected code, or the whole document.
        language: Language tag of the file.

    Returns:
        Response text; code suggestions are wrapped in a fenced block.
    """
    if command is AICommand.EXPLAIN:
        if language == "javascript":
            verb = "defines a function that"
        else:
            verb = "implements a routine which"
        return (
            f"This code {verb} processes data and returns a formatted result. "
            "It uses modern syntax and follows best practices."
        )

    if command is AICommand.IMPROVE:
        bullets = "\n".join(f"- {item}" for item in IMPROVEMENT_SUGGESTIONS)
        return f"Consider the following improvements:\n{bullets}"

    if command is AICommand.REFACTOR:
        refactored = source_text.replace("function", "const", 1) + " ="
        return (
            f"Refactored version:\n{_fenced(refactored, language)}\n"
            "This version uses modern syntax and is more maintainable."
        )

    if command is AICommand.COMMENT:
        commented = (
            "// This function processes the input data\n"
            f"{source_text}\n"
            "// Returns the formatted result"
        )
        return f"With comments:\n{_fenced(commented, language)}"

    if command is AICommand.FIX:
        fixed = source_text.replace("let", "const", 1)
        return (
            f"Fixed version:\n{_fenced(fixed, language)}\n"
            "Fixed potential issues with variable declarations."
        )

    raise ValueError(f"Unsupported command: {command}")
