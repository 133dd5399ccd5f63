"""Assistant client interface and the simulated implementation.

AssistantClient: Protocol for code assistant backends.
CodeAssistant: Deterministic backend that waits a fixed latency before
answering, so callers exercise the same loading states as with a real model.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

from codepad.assistant.commands import AICommand, respond
from codepad.assistant.generation import generate_code

logger = logging.getLogger(__name__)

DEFAULT_LATENCY_SECONDS = 1.5


class AssistantClient(Protocol):
    """Interface for code assistant backends."""

    def run_command(self, command: AICommand, source_text: str, language: str) -> str:
        """Run an editor command on source text and return the response."""
        ...

    def generate(self, prompt: str, language: str) -> str:
        """Generate code for a prompt."""
        ...


class CodeAssistant:
    """Simulated assistant. No external calls are made.

    Args:
        latency_seconds: Delay applied before each answer.
        sleep: Sleep function, injectable so tests do not wait.
    """

    def __init__(
        self,
        latency_seconds: float = DEFAULT_LATENCY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if latency_seconds < 0:
            raise ValueError("latency_seconds must be non-negative")
        self._latency_seconds = latency_seconds
        self._sleep = sleep

    @property
    def latency_seconds(self) -> float:
        return self._latency_seconds

    def _wait(self) -> None:
        if self._latency_seconds > 0:
            self._sleep(self._latency_seconds)

    def run_command(self, command: AICommand, source_text: str, language: str) -> str:
        """Run an editor command.

        Raises:
            ValueError: If source_text is empty.
        """
        if not source_text:
            raise ValueError("source text must not be empty")

        logger.debug("Assistant prompt: %s", command.prompt(source_text, language))
        self._wait()
        return respond(command, source_text, language)

    def generate(self, prompt: str, language: str) -> str:
        """Generate a code snippet.

        Raises:
            ValueError: If prompt is empty.
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must not be empty")

        self._wait()
        return generate_code(prompt, language)
