"""Confirmation channel for overwrite prompts.

A channel asks one question and returns the raw answer. Only "y" / "yes"
(any case) counts as agreement.
"""

from __future__ import annotations

from typing import Protocol

from rich.console import Console


class ConfirmationChannel(Protocol):
    def ask(self, question: str) -> str: ...


def is_affirmative(answer: str) -> bool:
    """Check whether a free-text answer means yes."""
    return answer.strip().lower() in ("y", "yes")


class ConsoleConfirmation:
    """Ask on the terminal."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(highlight=False)

    def ask(self, question: str) -> str:
        try:
            return self.console.input(question)
        except EOFError:
            return ""
