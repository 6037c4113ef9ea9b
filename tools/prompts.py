"""User-facing confirm, choice and notification surfaces."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence, Tuple

LOGGER = logging.getLogger(__name__)


class UserPrompter(ABC):
    """Modal and toast primitives; outcomes are pure input to the caller."""

    @abstractmethod
    def confirm(self, title: str, content: str, confirm_text: str = "Confirm", cancel_text: str = "Cancel") -> bool:
        """Show a yes/no modal and return ``True`` on confirmation."""

    @abstractmethod
    def choose(self, title: str, options: Sequence[str]) -> Optional[int]:
        """Offer options and return the chosen index, or ``None`` on cancel."""

    @abstractmethod
    def alert(self, title: str, content: str) -> None:
        """Show a modal that can only be acknowledged."""

    @abstractmethod
    def toast(self, message: str) -> None:
        """Show a transient notification."""

    @abstractmethod
    def navigate_to_login(self, reason: str) -> None:
        """Ask the UI layer to present the login surface."""


class ConsolePrompter(UserPrompter):
    """Terminal-backed prompter used by the command line entry point."""

    def __init__(
        self,
        input_func: Optional[Callable[[str], str]] = None,
        output_func: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._input = input_func or input
        self._output = output_func or print

    def confirm(self, title: str, content: str, confirm_text: str = "Confirm", cancel_text: str = "Cancel") -> bool:
        self._output(f"== {title} ==\n{content}")
        answer = self._input(f"[y] {confirm_text} / [n] {cancel_text}: ").strip().lower()
        return answer in {"y", "yes"}

    def choose(self, title: str, options: Sequence[str]) -> Optional[int]:
        self._output(f"== {title} ==")
        for index, option in enumerate(options, start=1):
            self._output(f"  {index}. {option}")
        answer = self._input("Choose an option (blank to cancel): ").strip()
        if not answer.isdigit():
            return None
        index = int(answer) - 1
        return index if 0 <= index < len(options) else None

    def alert(self, title: str, content: str) -> None:
        self._output(f"!! {title} !!\n{content}")
        self._input("Press enter to acknowledge")

    def toast(self, message: str) -> None:
        self._output(f"* {message}")

    def navigate_to_login(self, reason: str) -> None:
        self._output(f"-> Sign-in required ({reason})")


class ScriptedPrompter(UserPrompter):
    """Replays queued answers and records every interaction.

    ``answers`` is consumed in order by :meth:`confirm` (bools) and
    :meth:`choose` (index or ``None``). Running out of answers cancels.
    """

    def __init__(self, answers: Sequence[Any] | None = None) -> None:
        self.answers: List[Any] = list(answers or [])
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def _next(self) -> Any:
        return self.answers.pop(0) if self.answers else None

    def confirm(self, title: str, content: str, confirm_text: str = "Confirm", cancel_text: str = "Cancel") -> bool:
        self.calls.append(("confirm", (title, content)))
        return bool(self._next())

    def choose(self, title: str, options: Sequence[str]) -> Optional[int]:
        self.calls.append(("choose", (title, tuple(options))))
        answer = self._next()
        return None if answer is None or answer is False else int(answer)

    def alert(self, title: str, content: str) -> None:
        self.calls.append(("alert", (title, content)))

    def toast(self, message: str) -> None:
        self.calls.append(("toast", (message,)))

    def navigate_to_login(self, reason: str) -> None:
        LOGGER.info("Login navigation requested", extra={"reason": reason})
        self.calls.append(("navigate_to_login", (reason,)))

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.calls]


__all__ = ["ConsolePrompter", "ScriptedPrompter", "UserPrompter"]
