"""Interactive prompt sequence: project name, port and addon selection.

Prompts are rendered with ``rich.prompt.Prompt`` on the console handed to
:class:`PromptSequence`.  Invalid names and ports raise
:class:`~expressr.errors.UserInputError` internally and are asked again;
Ctrl-C and end-of-input propagate to the caller.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from expressr.config import PromptSettings
from expressr.errors import UserInputError
from expressr.scaffolder.addons import AddonDescriptor

MAX_PORT = 65535

_DIGITS = re.compile(r"[0-9]+")


def parse_addon_selection(answer: str, count: int) -> list[int]:
    """Turn ``"1, 3, abc"`` into zero-based indices ``[0, 2]``.

    Tokens are split on commas; anything that is not an integer in
    ``1..count`` is dropped without complaint.  Order and repeats are kept
    as typed.
    """
    indices: list[int] = []
    for token in answer.split(","):
        token = token.strip()
        if not _DIGITS.fullmatch(token):
            continue
        number = int(token)
        if 1 <= number <= count:
            indices.append(number - 1)
    return indices


def validate_project_name(name: str, settings: PromptSettings) -> str:
    """Return *name* stripped, or raise ``UserInputError``."""
    name = name.strip()
    if not re.fullmatch(settings.name_pattern, name):
        raise UserInputError(settings.name_message)
    return name


def validate_port(answer: str, settings: PromptSettings) -> int:
    """Parse a port answer; empty or ``0`` falls back to the default port."""
    answer = answer.strip()
    if not answer:
        return settings.default_port
    if not _DIGITS.fullmatch(answer):
        raise UserInputError(settings.port_message)
    port = int(answer)
    if port == 0:
        return settings.default_port
    if port > MAX_PORT:
        raise UserInputError(settings.port_message)
    return port


class PromptSequence:
    """Asks the three questions needed to create a project."""

    def __init__(self, console: Console, settings: PromptSettings | None = None) -> None:
        self.console = console
        self.settings = settings or PromptSettings()

    def _ask(
        self, question: str, default: str | None = None, show_default: bool | None = None
    ) -> str:
        if show_default is None:
            show_default = self.settings.show_default
        kwargs = {"console": self.console, "show_default": show_default}
        if default is not None:
            kwargs["default"] = default
        return Prompt.ask(self._style(question), **kwargs)

    def _style(self, question: str) -> str:
        if self.settings.colors:
            return f"[bold]{question}[/bold]"
        return question

    def _report(self, error: UserInputError) -> None:
        if self.settings.colors:
            self.console.print(f"[red]{escape(str(error))}[/red]")
        else:
            self.console.print(escape(str(error)))

    # -- Questions ---------------------------------------------------------

    def ask_project_name(self) -> str:
        while True:
            answer = self._ask("📦 What is your project name?")
            try:
                return validate_project_name(answer, self.settings)
            except UserInputError as exc:
                self._report(exc)

    def ask_port(self) -> int:
        default = str(self.settings.default_port)
        while True:
            answer = self._ask("🌐 What port would you like to use?", default)
            try:
                return validate_port(answer, self.settings)
            except UserInputError as exc:
                self._report(exc)

    def ask_addons(self, addons: Sequence[AddonDescriptor]) -> list[AddonDescriptor]:
        """List *addons* and return the chosen ones in the order typed."""
        if not addons:
            return []

        self.console.print("\n📦 Available addons:")
        for number, addon in enumerate(addons, start=1):
            self.console.print(f"{number}) {escape(addon.name)} - {escape(addon.description)}")

        answer = self._ask(
            "🔍 Enter the numbers of addons you want to install "
            "(comma-separated, or press enter for none)",
            "",
            show_default=False,
        )
        return [addons[i] for i in parse_addon_selection(answer, len(addons))]
