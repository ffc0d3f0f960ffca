"""Tests for the interactive prompt sequence (expressr.prompts).

Tests cover:
- parse_addon_selection (valid, out-of-range, junk tokens)
- validate_project_name / validate_port
- PromptSequence re-prompting on invalid answers (Prompt.ask mocked)
- Addon listing and selection
"""

from __future__ import annotations

import io
from unittest.mock import patch

import pytest
from rich.console import Console

from expressr.config import PromptSettings
from expressr.errors import UserInputError
from expressr.prompts import (
    PromptSequence,
    parse_addon_selection,
    validate_port,
    validate_project_name,
)
from expressr.scaffolder.addons import AddonDescriptor

pytestmark = pytest.mark.unit


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False, width=120)


@pytest.fixture
def addons() -> list[AddonDescriptor]:
    return [
        AddonDescriptor(name="One", description="first"),
        AddonDescriptor(name="Two", description="second"),
        AddonDescriptor(name="Three", description="third"),
    ]


def _output(console: Console) -> str:
    return console.file.getvalue()


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


class TestParseAddonSelection:
    def test_invalid_token_ignored(self):
        assert parse_addon_selection("1, 3, abc", 3) == [0, 2]

    def test_out_of_range_dropped(self):
        assert parse_addon_selection("0,4,2,-1", 3) == [1]

    def test_empty(self):
        assert parse_addon_selection("", 3) == []
        assert parse_addon_selection(" , ,", 3) == []

    def test_order_and_repeats_kept(self):
        assert parse_addon_selection("3,1,3", 3) == [2, 0, 2]

    def test_no_addons(self):
        assert parse_addon_selection("1", 0) == []

    def test_decimal_rejected(self):
        assert parse_addon_selection("1.5, 2", 3) == [1]


class TestValidateProjectName:
    @pytest.mark.parametrize("name", ["app", "my-app", "my_app", "App123"])
    def test_valid(self, name: str):
        assert validate_project_name(name, PromptSettings()) == name

    def test_whitespace_stripped(self):
        assert validate_project_name("  app  ", PromptSettings()) == "app"

    @pytest.mark.parametrize("name", ["", "my app", "app/x", "ápp", "a.b"])
    def test_invalid(self, name: str):
        with pytest.raises(UserInputError, match="letters, numbers"):
            validate_project_name(name, PromptSettings())


class TestValidatePort:
    def test_number(self):
        assert validate_port("8080", PromptSettings()) == 8080

    @pytest.mark.parametrize("answer", ["", "0", "  "])
    def test_default(self, answer: str):
        assert validate_port(answer, PromptSettings(default_port=4000)) == 4000

    @pytest.mark.parametrize("answer", ["abc", "80a", "-1", "70000", "3.5"])
    def test_invalid(self, answer: str):
        with pytest.raises(UserInputError):
            validate_port(answer, PromptSettings())


# ---------------------------------------------------------------------------
# PromptSequence
# ---------------------------------------------------------------------------


class TestPromptSequence:
    def test_project_name_reprompts(self, console: Console):
        prompts = PromptSequence(console, PromptSettings())
        with patch("expressr.prompts.Prompt.ask", side_effect=["bad name", "good-name"]) as ask:
            assert prompts.ask_project_name() == "good-name"
        assert ask.call_count == 2
        assert "letters, numbers" in _output(console)

    def test_port_default_offered(self, console: Console):
        prompts = PromptSequence(console, PromptSettings(default_port=3000))
        with patch("expressr.prompts.Prompt.ask", return_value="3000") as ask:
            assert prompts.ask_port() == 3000
        assert ask.call_args.kwargs["default"] == "3000"
        assert ask.call_args.kwargs["console"] is console

    def test_port_reprompts(self, console: Console):
        prompts = PromptSequence(console)
        with patch("expressr.prompts.Prompt.ask", side_effect=["x", "99999", "4500"]) as ask:
            assert prompts.ask_port() == 4500
        assert ask.call_count == 3

    def test_addons_listed_and_selected(self, console: Console, addons):
        prompts = PromptSequence(console)
        with patch("expressr.prompts.Prompt.ask", return_value="1, 3, abc"):
            chosen = prompts.ask_addons(addons)
        assert [a.name for a in chosen] == ["One", "Three"]
        out = _output(console)
        assert "1) One - first" in out
        assert "3) Three - third" in out

    def test_no_addons_no_prompt(self, console: Console):
        prompts = PromptSequence(console)
        with patch("expressr.prompts.Prompt.ask") as ask:
            assert prompts.ask_addons([]) == []
        ask.assert_not_called()

    def test_empty_selection(self, console: Console, addons):
        prompts = PromptSequence(console)
        with patch("expressr.prompts.Prompt.ask", return_value=""):
            assert prompts.ask_addons(addons) == []

    def test_cancellation_propagates(self, console: Console):
        prompts = PromptSequence(console)
        with patch("expressr.prompts.Prompt.ask", side_effect=KeyboardInterrupt):
            with pytest.raises(KeyboardInterrupt):
                prompts.ask_project_name()

    def test_settings_passed_explicitly(self, console: Console):
        settings = PromptSettings(colors=False, show_default=False)
        prompts = PromptSequence(console, settings)
        with patch("expressr.prompts.Prompt.ask", return_value="app") as ask:
            prompts.ask_project_name()
        assert prompts.settings is settings
        assert ask.call_args.kwargs["show_default"] is False
        assert not ask.call_args.args[0].startswith("[bold]")
