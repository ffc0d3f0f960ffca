"""Shared pytest fixtures for the create-expressr-app test suite.

Provides reusable fixtures for:
- Tool configuration pointing at temporary directories
- Minimal generated projects (a bare ``package.json`` and entry file)
- Addon directories written on the fly
- Scripted prompt answers
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from expressr.config import Config


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

INDEX_TS = "\n".join([
    'import express from "express";',
    'import path from "path";',
    'import { loadRoutes } from "./utils/routeLoader";',
    "",
    "const app = express();",
    "const port = 3000;",
    "",
])


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """A project directory holding a small ``package.json`` and ``src/index.ts``."""
    project_dir = tmp_path / "test-project"
    (project_dir / "src").mkdir(parents=True)
    (project_dir / "package.json").write_text(
        json.dumps(
            {
                "name": "test-project",
                "dependencies": {"bar": "2.0.0"},
                "devDependencies": {"typescript": "^5.7.2"},
            },
            indent=2,
        ),
        encoding="utf-8",
    )
    (project_dir / "src" / "index.ts").write_text(INDEX_TS, encoding="utf-8")
    yield project_dir


@pytest.fixture
def addons_dir(tmp_path: Path) -> Path:
    """Empty directory for addons created with :func:`write_addon`."""
    path = tmp_path / "addons"
    path.mkdir()
    yield path


def _write_addon(addons_dir: Path, folder: str, config: dict[str, Any]) -> Path:
    """Write ``<addons_dir>/<folder>/addon.config.json`` and return its path."""
    target = addons_dir / folder / "addon.config.json"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(config, indent=2), encoding="utf-8")
    return target


@pytest.fixture
def write_addon():
    """Helper writing an addon config: ``write_addon(addons_dir, folder, config)``."""
    return _write_addon


@pytest.fixture
def three_addons(addons_dir: Path) -> Path:
    """Three addons named One, Two and Three (folders a-one, b-two, c-three)."""
    for folder, name, dep in (
        ("a-one", "One", "one"),
        ("b-two", "Two", "two"),
        ("c-three", "Three", "three"),
    ):
        _write_addon(
            addons_dir,
            folder,
            {
                "name": name,
                "description": f"Adds {dep}",
                "dependencies": {dep: "1.0.0"},
                "devDependencies": {},
            },
        )
    return addons_dir


@pytest.fixture
def test_config(tmp_path: Path, addons_dir: Path) -> Config:
    """Config that writes under tmp_path and never runs npm."""
    output = tmp_path / "output"
    output.mkdir()
    return Config(output_dir=output, addons_dir=addons_dir, skip_install=True)


# ---------------------------------------------------------------------------
# Scripted prompts
# ---------------------------------------------------------------------------


class ScriptedPrompts:
    """Stand-in for ``PromptSequence`` returning fixed answers."""

    def __init__(self, name: str = "my-app", port: int = 3000, selection: list[int] | None = None):
        self.name = name
        self.port = port
        self.selection = selection or []
        self.asked: list[str] = []
        self.offered: list[Any] = []

    def ask_project_name(self) -> str:
        self.asked.append("name")
        return self.name

    def ask_port(self) -> int:
        self.asked.append("port")
        return self.port

    def ask_addons(self, addons):
        self.asked.append("addons")
        self.offered = list(addons)
        return [addons[i] for i in self.selection]


@pytest.fixture
def scripted_prompts() -> ScriptedPrompts:
    return ScriptedPrompts()
