"""Addon manifests: loading and applying them to a generated project.

An addon is a directory under the addons root holding an
``addon.config.json`` file::

    {
      "name": "CORS",
      "description": "Enable Cross-Origin Resource Sharing",
      "dependencies": {"cors": "^2.8.5"},
      "devDependencies": {"@types/cors": "^2.8.17"},
      "newFolders": [{"path": "src/middleware"}],
      "newFiles": [{"path": "src/middleware/cors.ts", "content": "..."}],
      "fileChanges": [
        {"path": "src/index.ts", "line": 4, "type": "insert", "content": "..."}
      ]
    }

File-change line numbers are 1-based for both ``insert`` and ``replace``
and always refer to the target file as it was before the addon touched it.
"""

from __future__ import annotations

import asyncio
import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from rich.markup import escape

from expressr.errors import FileSystemError, InstallationIntegrityError
from expressr.scaffolder.manifest import add_dependencies
from expressr.utils import load_json, print_detail, read_text_or_empty, write_text

ADDON_CONFIG_NAME = "addon.config.json"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class ChangeType(str, Enum):
    INSERT = "insert"
    REPLACE = "replace"


class _AddonModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class NewFolder(_AddonModel):
    path: str


class NewFile(_AddonModel):
    path: str
    content: str = ""


class FileChange(_AddonModel):
    """A single-line edit against a project file."""

    path: str
    line: int = Field(..., ge=1, description="1-based line number")
    type: ChangeType = Field(default=ChangeType.INSERT)
    content: str = ""


class AddonDescriptor(_AddonModel):
    """Pydantic model for one ``addon.config.json``."""

    name: str
    description: str = ""
    folder: str = Field(default="", description="Directory the addon was loaded from")
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    new_folders: list[NewFolder] = Field(default_factory=list, alias="newFolders")
    new_files: list[NewFile] = Field(default_factory=list, alias="newFiles")
    file_changes: list[FileChange] = Field(default_factory=list, alias="fileChanges")


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_addon(config_path: Path) -> AddonDescriptor:
    """Parse a single ``addon.config.json``.

    Raises:
        InstallationIntegrityError: If the file is not valid JSON or does not
            describe an addon.
    """
    try:
        raw = load_json(config_path)
    except (OSError, json.JSONDecodeError) as exc:
        raise InstallationIntegrityError(
            f"Could not read addon config {config_path}: {exc}", config_path
        ) from exc

    if not isinstance(raw, dict):
        raise InstallationIntegrityError(
            f"Addon config must be a JSON object: {config_path}", config_path
        )

    try:
        return AddonDescriptor.model_validate({**raw, "folder": config_path.parent.name})
    except ValidationError as exc:
        raise InstallationIntegrityError(
            f"Invalid addon config {config_path}: {exc}", config_path
        ) from exc


def load_addons(addons_dir: str | Path) -> list[AddonDescriptor]:
    """Load every addon found directly under *addons_dir*, sorted by folder name.

    Sub-directories without an ``addon.config.json`` are skipped, and a
    missing *addons_dir* simply yields no addons.
    """
    root = Path(addons_dir)
    if not root.is_dir():
        return []

    addons: list[AddonDescriptor] = []
    for folder in sorted(p for p in root.iterdir() if p.is_dir()):
        config_path = folder / ADDON_CONFIG_NAME
        if config_path.is_file():
            addons.append(load_addon(config_path))
    return addons


# ---------------------------------------------------------------------------
# Line patching
# ---------------------------------------------------------------------------


class LinePatcher:
    """Applies file changes to one file's lines using original line numbers.

    The text is split on ``\\n`` exactly (so a trailing newline yields a
    final empty line).  Every insert is remembered so that later changes,
    which are numbered against the untouched file, land on the line they
    were written for.
    """

    def __init__(self, text: str) -> None:
        self.lines: list[str] = text.split("\n")
        self._original_count = len(self.lines)
        self._inserted_at: list[int] = []

    def _current_index(self, line: int) -> int:
        original = line - 1
        return original + sum(1 for pos in self._inserted_at if pos <= original)

    def insert(self, line: int, content: str) -> None:
        """Insert *content* before original line *line* (appends past the end)."""
        index = self._current_index(line)
        self.lines.insert(index, content)
        # Appends past the end sit after every original line.
        self._inserted_at.append(min(line - 1, self._original_count))

    def replace(self, line: int, content: str) -> None:
        """Overwrite original line *line*, padding with empty lines past the end."""
        index = self._current_index(line)
        if index >= len(self.lines):
            self.lines.extend([""] * (index - len(self.lines) + 1))
        self.lines[index] = content

    def apply(self, change: FileChange) -> None:
        if change.type is ChangeType.REPLACE:
            self.replace(change.line, change.content)
        else:
            self.insert(change.line, change.content)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def apply_file_changes(text: str, changes: list[FileChange]) -> str:
    """Apply *changes* (all against the same file) to *text* and return the result."""
    patcher = LinePatcher(text)
    for change in changes:
        patcher.apply(change)
    return patcher.text


# ---------------------------------------------------------------------------
# Applying
# ---------------------------------------------------------------------------


async def apply_addon(project_root: str | Path, addon: AddonDescriptor) -> None:
    """Apply *addon* to the project at *project_root*.

    Steps run in order: dependency merge, new folders, new files, file
    changes.  The first failure propagates and nothing already written is
    rolled back.
    """
    root = Path(project_root)

    # 1. Dependencies
    await add_dependencies(root, addon.dependencies, addon.dev_dependencies)

    # 2. Folders
    for folder in addon.new_folders:
        path = root / folder.path
        await _fs(asyncio.to_thread(path.mkdir, parents=True, exist_ok=True), path)
        print_detail(f"Created folder: {escape(folder.path)}")

    # 3. Files (overwrite without warning)
    for new_file in addon.new_files:
        path = root / new_file.path
        await _fs(asyncio.to_thread(write_text, path, new_file.content), path)
        print_detail(f"Created file: {escape(new_file.path)}")

    # 4. Line changes, one patcher per target file
    patchers: dict[str, LinePatcher] = {}
    for change in addon.file_changes:
        path = root / change.path
        patcher = patchers.get(change.path)
        if patcher is None:
            text = await _fs(asyncio.to_thread(read_text_or_empty, path), path)
            patcher = patchers[change.path] = LinePatcher(text)
        patcher.apply(change)
        await _fs(asyncio.to_thread(write_text, path, patcher.text), path)


async def _fs(awaitable, path: Path):
    """Await a file-system operation, re-raising ``OSError`` as FileSystemError."""
    try:
        return await awaitable
    except OSError as exc:
        raise FileSystemError(f"File system error at {path}: {exc}", path) from exc
