"""Reading, merging and writing the generated project's ``package.json``."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from expressr.errors import FileSystemError, ManifestReadError
from expressr.utils import load_json, save_json

MANIFEST_NAME = "package.json"
DEPENDENCY_SECTIONS: tuple[str, ...] = ("dependencies", "devDependencies")


def merge_dependencies(
    base: Mapping[str, str] | None, extra: Mapping[str, str] | None
) -> dict[str, str]:
    """Merge two dependency maps, last writer wins.

    Keys keep the order in which they first appear in *base*; keys only in
    *extra* follow in *extra*'s order.  On a collision the value from *extra*
    replaces the value from *base*.  Neither argument is mutated.

    Example::

        merge_dependencies({"bar": "2.0.0"}, {"foo": "1.0.0"})
        -> {"bar": "2.0.0", "foo": "1.0.0"}
    """
    merged: dict[str, str] = dict(base or {})
    for name, version in (extra or {}).items():
        merged[name] = version
    return merged


def read_manifest(project_root: Path) -> dict[str, Any]:
    """Load ``<project_root>/package.json``.

    Raises:
        ManifestReadError: If the file is missing, is not valid JSON, or its
            top level is not an object.
    """
    path = Path(project_root) / MANIFEST_NAME
    try:
        data = load_json(path)
    except FileNotFoundError as exc:
        raise ManifestReadError(f"Project manifest not found: {path}", path) from exc
    except json.JSONDecodeError as exc:
        raise ManifestReadError(f"Project manifest is not valid JSON: {path} ({exc})", path) from exc
    except OSError as exc:
        raise ManifestReadError(f"Could not read project manifest {path}: {exc}", path) from exc

    if not isinstance(data, dict):
        raise ManifestReadError(f"Project manifest must be a JSON object: {path}", path)
    return data


async def write_manifest(project_root: Path, manifest: dict[str, Any]) -> Path:
    """Write *manifest* back to ``<project_root>/package.json``."""
    path = Path(project_root) / MANIFEST_NAME
    try:
        await save_json(manifest, path)
    except OSError as exc:
        raise FileSystemError(f"Could not write project manifest {path}: {exc}", path) from exc
    return path


async def add_dependencies(
    project_root: Path,
    dependencies: Mapping[str, str] | None = None,
    dev_dependencies: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Merge dependency maps into the project's manifest and save it.

    Returns:
        The updated manifest.

    Raises:
        ManifestReadError: If an existing dependency section is not an object.
    """
    manifest = read_manifest(project_root)
    path = Path(project_root) / MANIFEST_NAME
    for section, extra in zip(DEPENDENCY_SECTIONS, (dependencies, dev_dependencies)):
        if not isinstance(manifest.get(section, {}), dict):
            raise ManifestReadError(f"\"{section}\" in {path} must be a JSON object", path)
        if extra or section in manifest:
            manifest[section] = merge_dependencies(manifest.get(section), extra)
    await write_manifest(project_root, manifest)
    return manifest
