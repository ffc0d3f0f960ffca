"""Project generator.

Takes a ``ProjectConfig`` and materialises the Express + TypeScript app
template into a new directory: skeleton folders, the template ``src`` tree,
root configuration files, the ``.env`` file and the entry-file port patch.
Addons and dependency installation are sequenced by the pipeline on top of
the generated project.
"""

from __future__ import annotations

import asyncio
import re
import shutil
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from expressr.config import PROJECT_DIRS, Config
from expressr.errors import FileSystemError, InstallationIntegrityError
from expressr.scaffolder.manifest import add_dependencies
from expressr.scaffolder.templates import TemplateRenderer
from expressr.utils import ensure_dir, print_detail


# ``const port = 3000;`` / ``const port = process.env.PORT || 3000``
_PORT_DECLARATION = re.compile(r"const port\s*=\s*[^;\n]+")

DOTENV_IMPORT = "import 'dotenv/config';"


# ---------------------------------------------------------------------------
# Configuration model
# ---------------------------------------------------------------------------


class ProjectConfig(BaseModel):
    """Pydantic model describing the project to scaffold."""

    name: str = Field(..., pattern=r"^[A-Za-z0-9_-]+$", description="Project directory name")
    port: int = Field(default=3000, ge=1, le=65535, description="Port written to .env")


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Scaffolding orchestrator for the base app template.

    Given a ``ProjectConfig``, generates:
    - ``src/`` with ``index.ts``, ``routes/`` and ``utils/routeLoader.ts``
    - ``package.json`` and ``tsconfig.json`` copied from the template root
    - ``.env`` holding the port and a ``README.md``
    """

    def __init__(self, config: ProjectConfig, settings: Config | None = None) -> None:
        self.config = config
        self.settings = settings or Config()
        self.renderer = TemplateRenderer(self.settings.template_dir)

    # -- Public API --------------------------------------------------------

    async def generate(self, output_dir: str | Path | None = None) -> Path:
        """Generate the base project.

        Args:
            output_dir: Parent directory for the project folder.  Defaults to
                the configured output directory.

        Returns:
            Path to the generated project root.
        """
        parent = Path(output_dir) if output_dir is not None else self.settings.output_dir
        project_root = parent / self.config.name
        context = self._build_context()

        # 1. Skeleton directories
        await self._create_directory_structure(project_root)

        # 2. Template src tree
        await self.renderer.copy_tree(
            self.settings.template_src_dir, project_root / "src", context
        )

        # 3. Root configuration files
        await self._copy_root_files(project_root)

        # 4. .env and README
        await self.renderer.render_to_file("env.j2", project_root / ".env", context)
        print_detail(f"Created .env with {self.settings.env_var}={self.config.port}")
        await self.renderer.render_to_file("README.md.j2", project_root / "README.md", context)

        # 5. Entry file reads the port from the environment
        await self._patch_entry_file(project_root)

        # 6. dotenv runtime dependency
        await add_dependencies(project_root, {"dotenv": self.settings.dotenv_version})

        return project_root

    # -- Context building --------------------------------------------------

    def _build_context(self) -> dict[str, Any]:
        return {
            "project_name": self.config.name,
            "port": self.config.port,
            "env_var": self.settings.env_var,
        }

    # -- Directory structure -----------------------------------------------

    async def _create_directory_structure(self, root: Path) -> None:
        """Create the project root and its mandatory sub-directories."""
        try:
            for d in ("", *PROJECT_DIRS):
                await asyncio.to_thread(ensure_dir, root / d)
        except OSError as exc:
            raise FileSystemError(f"Could not create project directory {root}: {exc}", root) from exc

    # -- Root files --------------------------------------------------------

    async def _copy_root_files(self, root: Path) -> None:
        """Copy ``package.json`` and ``tsconfig.json`` from the template root."""
        for source in self.settings.root_template_files:
            name = source.name
            if not source.is_file():
                raise InstallationIntegrityError(
                    f"Template file not found: {source}. "
                    "This is likely an issue with the package installation.",
                    source,
                )
            try:
                await asyncio.to_thread(shutil.copyfile, source, root / name)
            except OSError as exc:
                raise FileSystemError(f"Error copying file {name}: {exc}", root / name) from exc

    # -- Entry file --------------------------------------------------------

    async def _patch_entry_file(self, root: Path) -> None:
        """Point the entry file's port at the environment.

        A missing entry file is left alone.
        """
        entry = root / self.settings.entry_file
        if not entry.is_file():
            return
        content = await asyncio.to_thread(entry.read_text, "utf-8")
        patched = patch_entry_source(content, self.settings.env_var)
        await asyncio.to_thread(entry.write_text, patched, "utf-8")


def patch_entry_source(content: str, env_var: str = "EXPRESSR_PORT", fallback: int = 3000) -> str:
    """Rewrite the ``const port = ...`` declaration and ensure dotenv is loaded.

    The first port declaration becomes
    ``const port = process.env.<env_var> || process.env.PORT || <fallback>``.
    ``import 'dotenv/config';`` is prepended unless ``dotenv`` already
    appears in the source.
    """
    replacement = f"const port = process.env.{env_var} || process.env.PORT || {fallback}"
    patched = _PORT_DECLARATION.sub(replacement, content, count=1)
    if "dotenv" not in patched:
        patched = f"{DOTENV_IMPORT}\n{patched}"
    return patched
