"""Template copying and Jinja2 rendering for project scaffolding.

Provides the TemplateRenderer class, which owns a Jinja2 environment rooted
at the bundled app template.  Files ending in ``.j2`` are rendered with the
project context; every other file is copied byte for byte, so TypeScript
sources containing ``{{`` never pass through Jinja2.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from expressr.config import DEFAULT_TEMPLATE_DIR


TEMPLATE_SUFFIX = ".j2"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Copies and renders the app template into a project directory.

    The renderer resolves template names relative to *template_dir*.
    Templates are rendered with a context dictionary that typically contains
    ``project_name``, ``port`` and ``env_var``.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"env.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(_write_file, out, content)
        return out

    # -- Tree copying ------------------------------------------------------

    async def copy_tree(
        self,
        source: str | Path,
        target: str | Path,
        context: dict[str, Any] | None = None,
    ) -> list[Path]:
        """Recursively copy *source* into *target*.

        *target* is always created.  A missing *source* yields an empty
        directory rather than an error.  ``.j2`` files are rendered with
        *context* and written without their suffix; when *context* is
        ``None`` they are copied like any other file.

        Returns:
            List of written file paths, in walk order.
        """
        source_path = Path(source)
        target_path = Path(target)
        await asyncio.to_thread(target_path.mkdir, parents=True, exist_ok=True)

        if not source_path.is_dir():
            return []

        written: list[Path] = []
        for entry in sorted(source_path.iterdir()):
            destination = target_path / entry.name
            if entry.is_dir():
                written.extend(await self.copy_tree(entry, destination, context))
            elif context is not None and entry.name.endswith(TEMPLATE_SUFFIX):
                content = self.render_string(entry.read_text(encoding="utf-8"), context)
                out = destination.with_name(entry.name[: -len(TEMPLATE_SUFFIX)])
                await asyncio.to_thread(_write_file, out, content)
                written.append(out)
            else:
                await asyncio.to_thread(shutil.copyfile, entry, destination)
                written.append(destination)
        return written


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
