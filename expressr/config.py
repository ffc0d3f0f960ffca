"""create-expressr-app configuration.

Typed configuration for the whole tool.  All settings use Pydantic v2 models
so they are validated at construction time and can be built from
environment variables without boiler-plate.
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from expressr.errors import UserInputError


_PACKAGE_DIR = Path(__file__).parent

DEFAULT_TEMPLATE_DIR = _PACKAGE_DIR / "scaffolder" / "templates" / "app"
DEFAULT_ADDONS_DIR = _PACKAGE_DIR / "addons"

# Files copied verbatim from the template root into the project root.
ROOT_TEMPLATE_FILES: tuple[str, ...] = ("package.json", "tsconfig.json")

# Directories created in every project before the template is copied.
PROJECT_DIRS: tuple[str, ...] = ("src", "src/routes", "src/utils")


class PromptSettings(BaseModel):
    """Presentation and validation settings for the interactive prompts.

    Passed explicitly to :class:`expressr.prompts.PromptSequence`; nothing
    about the prompts is configured globally.
    """

    name_pattern: str = Field(default=r"^[A-Za-z0-9_-]+$")
    name_message: str = Field(
        default="Name must contain only letters, numbers, dashes, and underscores"
    )
    port_message: str = Field(default="Port must be a number between 1 and 65535")
    default_port: int = Field(default=3000, ge=1, le=65535)
    show_default: bool = Field(default=True)
    colors: bool = Field(default=True)


class Config(BaseModel):
    """Global create-expressr-app configuration.

    Instances are created once by the CLI entry point and then passed to the
    pipeline and the generator.
    """

    template_dir: Path = Field(default=DEFAULT_TEMPLATE_DIR)
    addons_dir: Path = Field(default=DEFAULT_ADDONS_DIR)
    output_dir: Path = Field(default_factory=Path.cwd)
    default_port: int = Field(default=3000, ge=1, le=65535)
    env_var: str = Field(default="EXPRESSR_PORT")
    entry_file: str = Field(default="src/index.ts")
    dotenv_version: str = Field(default="^16.3.1")
    install_command: list[str] = Field(default_factory=lambda: ["npm", "install"])
    skip_install: bool = Field(default=False)
    prompts: PromptSettings = Field(default_factory=PromptSettings)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def template_src_dir(self) -> Path:
        """The template's ``src`` tree copied into every project."""
        return self.template_dir / "src"

    @property
    def root_template_files(self) -> list[Path]:
        """Template root files that must exist for a healthy installation."""
        return [self.template_dir / name for name in ROOT_TEMPLATE_FILES]

    def project_path(self, project_name: str) -> Path:
        """Directory a project called *project_name* is generated into."""
        return self.output_dir / project_name

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            EXPRESSR_TEMPLATE_DIR, EXPRESSR_ADDONS_DIR, EXPRESSR_OUTPUT_DIR,
            EXPRESSR_DEFAULT_PORT, EXPRESSR_INSTALL_COMMAND,
            EXPRESSR_SKIP_INSTALL.

        Raises:
            UserInputError: If EXPRESSR_DEFAULT_PORT is not a port number.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("EXPRESSR_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["EXPRESSR_TEMPLATE_DIR"])
        if os.environ.get("EXPRESSR_ADDONS_DIR"):
            kwargs["addons_dir"] = Path(os.environ["EXPRESSR_ADDONS_DIR"])
        if os.environ.get("EXPRESSR_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["EXPRESSR_OUTPUT_DIR"])
        if os.environ.get("EXPRESSR_DEFAULT_PORT"):
            port = _env_port(os.environ["EXPRESSR_DEFAULT_PORT"])
            kwargs["default_port"] = port
            kwargs["prompts"] = PromptSettings(default_port=port)
        if os.environ.get("EXPRESSR_INSTALL_COMMAND"):
            kwargs["install_command"] = shlex.split(os.environ["EXPRESSR_INSTALL_COMMAND"])

        skip = os.environ.get("EXPRESSR_SKIP_INSTALL", "").lower()
        kwargs["skip_install"] = skip in ("1", "true", "yes")

        return cls(**kwargs)


def _env_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        port = 0
    if not 1 <= port <= 65535:
        raise UserInputError(f"EXPRESSR_DEFAULT_PORT must be a number between 1 and 65535, got {raw!r}")
    return port
