"""create-expressr-app pipeline orchestrator.

Sequences the whole project creation:

1. Resolve the project name (argument or prompt), the port (flag or prompt)
   and the addon selection (flag or prompt).  This happens synchronously,
   before the event loop starts, so Ctrl-C at a prompt interrupts at once.
2. Generate the base project from the bundled template.
3. Apply the selected addons in selection order.
4. Install dependencies with the package manager, streaming its output.
5. Print a summary with the next commands to run.

Usage::

    create-expressr-app my-app
    python -m expressr my-app --port 4000 --addons 1,2 --skip-install
"""

from __future__ import annotations

import asyncio
import sys
import traceback
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from rich.markup import escape
from rich.panel import Panel

from expressr.config import Config
from expressr.errors import ExpressrError, ExternalProcessError
from expressr.prompts import PromptSequence, parse_addon_selection, validate_port, validate_project_name
from expressr.scaffolder.addons import AddonDescriptor, apply_addon, load_addons
from expressr.scaffolder.generator import ProjectConfig, ProjectGenerator
from expressr.utils import (
    console,
    print_error,
    print_rule,
    print_step,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
)


class CreateRequest(BaseModel):
    """Answers supplied up front; anything left ``None`` is prompted for."""

    project_name: str | None = Field(default=None)
    port: str | None = Field(default=None, description="Raw port answer, validated like a prompt answer")
    addons: str | None = Field(default=None, description="Comma-separated 1-based addon numbers")


class PreparedRun(BaseModel):
    """Fully resolved answers for one run."""

    project_name: str
    port: int
    addons: list[AddonDescriptor] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class CreateAppPipeline:
    """Drives one run of create-expressr-app.

    Attributes:
        config: Tool configuration.
        prompts: Prompt sequence used for any answer not given up front.
        state: Accumulates what the run produced; returned by :meth:`run`.
    """

    def __init__(self, config: Config, prompts: PromptSequence | None = None) -> None:
        self.config = config
        self.prompts = prompts or PromptSequence(console, config.prompts)
        self.state: dict[str, Any] = {
            "project_name": None,
            "project_path": None,
            "port": None,
            "addons": [],
            "installed": False,
            "success": False,
        }

    # ------------------------------------------------------------------
    # Input resolution
    # ------------------------------------------------------------------

    def resolve_project_name(self, request: CreateRequest) -> str:
        if request.project_name:
            return validate_project_name(request.project_name, self.config.prompts)
        return self.prompts.ask_project_name()

    def resolve_port(self, request: CreateRequest) -> int:
        if request.port is not None:
            return validate_port(request.port, self.config.prompts)
        return self.prompts.ask_port()

    def select_addons(
        self, request: CreateRequest, addons: list[AddonDescriptor]
    ) -> list[AddonDescriptor]:
        if request.addons is not None:
            return [addons[i] for i in parse_addon_selection(request.addons, len(addons))]
        return self.prompts.ask_addons(addons)

    def prepare(self, request: CreateRequest | None = None) -> PreparedRun:
        """Resolve every answer, prompting for whatever *request* leaves out.

        Blocking; call it outside the event loop.
        """
        request = request or CreateRequest()
        project_name = self.resolve_project_name(request)
        port = self.resolve_port(request)
        addons = self.select_addons(request, load_addons(self.config.addons_dir))
        return PreparedRun(project_name=project_name, port=port, addons=addons)

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(self, prepared: PreparedRun | None = None) -> dict[str, Any]:
        """Create a project and return the run state.

        Without *prepared* the answers are resolved first via :meth:`prepare`.

        Raises:
            ExpressrError: On any fatal step.  Nothing created before the
                failure is removed.
        """
        prepared = prepared or self.prepare()
        project_name, port, selected = prepared.project_name, prepared.port, prepared.addons
        self.state.update(project_name=project_name, port=port)

        project_path = self.config.project_path(project_name)
        print_step(f"✨ Creating a new Expressr app in {escape(str(project_path))}")
        print_step("📁 Copying template files...")
        generator = ProjectGenerator(ProjectConfig(name=project_name, port=port), self.config)
        project_path = await generator.generate(self.config.output_dir)
        self.state["project_path"] = str(project_path)

        if selected:
            print_step("🔧 Installing selected addons...")
            for addon in selected:
                console.print(f"  • Installing {escape(addon.name)}...")
                await apply_addon(project_path, addon)
                self.state["addons"].append(addon.name)

        if self.config.skip_install:
            console.print()
            print_warning("Skipping dependency installation.")
        else:
            await self.install_dependencies(project_path)
            self.state["installed"] = True
            print_success("✅ Dependencies installed")

        self.state["success"] = True
        self._print_final_summary()
        return self.state

    async def install_dependencies(self, project_path: Path) -> None:
        """Run the install command inside *project_path* with inherited stdio."""
        print_step("📦 Installing dependencies...")
        command = self.config.install_command
        try:
            returncode, _, _ = await run_command(command, cwd=project_path, capture=False)
        except OSError as exc:
            raise ExternalProcessError(
                f"Error installing dependencies: could not run {' '.join(command)}: {exc}", -1
            ) from exc
        if returncode != 0:
            raise ExternalProcessError(
                f"Error installing dependencies: {' '.join(command)} exited with status {returncode}",
                returncode,
            )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _print_final_summary(self) -> None:
        name = self.state["project_name"]
        port = self.state["port"]

        print_rule("Project Summary", "green")

        print_summary_table(
            {
                "Project": name,
                "Location": self.state["project_path"],
                "Port": str(port),
                "Addons": ", ".join(self.state["addons"]) or "none",
                "Dependencies": "installed" if self.state["installed"] else "not installed",
            },
            title="Project Summary",
        )

        next_steps = (
            "Inside that directory, you can run several commands:\n\n"
            "  [bold]npm run dev[/bold]\n"
            f"    Starts the development server on port {port}.\n\n"
            "  [bold]npm run build[/bold]\n"
            "    Builds the app for production.\n\n"
            "  [bold]npm start[/bold]\n"
            "    Runs the built app in production mode. (You must first run 'npm run build')\n\n"
            "Get started by typing:\n\n"
            f"  cd {escape(name)}\n"
        )
        if not self.state["installed"]:
            next_steps += "  npm install\n"
        next_steps += "  npm run dev"

        console.print(
            Panel(
                next_steps,
                title=f"[bold green]✅ Success! Created {escape(name)}[/bold green]",
                border_style="green",
            )
        )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``create-expressr-app`` / ``python -m expressr``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="create-expressr-app",
        description="Create a new Express + TypeScript app with folder-based routing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-expressr-app\n"
            "  create-expressr-app my-app\n"
            "  create-expressr-app my-app --port 4000 --addons 1,2\n"
        ),
    )
    parser.add_argument(
        "project_name",
        nargs="?",
        default=None,
        help="Project directory name (prompted for if omitted)",
    )
    parser.add_argument(
        "--port", "-p",
        default=None,
        help="Port written to .env (prompted for if omitted, default: 3000)",
    )
    parser.add_argument(
        "--addons", "-a",
        default=None,
        help="Comma-separated addon numbers to apply (prompted for if omitted)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Parent directory for the project (default: current directory)",
    )
    parser.add_argument(
        "--skip-install",
        action="store_true",
        help="Do not run the package manager after generating the project",
    )

    args = parser.parse_args(argv)

    request = CreateRequest(project_name=args.project_name, port=args.port, addons=args.addons)

    try:
        config = Config.from_env()
        if args.output:
            config.output_dir = Path(args.output)
        if args.skip_install:
            config.skip_install = True

        pipeline = CreateAppPipeline(config)
        # Prompts run before the event loop owns SIGINT.
        prepared = pipeline.prepare(request)
        asyncio.run(pipeline.run(prepared))
    except ExpressrError as exc:
        print_error(f"❌ Error: {escape(str(exc))}")
        sys.exit(1)
    except (KeyboardInterrupt, EOFError):
        print_error("\n❌ Operation cancelled by user")
        sys.exit(1)
    except Exception as exc:
        print_error(f"❌ Error: {escape(str(exc))}")
        console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")
        sys.exit(1)


if __name__ == "__main__":
    main()
