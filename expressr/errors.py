"""Exception hierarchy for create-expressr-app.

Every fatal error raised by the tool derives from :class:`ExpressrError` so
the CLI entry point can report it with a single handler and exit with
status 1.  :class:`UserInputError` is the only non-fatal one: the prompt
sequence catches it and asks again.
"""

from __future__ import annotations

from pathlib import Path


class ExpressrError(Exception):
    """Base class for all create-expressr-app errors."""


class UserInputError(ExpressrError):
    """An interactive answer did not match the expected pattern."""


class InstallationIntegrityError(ExpressrError):
    """A file shipped with the tool (template or addon config) is missing or broken.

    This points at a damaged installation rather than a user mistake.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class FileSystemError(ExpressrError):
    """Reading, writing or creating something inside the project failed."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class ManifestReadError(FileSystemError):
    """The project's ``package.json`` is missing or is not a JSON object."""


class ExternalProcessError(ExpressrError):
    """An external command (the package manager) exited with a failure."""

    def __init__(self, message: str, returncode: int) -> None:
        self.returncode = returncode
        super().__init__(message)
