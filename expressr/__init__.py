"""create-expressr-app -- scaffolds Express + TypeScript projects.

Copies the bundled app template into a new directory, applies the selected
addons and installs dependencies.  Also ships :mod:`expressr.routing`, a
filesystem-convention route loader for Python handler directories.
"""

__version__ = "1.0.0"
