"""Filesystem-convention route loader.

Walks a directory of Python handler modules and builds a :class:`Router`
registration table from it.  The file path decides the URL path:

=================================  ===================
``routes/status.py``               ``/status``
``routes/examples/[id].py``        ``/examples/:id``
``routes/(api)/health.py``         ``/health``
``routes/users/index.py``          ``/users``
``routes/index.py``                ``/``
=================================  ===================

A module exporting a callable named ``default`` answers every method;
otherwise each of ``get``, ``post``, ``put``, ``delete`` and ``patch`` that
is defined is registered under its method.  Names starting with ``_``
(``__init__.py``, ``__pycache__``) are not walked.
"""

from __future__ import annotations

import hashlib
import importlib.util
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePath
from types import ModuleType
from typing import Any, Union

from fastapi import APIRouter

from expressr.errors import InstallationIntegrityError

HANDLER_SUFFIX = ".py"

Handler = Callable[..., Any]

_PARAM_SEGMENT = re.compile(r"\[([^\]]+)\]")
_GROUP_SEGMENT = re.compile(r"^\(.+\)$")
_PATH_PARAM = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


# Methods a catch-all handler is mounted for.
ALL_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")


# ---------------------------------------------------------------------------
# Route module variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CatchAllHandler:
    """A module whose ``default`` export handles every method."""

    handler: Handler


@dataclass(frozen=True)
class MethodHandlers:
    """A module exporting per-method handlers (possibly none)."""

    handlers: dict[HttpMethod, Handler] = field(default_factory=dict)


RouteModule = Union[CatchAllHandler, MethodHandlers]


def classify_module(module: ModuleType | Any) -> RouteModule:
    """Decide which variant *module* is."""
    default = getattr(module, "default", None)
    if callable(default):
        return CatchAllHandler(default)

    handlers: dict[HttpMethod, Handler] = {}
    for method in HttpMethod:
        candidate = getattr(module, method.value.lower(), None)
        if callable(candidate):
            handlers[method] = candidate
    return MethodHandlers(handlers)


# ---------------------------------------------------------------------------
# Router registration table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Route:
    """One registration.  ``method`` is ``None`` for catch-all routes."""

    method: HttpMethod | None
    path: str
    handler: Handler
    source: Path | None = None

    def matches(self, method: str) -> bool:
        return self.method is None or self.method.value == method.upper()


class Router:
    """Ordered table of route registrations.

    Duplicates are kept; which one wins is up to the framework the table is
    mounted into.
    """

    def __init__(self) -> None:
        self.routes: list[Route] = []

    def __len__(self) -> int:
        return len(self.routes)

    def __iter__(self):
        return iter(self.routes)

    def add(
        self,
        method: HttpMethod | str | None,
        path: str,
        handler: Handler,
        source: Path | None = None,
    ) -> Route:
        if isinstance(method, str):
            method = HttpMethod(method.upper())
        route = Route(method, path, handler, source)
        self.routes.append(route)
        return route

    def all(self, path: str, handler: Handler, source: Path | None = None) -> Route:
        return self.add(None, path, handler, source)

    def register(self, path: str, module: RouteModule, source: Path | None = None) -> None:
        """Register every handler of a classified route module under *path*."""
        if isinstance(module, CatchAllHandler):
            self.all(path, module.handler, source)
        else:
            for method, handler in module.handlers.items():
                self.add(method, path, handler, source)

    def find(self, method: str, path: str) -> list[Route]:
        """Routes registered for *path* that answer *method*, in registration order."""
        return [r for r in self.routes if r.path == path and r.matches(method)]

    @property
    def paths(self) -> list[str]:
        return [r.path for r in self.routes]

    def to_api_router(self, **kwargs: Any) -> APIRouter:
        """Mount the table into a new ``fastapi.APIRouter``.

        ``:name`` placeholders become ``{name}``; catch-all routes are
        registered for every standard method.
        """
        api_router = APIRouter(**kwargs)
        for route in self.routes:
            methods = list(ALL_METHODS) if route.method is None else [route.method.value]
            api_router.add_api_route(
                to_fastapi_path(route.path),
                route.handler,
                methods=methods,
            )
        return api_router


# ---------------------------------------------------------------------------
# Path computation
# ---------------------------------------------------------------------------


def route_path_for(relative_path: str | PurePath) -> str:
    """Compute the URL path for a handler file relative to the routes root."""
    parts = list(PurePath(relative_path).parts)
    if not parts:
        return "/"
    last = parts[-1]
    if "." in last:
        parts[-1] = last.rsplit(".", 1)[0]

    segments = [
        _PARAM_SEGMENT.sub(r":\1", part)
        for part in parts
        if not _GROUP_SEGMENT.match(part)
    ]
    if segments and segments[-1] == "index":
        segments.pop()
    return "/" + "/".join(segments)


def to_fastapi_path(path: str) -> str:
    """``/examples/:id`` -> ``/examples/{id}``."""
    return _PATH_PARAM.sub(r"{\1}", path)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def import_handler_module(path: Path) -> ModuleType:
    """Import a handler file by path under a unique, path-derived module name."""
    digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:12]
    module_name = f"expressr_routes_{digest}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise InstallationIntegrityError(f"Cannot import route handler: {path}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def iter_handler_files(routes_root: Path):
    """Yield handler files under *routes_root* in sorted walk order."""
    for entry in sorted(routes_root.iterdir()):
        if entry.name.startswith("_"):
            continue
        if entry.is_dir():
            yield from iter_handler_files(entry)
        elif entry.suffix == HANDLER_SUFFIX:
            yield entry


def load_routes(routes_root: str | Path) -> Router:
    """Build a :class:`Router` from every handler module under *routes_root*.

    A missing *routes_root* gives an empty router.  Errors raised while
    importing a handler module propagate unchanged.
    """
    root = Path(routes_root)
    router = Router()
    if not root.is_dir():
        return router

    for path in iter_handler_files(root):
        route_path = route_path_for(path.relative_to(root))
        router.register(route_path, classify_module(import_handler_module(path)), path)
    return router
