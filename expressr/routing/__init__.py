"""Folder-based routing for Python handler modules.

Quick usage::

    from fastapi import FastAPI
    from expressr.routing import load_routes

    app = FastAPI()
    app.include_router(load_routes("routes").to_api_router())
"""

from expressr.routing.loader import (
    CatchAllHandler,
    HttpMethod,
    MethodHandlers,
    Route,
    Router,
    classify_module,
    load_routes,
    route_path_for,
    to_fastapi_path,
)

__all__ = [
    "CatchAllHandler",
    "HttpMethod",
    "MethodHandlers",
    "Route",
    "Router",
    "classify_module",
    "load_routes",
    "route_path_for",
    "to_fastapi_path",
]
