"""Static analyzers for route tables, handlers and controller modules."""

from __future__ import annotations

from .controllers import (
    ControllerMap,
    ControllerNaming,
    ControllerResolver,
    extract_handler_names,
    format_owner_tag,
    scan_controllers,
)
from .handlers import HandlerAnalyzer, handler_name, handler_source
from .routes import join_paths, load_route_manifest, normalize_path, routes_from_app, walk_routes

__all__ = [
    "ControllerMap",
    "ControllerNaming",
    "ControllerResolver",
    "HandlerAnalyzer",
    "extract_handler_names",
    "format_owner_tag",
    "handler_name",
    "handler_source",
    "join_paths",
    "load_route_manifest",
    "normalize_path",
    "routes_from_app",
    "scan_controllers",
    "walk_routes",
]
