"""Route table flattening and route-table adapters."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

import yaml

from ..errors import ManifestError
from ..logging import get_logger
from ..models import DeclaredHandler, Mount, Route, RouteEntry, RouteNode

_LOGGER = get_logger("routes")


def normalize_path(path: str) -> str:
    """Return a canonical representation for route paths.

    Parameter placeholders such as ``:id`` or ``{id}`` are kept verbatim.
    """
    result = (path or "").strip()
    if not result.startswith("/"):
        result = "/" + result
    result = re.sub(r"/{2,}", "/", result)
    if len(result) > 1 and result.endswith("/"):
        result = result[:-1]
    return result


def join_paths(prefix: str, route: str) -> str:
    """Combine a mount prefix with a route path."""
    if not prefix:
        return normalize_path(route)
    return normalize_path(f"{prefix}/{route or ''}")


def walk_routes(table: Iterable[RouteNode], prefix: str = "") -> List[RouteEntry]:
    """Flatten a nested route table into entries in registration order.

    Entries that share a path and method are all returned; whoever consumes
    them into a mapping lets the later registration overwrite the earlier one.
    """
    entries: List[RouteEntry] = []
    for node in table:
        if isinstance(node, Mount):
            entries.extend(walk_routes(node.children, join_paths(prefix, node.prefix)))
        elif isinstance(node, Route):
            entries.append(
                RouteEntry(
                    path=join_paths(prefix, node.path),
                    methods=frozenset(method.strip().upper() for method in node.methods if method),
                    handlers=tuple(node.handlers),
                )
            )
        else:
            raise TypeError(f"Unsupported route table node: {node!r}")
    return entries


# ---------------------------------------------------------------------------
# Live Starlette / FastAPI applications
# ---------------------------------------------------------------------------


def routes_from_app(app: Any) -> List[RouteNode]:
    """Convert a Starlette or FastAPI application (or router) into a route table."""
    routes = getattr(app, "routes", None)
    if routes is None:
        raise TypeError(f"{app!r} does not expose a route table")
    table: List[RouteNode] = []
    for route in routes:
        node = _convert_route(route)
        if node is not None:
            table.append(node)
    return table


def _convert_route(route: Any) -> Optional[RouteNode]:
    endpoint = getattr(route, "endpoint", None)
    methods = getattr(route, "methods", None)
    if endpoint is not None and methods:
        chain = [
            dependency.dependency
            for dependency in getattr(route, "dependencies", None) or []
            if getattr(dependency, "dependency", None) is not None
        ]
        chain.append(endpoint)
        # Starlette registers HEAD implicitly alongside GET.
        declared = sorted(m for m in methods if m != "HEAD" or "GET" not in methods)
        return Route(path=route.path, methods=declared, handlers=chain)
    children = getattr(route, "routes", None)
    if children:
        return Mount(prefix=getattr(route, "path", ""), children=routes_from_app(route))
    return None


# ---------------------------------------------------------------------------
# Declarative route manifests
# ---------------------------------------------------------------------------


def load_route_manifest(path: Path) -> List[RouteNode]:
    """Load a YAML or JSON route manifest describing an external server's routes."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Cannot read route manifest {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text) if text.strip() else None
    except yaml.YAMLError as exc:
        raise ManifestError(f"Failed to parse {path.name}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("routes")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ManifestError(f"{path.name}: 'routes' must be a list")
    return _parse_nodes(data, path.parent)


def _parse_nodes(items: Sequence[Any], base_dir: Path) -> List[RouteNode]:
    nodes: List[RouteNode] = []
    for item in items:
        if not isinstance(item, dict):
            raise ManifestError(f"Route entries must be mappings, got {item!r}")
        if "routes" in item:
            children = item.get("routes") or []
            if not isinstance(children, list):
                raise ManifestError("Nested 'routes' must be a list")
            prefix = str(item.get("prefix") or item.get("path") or "")
            nodes.append(Mount(prefix=prefix, children=_parse_nodes(children, base_dir)))
            continue
        if "path" not in item:
            raise ManifestError(f"Route entry is missing 'path': {item!r}")
        methods = item.get("methods", item.get("method", ["get"]))
        if isinstance(methods, str):
            methods = [methods]
        handlers = [_parse_handler(raw, base_dir) for raw in item.get("handlers") or []]
        nodes.append(Route(path=str(item["path"]), methods=[str(m) for m in methods], handlers=handlers))
    return nodes


def _parse_handler(raw: Any, base_dir: Path) -> DeclaredHandler:
    if isinstance(raw, str):
        return DeclaredHandler(raw)
    if not isinstance(raw, dict):
        raise ManifestError(f"Handler entries must be names or mappings, got {raw!r}")
    name = str(raw.get("name") or "")
    source = raw.get("source")
    if source is None and raw.get("file"):
        source_path = base_dir / str(raw["file"])
        try:
            source = source_path.read_text(encoding="utf-8", errors="ignore")
        except OSError as exc:
            _LOGGER.warning("Cannot read handler source %s: %s", source_path, exc)
            source = ""
    return DeclaredHandler(name, str(source or ""))


__all__ = [
    "join_paths",
    "load_route_manifest",
    "normalize_path",
    "routes_from_app",
    "walk_routes",
]
