"""Core data models shared across routedoc components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Mapping, Sequence, Tuple, Union


@dataclass
class Route:
    """A terminal route as registered on the host router."""

    path: str
    methods: Sequence[str]
    handlers: Sequence[Callable[..., Any]] = field(default_factory=list)


@dataclass
class Mount:
    """A sub-table of routes mounted under a path prefix."""

    prefix: str
    children: Sequence["RouteNode"] = field(default_factory=list)


RouteNode = Union[Route, Mount]


@dataclass(frozen=True)
class RouteEntry:
    """Flattened route with its normalized path."""

    path: str
    methods: FrozenSet[str]
    handlers: Tuple[Callable[..., Any], ...]

    @property
    def handler(self) -> Callable[..., Any] | None:
        """The innermost (last registered) handler of the chain."""
        return self.handlers[-1] if self.handlers else None


@dataclass(frozen=True)
class HandlerAnalysis:
    """Fields and validators inferred from one handler's source text."""

    request_fields: Tuple[str, ...] = ()
    response_fields: Tuple[str, ...] = ()
    validators: Tuple[str, ...] = ()


_OPENAPI_TYPES: Dict[str, Dict[str, str]] = {
    "string": {"type": "string"},
    "text": {"type": "string"},
    "char": {"type": "string"},
    "enum": {"type": "string"},
    "uuid": {"type": "string", "format": "uuid"},
    "integer": {"type": "integer"},
    "int": {"type": "integer"},
    "bigint": {"type": "integer", "format": "int64"},
    "smallint": {"type": "integer"},
    "float": {"type": "number", "format": "float"},
    "double": {"type": "number", "format": "double"},
    "decimal": {"type": "number"},
    "number": {"type": "number"},
    "boolean": {"type": "boolean"},
    "bool": {"type": "boolean"},
    "date": {"type": "string", "format": "date"},
    "dateonly": {"type": "string", "format": "date"},
    "datetime": {"type": "string", "format": "date-time"},
    "timestamp": {"type": "string", "format": "date-time"},
    "json": {"type": "object"},
    "jsonb": {"type": "object"},
    "array": {"type": "array", "items": {}},
}


def openapi_type(type_tag: str) -> Dict[str, Any]:
    """Map a primitive type tag from the persistence layer to an OpenAPI fragment."""
    key = (type_tag or "").strip().lower()
    # Tags such as "STRING(255)" or "DataTypes.INTEGER" carry noise around the name.
    key = key.split("(", 1)[0].rsplit(".", 1)[-1]
    return dict(_OPENAPI_TYPES.get(key, {"type": "string"}))


@dataclass(frozen=True)
class EntitySchema:
    """Named, flat description of a persisted record type."""

    name: str
    fields: Mapping[str, str]

    def to_openapi(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {name: openapi_type(tag) for name, tag in self.fields.items()},
        }


class DeclaredHandler:
    """A handler known only by its name and source text.

    Route manifests exported from non-Python servers describe handlers this way.
    The object mirrors the attributes reflection reads from real callables but
    refuses to be invoked.
    """

    def __init__(self, name: str, source: str = "") -> None:
        self.__name__ = name
        self.__source__ = source

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        raise TypeError(f"Declared handler '{self.__name__}' cannot be executed")

    def __repr__(self) -> str:
        return f"DeclaredHandler({self.__name__!r})"


__all__ = [
    "DeclaredHandler",
    "EntitySchema",
    "HandlerAnalysis",
    "Mount",
    "Route",
    "RouteEntry",
    "RouteNode",
    "openapi_type",
]
