"""Assembly of the OpenAPI document from a live route table."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .analyzers.controllers import ControllerMap, ControllerResolver, scan_controllers
from .analyzers.handlers import HandlerAnalyzer
from .analyzers.routes import walk_routes
from .config import RoutedocConfig
from .errors import PersistenceFailure
from .examples import DEFAULT_TIMESTAMP, ExampleValue, examples_from_fields
from .logging import get_logger
from .models import EntitySchema, HandlerAnalysis, RouteEntry, RouteNode
from .stores import DocumentStore, EntityCatalog, FileCatalog, read_catalog

OPENAPI_VERSION = "3.0.0"
SECURITY_SCHEME = "BearerAuth"


class DocumentBuilder:
    """Builds one complete API document per call to :meth:`build`."""

    def __init__(
        self,
        config: Optional[RoutedocConfig] = None,
        *,
        catalog: Optional[EntityCatalog] = None,
        controller_map: Optional[ControllerMap] = None,
        analyzer: Optional[HandlerAnalyzer] = None,
        store: Optional[DocumentStore] = None,
    ) -> None:
        self.config = config or RoutedocConfig(root=Path.cwd())
        self.catalog = catalog
        self.resolver = ControllerResolver(controller_map)
        self.analyzer = analyzer or HandlerAnalyzer(self.config.grammar)
        self.store = store
        self.last_written: Optional[Path] = None
        self.logger = get_logger("assembler")

    @classmethod
    def from_config(cls, config: RoutedocConfig) -> "DocumentBuilder":
        """Wire collaborators declared in configuration."""
        controller_map = scan_controllers(config.controllers_dir) if config.controllers_dir else None
        catalog = FileCatalog(config.catalog_file) if config.catalog_file else None
        store = DocumentStore(config.output) if config.output else None
        return cls(config, catalog=catalog, controller_map=controller_map, store=store)

    @property
    def wrapper_field(self) -> str:
        return self.config.grammar.wrapper_field

    @property
    def timestamp(self) -> str:
        return self.config.example_timestamp or DEFAULT_TIMESTAMP

    def build(self, table: Iterable[RouteNode]) -> Dict[str, Any]:
        """Assemble the document for ``table`` and persist it when a store is set."""
        schemas = read_catalog(self.catalog)
        entries = walk_routes(table)
        self.logger.info("Building API document for %d routes", len(entries))

        paths: Dict[str, Dict[str, Any]] = {}
        for entry in entries:
            operations = paths.setdefault(entry.path, {})
            # Later registrations of the same path and method replace earlier ones.
            operations.update(self.describe_route(entry, schemas))

        document = self._document(paths, schemas)
        self.logger.info(
            "Assembled %d paths under %d tags", len(paths), len(document["tags"])
        )
        self._persist(document)
        return document

    def describe_route(
        self, entry: RouteEntry, schemas: Mapping[str, EntitySchema]
    ) -> Dict[str, Dict[str, Any]]:
        """Return operation descriptors for every method of one route."""
        handler = entry.handler
        analysis = self.analyzer.analyze(handler, entry.handlers)
        tag = self.resolver.resolve(handler, entry.path)

        response_schema = self._response_schema(entry.path, analysis, schemas)
        response_example = self._example(response_schema.get("properties", {}))
        request_example = self._example(analysis.request_fields)

        operations: Dict[str, Dict[str, Any]] = {}
        for method in sorted(entry.methods):
            operation: Dict[str, Any] = {
                "tags": [tag],
                "summary": f"{method.upper()} {entry.path}",
                "security": [{SECURITY_SCHEME: []}],
            }
            if request_example:
                operation["requestBody"] = {
                    "required": False,
                    "content": {
                        "application/json": {
                            "schema": self._request_schema(request_example),
                            "example": {self.wrapper_field: request_example},
                        }
                    },
                }
            operation["responses"] = {
                "200": {
                    "description": "OK",
                    "content": {
                        "application/json": {
                            "schema": response_schema,
                            "example": response_example,
                        }
                    },
                }
            }
            if analysis.validators:
                operation["x-validators"] = list(analysis.validators)
            operations[method.lower()] = operation
        return operations

    def _example(self, fields: Iterable[str]) -> Dict[str, ExampleValue]:
        return examples_from_fields(
            fields, wrapper_field=self.wrapper_field, timestamp=self.timestamp
        )

    def _request_schema(self, example: Mapping[str, ExampleValue]) -> Dict[str, Any]:
        inner: Dict[str, Any] = {"type": "object"}
        if example:
            inner["properties"] = _string_properties(example)
        return {"type": "object", "properties": {self.wrapper_field: inner}}

    def _response_schema(
        self,
        path: str,
        analysis: HandlerAnalysis,
        schemas: Mapping[str, EntitySchema],
    ) -> Dict[str, Any]:
        # Inferred response fields are documented as strings; the wrapper never appears.
        fields = self._example(analysis.response_fields)
        if fields:
            return {"type": "object", "properties": _string_properties(fields)}
        entity = match_entity(path, schemas)
        if entity is not None:
            return entity.to_openapi()
        return {"type": "object"}

    def _document(
        self, paths: Dict[str, Dict[str, Any]], schemas: Mapping[str, EntitySchema]
    ) -> Dict[str, Any]:
        info = self.config.info
        return {
            "openapi": OPENAPI_VERSION,
            "info": {
                "title": info.title,
                "version": info.version,
                "description": info.description,
            },
            "servers": [{"url": self.config.base_url or "/"}],
            "tags": build_tags(paths),
            "components": {
                "securitySchemes": {
                    SECURITY_SCHEME: {
                        "type": "http",
                        "scheme": "bearer",
                        "bearerFormat": "JWT",
                    }
                },
                "schemas": {name: schema.to_openapi() for name, schema in schemas.items()},
            },
            "paths": paths,
        }

    def _persist(self, document: Dict[str, Any]) -> None:
        self.last_written = None
        if self.store is None:
            return
        try:
            written = self.store.write(document)
        except PersistenceFailure as exc:
            self.logger.warning("Could not persist API document: %s", exc)
            return
        self.last_written = written
        self.logger.info("API document written to %s", written)


def match_entity(path: str, schemas: Mapping[str, EntitySchema]) -> Optional[EntitySchema]:
    """Return the first entity whose singular, lower-cased name appears in ``path``."""
    route = path.lower()
    for name, schema in schemas.items():
        stem = name.lower()
        if stem.endswith("model"):
            stem = stem[: -len("model")]
        if stem.endswith("s"):
            stem = stem[:-1]
        if stem and stem in route:
            return schema
    return None


def build_tags(paths: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> List[Dict[str, str]]:
    """Collect distinct operation tags, sorted by name."""
    names = {
        tag
        for operations in paths.values()
        for operation in operations.values()
        for tag in operation.get("tags", [])
    }
    return [{"name": name, "description": f"Endpoints for {name}"} for name in sorted(names)]


def _string_properties(fields: Iterable[str]) -> Dict[str, Dict[str, str]]:
    return {name: {"type": "string"} for name in fields}


def build_document(
    table: Sequence[RouteNode],
    config: Optional[RoutedocConfig] = None,
    **collaborators: Any,
) -> Dict[str, Any]:
    """Build a document in one call; see :class:`DocumentBuilder` for collaborators."""
    return DocumentBuilder(config, **collaborators).build(table)


__all__ = ["DocumentBuilder", "build_document", "build_tags", "match_entity"]
