"""Entity schema catalog sources."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol

import yaml

from ..errors import CatalogUnavailable
from ..logging import get_logger
from ..models import EntitySchema

_LOGGER = get_logger("catalog")

RawCatalog = Mapping[str, Mapping[str, str]]


class EntityCatalog(Protocol):
    """Contract for persistence collaborators exposing named entity schemas."""

    def fetch(self) -> RawCatalog:
        ...


class StaticCatalog:
    """Catalog backed by an in-memory mapping."""

    def __init__(self, entities: RawCatalog) -> None:
        self._entities = {name: dict(fields) for name, fields in entities.items()}

    def fetch(self) -> RawCatalog:
        return self._entities


class FileCatalog:
    """Catalog read from a YAML or JSON file.

    The file holds either ``{entities: {Name: {field: type}}}`` or the bare
    ``{Name: {field: type}}`` mapping.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def fetch(self) -> RawCatalog:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CatalogUnavailable(f"Cannot read entity catalog {self.path}: {exc}") from exc
        try:
            data = yaml.safe_load(text) if text.strip() else {}
        except yaml.YAMLError as exc:
            raise CatalogUnavailable(f"Failed to parse {self.path.name}: {exc}") from exc
        if isinstance(data, dict) and isinstance(data.get("entities"), dict):
            data = data["entities"]
        if not isinstance(data, dict):
            raise CatalogUnavailable(f"{self.path.name} must contain a mapping of entities")
        catalog: Dict[str, Dict[str, str]] = {}
        for name, fields in data.items():
            if not isinstance(fields, dict):
                continue
            catalog[str(name)] = {str(field): str(tag) for field, tag in fields.items()}
        return catalog


def read_catalog(source: Optional[EntityCatalog]) -> Dict[str, EntitySchema]:
    """Fetch every entity schema once; an unreachable catalog reads as empty."""
    if source is None:
        return {}
    try:
        raw = source.fetch()
        schemas: Dict[str, EntitySchema] = {}
        for name, fields in raw.items():
            if not isinstance(fields, Mapping):
                _LOGGER.warning("Skipping entity %s: fields are not a mapping", name)
                continue
            schemas[str(name)] = EntitySchema(
                name=str(name), fields={str(field): str(tag) for field, tag in fields.items()}
            )
    except Exception as exc:  # any collaborator failure reads as empty
        _LOGGER.warning("Entity catalog unavailable, continuing without schemas: %s", exc)
        return {}
    return schemas


__all__ = ["EntityCatalog", "FileCatalog", "StaticCatalog", "read_catalog"]
