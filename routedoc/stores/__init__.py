"""Storage helpers for entity catalogs and generated documents."""

from .catalog import EntityCatalog, FileCatalog, StaticCatalog, read_catalog
from .documents import DocumentStore

__all__ = ["DocumentStore", "EntityCatalog", "FileCatalog", "StaticCatalog", "read_catalog"]
