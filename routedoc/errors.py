"""Exception types raised by routedoc components."""

from __future__ import annotations


class RoutedocError(RuntimeError):
    """Base class for routedoc failures."""


class ConfigError(RoutedocError):
    """Raised when the configuration file cannot be parsed."""


class ManifestError(RoutedocError):
    """Raised when a route manifest is structurally invalid."""


class CatalogUnavailable(RoutedocError):
    """Raised by catalog sources when entity schemas cannot be read."""


class PersistenceFailure(RoutedocError):
    """Raised when the assembled document cannot be written to disk."""


__all__ = [
    "CatalogUnavailable",
    "ConfigError",
    "ManifestError",
    "PersistenceFailure",
    "RoutedocError",
]
