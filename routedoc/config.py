"""Configuration loading for routedoc (.routedoc.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".routedoc.yml"
_BASE_URL_ENV = ("ROUTEDOC_BASE_URL", "BASE_URL")


@dataclass
class InfoConfig:
    """Document `info` block."""

    title: str = "API"
    version: str = "1.0.0"
    description: str = "Auto-generated OpenAPI 3 docs (best-effort)."


@dataclass
class GrammarConfig:
    """Source idioms recognized by the handler analyzer."""

    wrapper_field: str = "reqData"
    carrier: str = "req.body"
    success_call: str = "sendSuccess"
    raw_call: str = "res.json"


@dataclass
class RoutedocConfig:
    """Represents the settings defined in .routedoc.yml."""

    root: Path
    info: InfoConfig = field(default_factory=InfoConfig)
    base_url: Optional[str] = None
    routes_file: Optional[Path] = None
    controllers_dir: Optional[Path] = None
    catalog_file: Optional[Path] = None
    output: Optional[Path] = None
    grammar: GrammarConfig = field(default_factory=GrammarConfig)
    example_timestamp: Optional[str] = None

    def __post_init__(self) -> None:
        if self.controllers_dir is None:
            self.controllers_dir = self.root / "controller"
        if self.output is None:
            self.output = self.root / ".routedoc" / "openapi.json"


def load_config(config_path: Path, *, environ: Optional[Dict[str, str]] = None) -> RoutedocConfig:
    """Load configuration from disk, applying environment overrides."""
    env = os.environ if environ is None else environ
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if config_file.exists():
        data = _read_config(config_file)
    else:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    info = InfoConfig()
    info_data = _as_dict(data.get("info"))
    if info_data:
        info = InfoConfig(
            title=_as_str(info_data.get("title")) or info.title,
            version=_as_str(info_data.get("version")) or info.version,
            description=_as_str(info_data.get("description")) or info.description,
        )

    grammar = GrammarConfig()
    grammar_data = _as_dict(data.get("grammar"))
    if grammar_data:
        grammar = GrammarConfig(
            wrapper_field=_as_str(grammar_data.get("wrapper_field")) or grammar.wrapper_field,
            carrier=_as_str(grammar_data.get("carrier")) or grammar.carrier,
            success_call=_as_str(grammar_data.get("success_call")) or grammar.success_call,
            raw_call=_as_str(grammar_data.get("raw_call")) or grammar.raw_call,
        )

    base_url = _as_str(data.get("base_url"))
    for name in _BASE_URL_ENV:
        value = env.get(name)
        if value:
            base_url = value
            break

    return RoutedocConfig(
        root=root,
        info=info,
        base_url=base_url,
        routes_file=_as_path(root, data.get("routes")),
        controllers_dir=_as_path(root, data.get("controllers")),
        catalog_file=_as_path(root, data.get("catalog")),
        output=_as_path(root, data.get("output")),
        grammar=grammar,
        example_timestamp=_as_str(data.get("example_timestamp")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_path(root: Path, value: Any) -> Optional[Path]:
    text = _as_str(value)
    if not text:
        return None
    path = Path(text).expanduser()
    return path if path.is_absolute() else root / path


__all__ = [
    "CONFIG_FILENAME",
    "GrammarConfig",
    "InfoConfig",
    "RoutedocConfig",
    "load_config",
]
