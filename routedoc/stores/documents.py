"""Persistent storage for assembled API documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..errors import PersistenceFailure


class DocumentStore:
    """Writes the latest document to disk, replacing the previous one wholesale."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @property
    def is_yaml(self) -> bool:
        return self.path.suffix.lower() in {".yaml", ".yml"}

    def dumps(self, document: Dict[str, Any]) -> str:
        if self.is_yaml:
            return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"

    def write(self, document: Dict[str, Any]) -> Path:
        try:
            payload = self.dumps(document)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        except (OSError, TypeError, ValueError, yaml.YAMLError) as exc:
            raise PersistenceFailure(f"Could not write {self.path}: {exc}") from exc
        return self.path

    def read(self) -> Optional[Dict[str, Any]]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError:
            return None
        try:
            data = yaml.safe_load(text) if self.is_yaml else json.loads(text)
        except (json.JSONDecodeError, yaml.YAMLError):
            return None
        return data if isinstance(data, dict) else None


__all__ = ["DocumentStore"]
