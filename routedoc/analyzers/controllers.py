"""Controller discovery and owner-tag resolution."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..logging import get_logger
from .handlers import handler_name

_LOGGER = get_logger("controllers")

FALLBACK_TAG = "api"
TAG_SUFFIX = " Controller"

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
    ".routedoc",
    "dist",
    "build",
}

_VERSION_SEGMENT = re.compile(r"^v\d+$", re.IGNORECASE)
_SKIPPED_SEGMENTS = {"api"}

ControllerMap = Mapping[str, str]


@dataclass(frozen=True)
class ControllerNaming:
    """File and identifier naming conventions for controller modules."""

    file_suffixes: Tuple[str, ...] = (
        "Controller.js",
        "Controller.mjs",
        "Controller.cjs",
        "Controller.ts",
        "Controller.py",
        "_controller.py",
    )
    handler_suffix: str = "Controller"

    def matches_file(self, name: str) -> bool:
        return name.endswith(self.file_suffixes)


def scan_controllers(root: Path, *, naming: Optional[ControllerNaming] = None) -> ControllerMap:
    """Build an immutable ``handler name -> owner tag`` map from a source tree.

    Files are visited in sorted, depth-first order. When the same identifier is
    exported from more than one file, the first file scanned keeps it.
    """
    naming = naming or ControllerNaming()
    root = Path(root)
    mapping: Dict[str, str] = {}

    if not root.is_dir():
        _LOGGER.warning("Controller directory not found: %s", root)
        return MappingProxyType(mapping)

    for path in _iter_controller_files(root, naming):
        try:
            text = path.read_text(encoding="utf-8", errors="ignore")
        except OSError as exc:
            _LOGGER.warning("Error scanning controller file %s: %s", path.name, exc)
            continue
        tag = format_owner_tag(path.name, naming=naming)
        names = extract_handler_names(text, naming=naming)
        for name in names:
            mapping.setdefault(name, tag)
        if names:
            _LOGGER.debug("Found %d functions in %s -> %s", len(names), path.name, tag)

    _LOGGER.info(
        "Mapped %d controller functions to %d controllers",
        len(mapping),
        len(set(mapping.values())),
    )
    return MappingProxyType(mapping)


def _iter_controller_files(root: Path, naming: ControllerNaming) -> Iterator[Path]:
    # os.walk does not descend into symlinked directories.
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            if naming.matches_file(filename):
                yield current_dir / filename


def _export_patterns(suffix: str) -> List[re.Pattern[str]]:
    name = r"(\w+" + re.escape(suffix) + r")"
    return [
        re.compile(r"export\s+const\s+" + name + r"\s*="),
        re.compile(r"export\s+async\s+const\s+" + name + r"\s*="),
        re.compile(r"export\s+async\s+function\s+" + name + r"\s*\("),
        re.compile(r"export\s+function\s+" + name + r"\s*\("),
        re.compile(
            r"(?:export\s+)?(?:const|async\s+const|function|async\s+function)\s+"
            + name
            + r"\s*[=(]"
        ),
        re.compile(r"^\s*(?:async\s+)?def\s+" + name + r"\s*\(", re.MULTILINE),
    ]


_NAMED_EXPORTS = re.compile(r"export\s*\{([^}]+)\}")


def extract_handler_names(text: str, *, naming: Optional[ControllerNaming] = None) -> List[str]:
    """Return handler identifiers exported by a controller file, in first-seen order."""
    naming = naming or ControllerNaming()
    found: List[str] = []

    def _add(name: str) -> None:
        if name and name not in found:
            found.append(name)

    for pattern in _export_patterns(naming.handler_suffix):
        for match in pattern.finditer(text):
            _add(match.group(1))

    for match in _NAMED_EXPORTS.finditer(text):
        for item in match.group(1).split(","):
            item = item.strip()
            if naming.handler_suffix not in item:
                continue
            # `export { registerController as register }` records the original name.
            original = re.split(r"\s+as\s+", item, maxsplit=1)[0].strip()
            if re.fullmatch(r"[A-Za-z_$][\w$]*", original):
                _add(original)

    return found


def format_owner_tag(file_name: str, *, naming: Optional[ControllerNaming] = None) -> str:
    """Turn a controller file name into a display tag.

    >>> format_owner_tag("guestKeyController.js")
    'Guest Key Controller'
    """
    naming = naming or ControllerNaming()
    base = file_name
    for suffix in naming.file_suffixes:
        if base.endswith(suffix):
            base = base[: -len(suffix)]
            break
    else:
        base = base.split(".", 1)[0]
    base = re.sub(r"[_-]?" + re.escape(naming.handler_suffix) + r"$", "", base, flags=re.IGNORECASE)
    return _title_words(base) + TAG_SUFFIX


def _title_words(name: str) -> str:
    spaced = re.sub(r"([A-Z])", r" \1", name)
    words = [word for word in re.split(r"[\s_\-]+", spaced) if word]
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


_Matcher = Callable[[str, str], Optional[str]]


class ControllerResolver:
    """Resolves the owner tag for a handler with a fixed precedence of matchers."""

    def __init__(
        self,
        controller_map: Optional[ControllerMap] = None,
        *,
        naming: Optional[ControllerNaming] = None,
    ) -> None:
        self.controller_map: ControllerMap = MappingProxyType(dict(controller_map or {}))
        self.naming = naming or ControllerNaming()
        self._matchers: Sequence[_Matcher] = (
            self._by_exact_name,
            self._by_suffixed_name,
            self._by_path,
            self._by_name,
        )

    def resolve(self, handler: Any, path: str = "") -> str:
        name = handler_name(handler)
        for matcher in self._matchers:
            tag = matcher(name, path)
            if tag:
                return tag
        return FALLBACK_TAG

    def _by_exact_name(self, name: str, path: str) -> Optional[str]:
        return self.controller_map.get(name) if name else None

    def _by_suffixed_name(self, name: str, path: str) -> Optional[str]:
        if not name:
            return None
        return self.controller_map.get(name + self.naming.handler_suffix)

    def _by_path(self, name: str, path: str) -> Optional[str]:
        segments = [
            segment
            for segment in (path or "").split("/")
            if segment and not segment.startswith((":", "{", "<"))
        ]
        meaningful = [
            segment
            for segment in segments
            if segment.lower() not in _SKIPPED_SEGMENTS and not _VERSION_SEGMENT.match(segment)
        ]
        chosen = meaningful[0] if meaningful else (segments[0] if segments else None)
        if not chosen:
            return None
        return chosen[:1].upper() + chosen[1:] + TAG_SUFFIX

    def _by_name(self, name: str, path: str) -> Optional[str]:
        stripped = re.sub(
            r"[_-]?" + re.escape(self.naming.handler_suffix) + r"$", "", name, flags=re.IGNORECASE
        )
        words = _title_words(stripped)
        return words + TAG_SUFFIX if words else None


__all__ = [
    "ControllerMap",
    "ControllerNaming",
    "ControllerResolver",
    "FALLBACK_TAG",
    "extract_handler_names",
    "format_owner_tag",
    "scan_controllers",
]
