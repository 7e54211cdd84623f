"""Static analysis of route handler source text.

Handlers are never executed. Their source is obtained through reflection and
matched against a small grammar of independent extractors; an extractor that
does not recognize the text contributes nothing, so an unfamiliar handler
degrades to empty field sets instead of a guessed schema.
"""

from __future__ import annotations

import functools
import inspect
import re
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from ..config import GrammarConfig
from ..models import HandlerAnalysis

_IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")
_OBJECT_KEY = re.compile(r"""^(?P<quote>["']?)(?P<key>[A-Za-z_$][\w$-]*)(?P=quote)\s*:""")
_QUOTES = {'"', "'", "`"}
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}
_SCHEMA_LOAD = re.compile(r"Schema(?:\(\s*\))?\.load\s*\(")

_ValidatorMarker = Tuple[str, Callable[[str], bool]]

VALIDATOR_MARKERS: Sequence[_ValidatorMarker] = (
    ("joi", lambda src: "Joi." in src or "joi." in src),
    ("yup", lambda src: "yup." in src or "Yup." in src),
    (
        "express-validator",
        lambda src: "express-validator" in src or "check(" in src or "body(" in src,
    ),
    ("pydantic", lambda src: "pydantic" in src or "BaseModel" in src),
    (
        "marshmallow",
        lambda src: "marshmallow" in src or bool(_SCHEMA_LOAD.search(src)),
    ),
)


def handler_source(handler: Any) -> str:
    """Return the source text of a handler, or an empty string when unavailable."""
    if handler is None:
        return ""
    while isinstance(handler, functools.partial):
        handler = handler.func
    declared = getattr(handler, "__source__", None)
    if isinstance(declared, str):
        return declared
    try:
        target = inspect.unwrap(handler)
    except ValueError:
        target = handler
    try:
        return inspect.getsource(target)
    except (OSError, TypeError):
        return ""


def handler_name(handler: Any) -> str:
    """Return the identifier a handler was defined under, if any."""
    while isinstance(handler, functools.partial):
        handler = handler.func
    name = getattr(handler, "__name__", "")
    if not isinstance(name, str) or name == "<lambda>":
        return ""
    return name


class HandlerAnalyzer:
    """Infers request fields, response fields and validators from handler source."""

    def __init__(self, grammar: Optional[GrammarConfig] = None) -> None:
        self.grammar = grammar or GrammarConfig()
        wrapper = re.escape(self.grammar.wrapper_field)
        carrier = re.escape(self.grammar.carrier)
        self._carrier_destructure = re.compile(
            r"(?:const|let|var)\s*\{([^{}]*)\}\s*=\s*" + carrier + r"(?![\w$])"
        )
        self._wrapper_destructure = re.compile(
            r"(?:const|let|var)\s*\{([^{}]*)\}\s*=\s*" + wrapper + r"(?![\w$])",
            re.IGNORECASE,
        )
        self._carrier_access = re.compile(
            r"(?<![\w$.])" + carrier + r"((?:\??\.[A-Za-z_$][\w$]*)+)"
        )
        self._success_call = re.compile(
            r"(?<![\w$])" + re.escape(self.grammar.success_call) + r"\s*\("
        )
        self._raw_call = re.compile(
            r"(?<![\w$])" + re.escape(self.grammar.raw_call) + r"\s*\("
        )

    def analyze(
        self, handler: Any, chain: Optional[Sequence[Any]] = None
    ) -> HandlerAnalysis:
        source = handler_source(handler)
        chain_sources = [handler_source(item) for item in (chain if chain is not None else [handler])]
        return HandlerAnalysis(
            request_fields=self.request_fields(source),
            response_fields=self.response_fields(source),
            validators=self.detect_validators(chain_sources),
        )

    # ------------------------------------------------------------------
    # Request fields

    def request_fields(self, source: str) -> Tuple[str, ...]:
        if not source:
            return ()
        names: List[str] = []
        names.extend(self._wrapped_destructuring(source))
        for match in self._carrier_destructure.finditer(source):
            names.extend(_destructured_names(match.group(1)))
        for match in self._carrier_access.finditer(source):
            names.append(match.group(1).rsplit(".", 1)[-1])
        return self._without_wrapper(names)

    def _wrapped_destructuring(self, source: str) -> List[str]:
        wrapper = self.grammar.wrapper_field.lower()
        for match in self._carrier_destructure.finditer(source):
            bound = [name.lower() for name in _destructured_names(match.group(1))]
            if wrapper not in bound:
                continue
            deeper = self._wrapper_destructure.search(source, match.end())
            if deeper:
                return _destructured_names(deeper.group(1))
            return []
        return []

    def _without_wrapper(self, names: Iterable[str]) -> Tuple[str, ...]:
        wrapper = self.grammar.wrapper_field.lower()
        seen: List[str] = []
        for name in names:
            if not name or name.lower() == wrapper or name in seen:
                continue
            seen.append(name)
        return tuple(seen)

    # ------------------------------------------------------------------
    # Response fields

    def response_fields(self, source: str) -> Tuple[str, ...]:
        if not source:
            return ()
        for match in self._success_call.finditer(source):
            args = _call_arguments(source, match.end() - 1)
            if len(args) >= 2 and _is_object_literal(args[1]):
                return _object_keys(args[1])
        for match in self._raw_call.finditer(source):
            args = _call_arguments(source, match.end() - 1)
            if args and _is_object_literal(args[0]):
                return _object_keys(args[0])
        return ()

    # ------------------------------------------------------------------
    # Validators

    def detect_validators(self, sources: Iterable[str]) -> Tuple[str, ...]:
        found: List[str] = []
        for source in sources:
            if not source:
                continue
            for name, matches in VALIDATOR_MARKERS:
                if name not in found and matches(source):
                    found.append(name)
        return tuple(found)


def _destructured_names(body: str) -> List[str]:
    names: List[str] = []
    for entry in _split_top_level(body):
        entry = entry.strip()
        if not entry or entry.startswith("..."):
            continue
        # `{ key: alias = fallback }` binds from `key`.
        key = entry.split("=", 1)[0].split(":", 1)[0].strip()
        if _IDENTIFIER.match(key):
            names.append(key)
    return names


def _is_object_literal(argument: str) -> bool:
    text = argument.strip()
    return text.startswith("{") and text.endswith("}")


def _object_keys(literal: str) -> Tuple[str, ...]:
    keys: List[str] = []
    for entry in _split_top_level(literal.strip()[1:-1]):
        entry = entry.strip()
        if not entry or entry.startswith("..."):
            continue
        match = _OBJECT_KEY.match(entry)
        if match:
            key = match.group("key")
        elif _IDENTIFIER.match(entry):
            key = entry
        else:
            continue
        if key not in keys:
            keys.append(key)
    return tuple(keys)


def _call_arguments(source: str, open_index: int) -> List[str]:
    """Split the argument list of the call whose `(` sits at ``open_index``."""
    depth = 0
    index = open_index
    quote: Optional[str] = None
    while index < len(source):
        char = source[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
            if depth == 0:
                return _split_top_level(source[open_index + 1 : index])
        index += 1
    return []


def _split_top_level(text: str) -> List[str]:
    """Split on commas that are not nested inside brackets or string literals."""
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    start = 0
    index = 0
    while index < len(text):
        char = text[index]
        if quote:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in _QUOTES:
            quote = char
        elif char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(text[start:index])
            start = index + 1
        index += 1
    tail = text[start:]
    if tail.strip():
        parts.append(tail)
    return parts


__all__ = ["HandlerAnalyzer", "VALIDATOR_MARKERS", "handler_name", "handler_source"]
