"""Deterministic example values for inferred payload fields."""

from __future__ import annotations

import re
from typing import Callable, Dict, Iterable, List, Tuple, Union

ExampleValue = Union[int, bool, str]

DEFAULT_TIMESTAMP = "2024-01-01T00:00:00.000Z"

_TEMPORAL_FIELDS = (
    "date",
    "createdAt",
    "updatedAt",
    "deletedAt",
    "lastLoginAt",
    "expiresAt",
    "tokenExpiry",
    "resetTokenExpiry",
)
# Whole-word match so names that merely contain "at" (reqData, formatted) are not dates.
_TEMPORAL_PATTERN = re.compile(
    r"(?:^|\b)(?:" + "|".join(_TEMPORAL_FIELDS) + r")(?:\b|$)", re.IGNORECASE
)

_Rule = Tuple[Callable[[str], bool], Callable[[str, str], ExampleValue]]

_RULES: List[_Rule] = [
    (lambda name: bool(re.search(r"id$", name, re.IGNORECASE)), lambda name, ts: 1),
    (
        lambda name: bool(re.search(r"count|age|price|amount|total", name, re.IGNORECASE)),
        lambda name, ts: 123,
    ),
    (
        lambda name: "email" in name.lower(),
        lambda name, ts: "user@example.com",
    ),
    (
        lambda name: bool(re.search(r"token|access|refresh", name, re.IGNORECASE)),
        lambda name, ts: "eyJhbGciOi...",
    ),
    (lambda name: bool(_TEMPORAL_PATTERN.search(name)), lambda name, ts: ts),
    (
        lambda name: bool(re.search(r"is|has|enabled|active", name, re.IGNORECASE)),
        lambda name, ts: True,
    ),
]


def example_for(name: str, *, timestamp: str = DEFAULT_TIMESTAMP) -> ExampleValue:
    """Return the example value for a single field name; first matching rule wins."""
    for matches, produce in _RULES:
        if matches(name):
            return produce(name, timestamp)
    return f"string_{name}"


def examples_from_fields(
    names: Iterable[str],
    *,
    wrapper_field: str = "reqData",
    timestamp: str = DEFAULT_TIMESTAMP,
) -> Dict[str, ExampleValue]:
    """Build an example object keyed by field name, preserving input order."""
    wrapper = wrapper_field.lower()
    example: Dict[str, ExampleValue] = {}
    for name in names:
        if name.lower() == wrapper:
            continue
        example[name] = example_for(name, timestamp=timestamp)
    return example


__all__ = ["DEFAULT_TIMESTAMP", "ExampleValue", "example_for", "examples_from_fields"]
