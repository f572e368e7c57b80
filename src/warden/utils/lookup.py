"""Key-path access over generic structured values."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def lookup(value: Any, path: Sequence[Any]) -> Any:
    """Walk *path* through nested mappings and lists.

    When the current value is a list, the remaining path is applied to every
    element. Mapping keys are matched by their string form first, then as
    given. Anything else, or an exhausted path, yields ``None``.
    """
    if not path:
        return None
    key, rest = path[0], path[1:]
    if isinstance(value, list):
        found: Any = [lookup(item, [key]) for item in value]
    elif isinstance(value, Mapping):
        found = value.get(str(key), value.get(key))
    else:
        return None
    if not rest:
        return found
    return lookup(found, rest)


def dotted_path(key: str) -> list[str]:
    """Split ``"a.b.c"`` into ``["a", "b", "c"]``."""
    return [part for part in key.split(".") if part]
