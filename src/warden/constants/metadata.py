"""Schema and field sets for profile metadata."""

from __future__ import annotations

from typing import Any

REQUIRED_METADATA_FIELDS: tuple[str, ...] = ("name", "version")
RECOMMENDED_METADATA_FIELDS: tuple[str, ...] = ("title", "summary", "maintainer", "copyright")

KNOWN_SUPPORT_KEYS: frozenset[str] = frozenset({"os-family", "os-name", "platform", "release"})

METADATA_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "title": {"type": "string"},
        "version": {"type": ["string", "number"]},
        "summary": {"type": "string"},
        "maintainer": {"type": "string"},
        "copyright": {"type": "string"},
        "copyright_email": {"type": "string"},
        "license": {"type": "string"},
        "supports": {
            "type": "array",
            "items": {"type": "object"},
        },
        "depends": {"type": "array"},
    },
}
