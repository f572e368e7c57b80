"""Profile metadata parsing and validation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from fnmatch import fnmatch
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from warden.constants.metadata import (
    KNOWN_SUPPORT_KEYS,
    METADATA_SCHEMA,
    RECOMMENDED_METADATA_FIELDS,
    REQUIRED_METADATA_FIELDS,
)
from warden.resources.providers import family_matches

logger = logging.getLogger(__name__)

_VALIDATOR = Draft202012Validator(METADATA_SCHEMA)


class Metadata:
    """Parsed ``profile.yml`` together with anything that went wrong reading it."""

    def __init__(self, ref: str, params: Mapping[str, Any] | None = None, *, load_errors: list[str] | None = None) -> None:
        self.ref = ref
        self.params: dict[str, Any] = dict(params or {})
        self._load_errors = list(load_errors or [])

    @classmethod
    def from_yaml(cls, ref: str, text: str) -> Metadata:
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            logger.debug("Cannot parse %s: %s", ref, exc)
            return cls(ref, load_errors=[f"Invalid YAML in {ref}: {exc}"])
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            return cls(ref, load_errors=[f"Profile metadata in {ref} must be a mapping"])
        return cls(ref, raw)

    @property
    def supports(self) -> list[Any]:
        value = self.params.get("supports") or []
        return value if isinstance(value, list) else [value]

    def valid(self) -> tuple[list[str], list[str]]:
        """Return ``(errors, warnings)`` for this metadata."""
        errors = list(self._load_errors)
        warnings: list[str] = []
        for error in sorted(_VALIDATOR.iter_errors(self.params), key=lambda err: list(err.path)):
            location = ".".join(str(part) for part in error.path) or "<root>"
            errors.append(f"Invalid profile metadata in {self.ref}: {location}: {error.message}")
        for name in REQUIRED_METADATA_FIELDS:
            if _blank(self.params.get(name)):
                errors.append(f"Missing profile {name} in {self.ref}")
        for name in RECOMMENDED_METADATA_FIELDS:
            if _blank(self.params.get(name)):
                warnings.append(f"Missing profile {name} in {self.ref}")
        return errors, warnings

    @property
    def unsupported(self) -> list[str]:
        """``supports`` entries that name no known platform key."""
        entries = []
        for entry in self.supports:
            if not isinstance(entry, Mapping) or not set(map(str, entry)) <= KNOWN_SUPPORT_KEYS:
                entries.append(_render_entry(entry))
        return entries

    def supports_platform(self, os_info: Mapping[str, Any]) -> bool:
        """True when any ``supports`` entry matches *os_info*, or none are declared."""
        entries = [entry for entry in self.supports if isinstance(entry, Mapping)]
        if not entries:
            return True
        return any(_entry_matches(entry, os_info) for entry in entries)

    def finalize(self, profile_id: str | None) -> Metadata:
        if profile_id is not None:
            self.params["name"] = profile_id
        return self


def _blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def _render_entry(entry: Any) -> str:
    if isinstance(entry, Mapping):
        return ", ".join(f"{key}: {value}" for key, value in entry.items())
    return str(entry)


def _entry_matches(entry: Mapping[str, Any], os_info: Mapping[str, Any]) -> bool:
    family = str(os_info.get("family", ""))
    name = str(os_info.get("name", ""))
    release = str(os_info.get("release", ""))
    for key, wanted in entry.items():
        wanted = str(wanted)
        match key:
            case "os-family":
                if not family_matches(family, wanted):
                    return False
            case "os-name":
                if not fnmatch(name, wanted):
                    return False
            case "release":
                if not fnmatch(release, wanted):
                    return False
            case "platform":
                if not (family_matches(family, wanted) or fnmatch(name, wanted)):
                    return False
    return True
