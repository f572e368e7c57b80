"""Config loading and normalization for Warden."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any

import yaml

from warden.config.model import WardenConfig
from warden.constants.config import (
    ALLOWED_CONFIG_KEYS,
    CONFIG_FILENAME,
    DEFAULT_ARCHIVE_FORMAT,
    DEFAULT_MOCK_OS,
    DEFAULT_WORKERS,
    VALID_ARCHIVE_FORMATS,
)
from warden.constants.profile import DEFAULT_CONTROL_SUFFIXES
from warden.exceptions import ConfigError


def load_config(root: Path, config_path: Path | None = None) -> WardenConfig:
    """Load and validate tool config from ``warden.yaml`` or an explicit path."""
    root = root.resolve()
    path = config_path.resolve() if config_path else (root / CONFIG_FILENAME)
    if not path.exists():
        if config_path is not None:
            raise ConfigError(f"Config file not found: {path}")
        return WardenConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML config file at {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file at {path} must be a YAML mapping")

    unknown = sorted(str(key) for key in raw if key not in ALLOWED_CONFIG_KEYS)
    if unknown:
        hint = _suggest_key(unknown[0], ALLOWED_CONFIG_KEYS)
        raise ConfigError(f"Unknown config key `{unknown[0]}` in {path}" + (f"; {hint}" if hint else ""))

    suffixes = _ensure_string_list(raw.get("control_suffixes", list(DEFAULT_CONTROL_SUFFIXES)), "control_suffixes")
    if not suffixes:
        raise ConfigError("control_suffixes must not be empty")
    if not all(suffix.startswith(".") for suffix in suffixes):
        raise ConfigError("control_suffixes entries must start with '.'")

    workers = raw.get("workers", DEFAULT_WORKERS)
    if isinstance(workers, bool) or not isinstance(workers, int) or workers <= 0:
        raise ConfigError("workers must be a positive integer")

    timeout_seconds = raw.get("timeout_seconds")
    if timeout_seconds is not None and (
        isinstance(timeout_seconds, bool) or not isinstance(timeout_seconds, (int, float)) or timeout_seconds <= 0
    ):
        raise ConfigError("timeout_seconds must be a positive number")

    archive_format = raw.get("archive_format", DEFAULT_ARCHIVE_FORMAT)
    if not isinstance(archive_format, str) or archive_format not in VALID_ARCHIVE_FORMATS:
        raise ConfigError(f"archive_format must be one of {sorted(VALID_ARCHIVE_FORMATS)}, got {archive_format!r}")

    mock_os = raw.get("mock_os", {})
    if mock_os is None:
        mock_os = {}
    if not isinstance(mock_os, dict):
        raise ConfigError("mock_os must be a mapping")

    return WardenConfig(
        control_suffixes=tuple(suffixes),
        workers=workers,
        timeout_seconds=None if timeout_seconds is None else float(timeout_seconds),
        archive_format=archive_format,  # type: ignore[arg-type]
        mock_os={**dict(DEFAULT_MOCK_OS), **{str(key): value for key, value in mock_os.items()}},
    )


def _ensure_string_list(value: Any, key_name: str) -> list[str]:
    """Coerce a value to a list of strings, raising ConfigError on type mismatch."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{key_name} must be a list of strings")
    return list(value)


def _suggest_key(unknown: str, allowed: frozenset[str]) -> str:
    """Return a 'did you mean ...' hint for a close key match, or empty string."""
    matches = difflib.get_close_matches(unknown, sorted(allowed), n=1, cutoff=0.6)
    if matches:
        return f"did you mean `{matches[0]}`?"
    return ""
