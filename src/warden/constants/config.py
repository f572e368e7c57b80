"""Configuration file names and defaults."""

from __future__ import annotations

CONFIG_FILENAME: str = "warden.yaml"

DEFAULT_WORKERS: int = 1
DEFAULT_ARCHIVE_FORMAT: str = "tar.gz"
VALID_ARCHIVE_FORMATS: frozenset[str] = frozenset({"tar.gz", "zip"})

DEFAULT_MOCK_OS: tuple[tuple[str, str], ...] = (
    ("family", "ubuntu"),
    ("name", "ubuntu"),
    ("release", "22.04"),
    ("arch", "x86_64"),
)

ALLOWED_CONFIG_KEYS: frozenset[str] = frozenset(
    {"control_suffixes", "workers", "timeout_seconds", "archive_format", "mock_os"}
)
