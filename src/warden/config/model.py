"""Config data model for Warden."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from warden.constants.config import DEFAULT_ARCHIVE_FORMAT, DEFAULT_MOCK_OS, DEFAULT_WORKERS
from warden.constants.profile import DEFAULT_CONTROL_SUFFIXES
from warden.types.common import ArchiveFormat


@dataclass(frozen=True)
class WardenConfig:
    """Resolved tool config."""

    control_suffixes: tuple[str, ...] = DEFAULT_CONTROL_SUFFIXES
    workers: int = DEFAULT_WORKERS
    timeout_seconds: float | None = None
    archive_format: ArchiveFormat = DEFAULT_ARCHIVE_FORMAT  # type: ignore[assignment]
    mock_os: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_MOCK_OS))

    @property
    def zip_archives(self) -> bool:
        return self.archive_format == "zip"
