"""Backend contract for resource providers and the inspection mock."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from warden.constants.config import DEFAULT_MOCK_OS


@dataclass(frozen=True)
class FileInfo:
    """Stat-like facts about a path on the target."""

    type: str
    size: int = 0
    mode: int | None = None
    owner: str | None = None


@dataclass(frozen=True)
class CommandResult:
    stdout: str = ""
    stderr: str = ""
    exit_status: int = 0


class Backend(Protocol):
    """What resource providers need from a target system."""

    def os_info(self) -> Mapping[str, Any]: ...

    def read_file(self, path: str) -> str | None: ...

    def file_info(self, path: str) -> FileInfo | None: ...

    def run_command(self, command: str) -> CommandResult: ...


@dataclass
class MockBackend:
    """In-memory target used when inspecting profiles without a real host.

    Unknown files do not exist and unknown commands print nothing.
    """

    os: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_MOCK_OS))
    files: dict[str, str] = field(default_factory=dict)
    commands: dict[str, CommandResult] = field(default_factory=dict)

    def os_info(self) -> Mapping[str, Any]:
        return dict(self.os)

    def read_file(self, path: str) -> str | None:
        return self.files.get(path)

    def file_info(self, path: str) -> FileInfo | None:
        content = self.files.get(path)
        if content is None:
            return None
        return FileInfo(type="file", size=len(content.encode("utf-8")))

    def run_command(self, command: str) -> CommandResult:
        return self.commands.get(command, CommandResult())
