"""Validation report produced by a profile check."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from warden.types.common import JsonObject


@dataclass(frozen=True)
class Finding:
    """One structural error or warning with file/line/control context."""

    file: str | None
    line: int | None
    column: int | None
    control_id: Any
    message: str

    def to_dict(self) -> JsonObject:
        control_id = self.control_id
        if control_id is not None and not isinstance(control_id, str):
            control_id = str(control_id)
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "control_id": control_id,
            "msg": self.message,
        }


@dataclass(frozen=True)
class ReportSummary:
    """Headline numbers of a profile check."""

    valid: bool
    timestamp: str
    location: str | None
    profile_name: str | None
    controls: int

    def to_dict(self) -> JsonObject:
        return {
            "valid": self.valid,
            "timestamp": self.timestamp,
            "location": self.location,
            "profile": self.profile_name,
            "controls": self.controls,
        }


@dataclass(frozen=True)
class ValidationReport:
    """Summary plus every error and warning found, in discovery order."""

    summary: ReportSummary
    errors: tuple[Finding, ...] = ()
    warnings: tuple[Finding, ...] = ()

    @property
    def valid(self) -> bool:
        return self.summary.valid

    def to_dict(self) -> JsonObject:
        return {
            "summary": self.summary.to_dict(),
            "errors": [finding.to_dict() for finding in self.errors],
            "warnings": [finding.to_dict() for finding in self.warnings],
        }
