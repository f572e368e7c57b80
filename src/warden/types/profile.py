"""Typed views over loaded profile parameters."""

from __future__ import annotations

from typing import Any, TypedDict

from warden.model.rule import CheckEntry


class RuleView(TypedDict):
    """Snapshot of one control as seen by the structural checker."""

    title: str | None
    desc: str | None
    impact: Any
    tags: dict[str, Any]
    checks: list[CheckEntry]
    source_code: str
    source_location: tuple[str, int]
    group_title: str | None


class RuleInfo(TypedDict):
    """Reporting view of one control: no checks, impact clamped."""

    title: str | None
    desc: str | None
    impact: float
    tags: dict[str, Any]
    source_code: str
    source_location: tuple[str, int]
    group_title: str | None


class RuleGroupInfo(TypedDict):
    """Controls of one file together with the file's group title."""

    title: str
    rules: dict[Any, RuleInfo]
