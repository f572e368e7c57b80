"""Controls, captured checks and the per-load rule registry."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterator
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from warden.constants.dsl import ANONYMOUS_ID_PREFIX


class CheckEntry(NamedTuple):
    """One captured assertion intent.

    ``args`` always holds evaluated subjects. ``verifier`` is a deferred
    closure, an expectation object, or ``None`` for ``describe.one`` groups
    whose alternatives live in ``args``.
    """

    keyword: str
    args: list[Any]
    verifier: Any = None


@dataclass
class Rule:
    """A single control and the checks registered inside it."""

    identifier: Hashable
    title: str | None = None
    description: str | None = None
    impact: Any = None
    group_title: str | None = None
    tags: dict[str, Any] = field(default_factory=dict)
    checks: list[CheckEntry] = field(default_factory=list)
    source_file: str = ""
    source_line: int = 0
    source_code: str = ""

    def add_check(self, entry: CheckEntry) -> None:
        self.checks.append(entry)

    @property
    def is_anonymous(self) -> bool:
        """True when the identifier was synthesized from the source location."""
        return isinstance(self.identifier, str) and self.identifier.startswith(ANONYMOUS_ID_PREFIX)

    @property
    def source_location(self) -> tuple[str, int]:
        return (self.source_file, self.source_line)


class RuleRegistry:
    """Insertion-ordered mapping of identifier to :class:`Rule`.

    Registering an identifier twice returns the existing rule so later
    checks append to it.
    """

    def __init__(self) -> None:
        self._rules: dict[Hashable, Rule] = {}

    def register(self, identifier: Hashable, factory: Callable[[], Rule]) -> Rule:
        """Return the rule for *identifier*, creating it with *factory* if new."""
        existing = self._rules.get(identifier)
        if existing is not None:
            return existing
        rule = factory()
        self._rules[identifier] = rule
        return rule

    def __getitem__(self, identifier: Hashable) -> Rule:
        return self._rules[identifier]

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._rules

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def get(self, identifier: Hashable) -> Rule | None:
        return self._rules.get(identifier)

    def keys(self) -> list[Hashable]:
        return list(self._rules.keys())

    def values(self) -> list[Rule]:
        return list(self._rules.values())

    def items(self) -> list[tuple[Hashable, Rule]]:
        return list(self._rules.items())
