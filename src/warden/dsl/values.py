"""Runtime values of the control-language interpreter."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from warden.constants.dsl import EXPECTATION_METHODS, MATCHER_COMPARISON_OPERATORS
from warden.exceptions.dsl import DslEvaluationError

if TYPE_CHECKING:
    from warden.dsl.interpreter import Interpreter
    from warden.dsl.nodes import Node


class Symbol(str):
    """An interned name such as ``:family``; compares equal to its text."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f":{str.__str__(self)}"


@dataclass(eq=False)
class Closure:
    """A captured, unexecuted block together with its defining scope."""

    params: tuple[str, ...]
    body: tuple[Node, ...]
    env: Environment
    line: int
    source: str = ""

    def __repr__(self) -> str:
        return f"<Closure line={self.line} params={list(self.params)}>"


@dataclass(eq=False)
class Matcher:
    """A deferred matcher such as ``eq 'ubuntu'`` or ``be > 3``."""

    name: str
    args: list[Any] = field(default_factory=list)
    block: Closure | None = None
    operator: str | None = None

    def compare(self, operator: str, expected: Any) -> Matcher:
        """Return a comparison matcher, as in ``be >= 2``."""
        if operator not in MATCHER_COMPARISON_OPERATORS:
            raise DslEvaluationError(f"unsupported matcher operator {operator!r}")
        return Matcher(name=self.name, args=[expected], block=self.block, operator=operator)

    def __repr__(self) -> str:
        if self.operator is not None:
            return f"<Matcher {self.name} {self.operator} {inspect_value(self.args[0])}>"
        args = ", ".join(inspect_value(arg) for arg in self.args)
        return f"<Matcher {self.name}({args})>"


class Environment:
    """Lexical variable scope; assignment updates the nearest existing binding."""

    def __init__(self, variables: Mapping[str, Any] | None = None, parent: Environment | None = None) -> None:
        self.variables: dict[str, Any] = dict(variables or {})
        self.parent = parent

    def child(self, variables: Mapping[str, Any] | None = None) -> Environment:
        return Environment(variables, parent=self)

    def resolve(self, name: str) -> Environment | None:
        scope: Environment | None = self
        while scope is not None:
            if name in scope.variables:
                return scope
            scope = scope.parent
        return None

    def lookup(self, name: str) -> Any:
        scope = self.resolve(name)
        if scope is None:
            raise KeyError(name)
        return scope.variables[name]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.resolve(name) is not None

    def assign(self, name: str, value: Any) -> None:
        scope = self.resolve(name) or self
        scope.variables[name] = value


@dataclass
class CallSite:
    """Arguments of one call, as seen by a keyword or resource function."""

    name: str
    args: list[Any]
    block: Closure | None
    line: int
    interpreter: Interpreter
    node: Node | None = None


class DslObject:
    """Base class for host objects with method dispatch inside the language."""

    type_name = "object"

    def call(self, name: str, site: CallSite) -> Any:
        raise DslEvaluationError(f"undefined method `{name}' for {self.type_name}")

    def index(self, key: Any) -> Any:
        raise DslEvaluationError(f"{self.type_name} does not support indexing")


class Expectation(DslObject):
    """Result of ``expect(subject)``; records the matcher applied to it."""

    type_name = "expectation"

    def __init__(self, subject: Any) -> None:
        self.subject = subject
        self.matcher: Matcher | None = None
        self.negated = False

    def call(self, name: str, site: CallSite) -> Any:
        if name not in EXPECTATION_METHODS:
            raise DslEvaluationError(f"undefined method `{name}' for expectation of {inspect_value(self.subject)}")
        if len(site.args) != 1:
            raise DslEvaluationError(f"`{name}' expects exactly one matcher, got {len(site.args)}")
        self.matcher = site.args[0]
        self.negated = name != "to"
        return self

    def __repr__(self) -> str:
        verb = "not_to" if self.negated else "to"
        return f"<Expectation {inspect_value(self.subject)} {verb} {self.matcher!r}>"


def display(value: Any) -> str:
    """Render a value the way ``puts`` and interpolation do."""
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, Symbol):
        return str.__str__(value)
    if isinstance(value, re.Pattern):
        return value.pattern
    if isinstance(value, (list, dict)):
        return inspect_value(value)
    return str(value)


def inspect_value(value: Any) -> str:
    """Render a value as source-like text."""
    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, Symbol):
        return repr(value)
    if isinstance(value, str):
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    if isinstance(value, list):
        return "[" + ", ".join(inspect_value(item) for item in value) + "]"
    if isinstance(value, dict):
        pairs = (f"{inspect_value(key)}=>{inspect_value(item)}" for key, item in value.items())
        return "{" + ", ".join(pairs) + "}"
    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/"
    return repr(value)


def truthy(value: Any) -> bool:
    """Only ``nil`` and ``false`` are false."""
    return value is not None and value is not False


def compile_pattern(value: Any) -> re.Pattern[str]:
    if isinstance(value, re.Pattern):
        return value
    return re.compile(str(value))
