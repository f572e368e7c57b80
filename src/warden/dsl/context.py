"""Rule context: evaluates control source and captures rules and checks.

``describe`` and ``expect`` subjects are evaluated immediately, while their
blocks are kept as unexecuted closures. ``describe.one`` runs its block
right away so its alternatives can be recorded as child checks.
"""

from __future__ import annotations

import hashlib
import itertools
import logging
import sys
import threading
from collections.abc import Callable, Hashable, Mapping
from typing import Any, TextIO

from warden.constants.dsl import (
    ANONYMOUS_DIGEST_LENGTH,
    ANONYMOUS_ID_TEMPLATE,
    DEFAULT_SOURCE_FILE,
    DEFAULT_SOURCE_LINE,
    DESCRIBE_KEYWORD,
    DESCRIBE_ONE_KEYWORD,
    EXPECT_KEYWORD,
    MATCHER_NAMES,
    RULE_KEYWORDS,
)
from warden.dsl.interpreter import Interpreter
from warden.dsl.parser import parse_program
from warden.dsl.values import CallSite, DslObject, Environment, Expectation, Matcher, display
from warden.exceptions.dsl import DslEvaluationError
from warden.model.rule import CheckEntry, Rule, RuleRegistry
from warden.resources import MockBackend, build_resources

logger = logging.getLogger(__name__)

type Sink = Rule | list[CheckEntry]

_TOKENS = itertools.count()
_TOKEN_LOCK = threading.Lock()


def _next_token() -> int:
    with _TOKEN_LOCK:
        return next(_TOKENS)


def anonymous_digest(source_code: str) -> str:
    """Fingerprint *source_code* with a process-wide uniqueness token."""
    payload = f"{source_code}\0{_next_token()}".encode()
    return hashlib.sha256(payload).hexdigest()[:ANONYMOUS_DIGEST_LENGTH]


class DescribeHandle(DslObject):
    """Return value of ``describe``; only ``.one`` is defined on it."""

    type_name = "describe"

    def __init__(self, context: RuleContext, target: Sink) -> None:
        self._context = context
        self._target = target

    def call(self, name: str, site: CallSite) -> Any:
        if name != "one":
            raise DslEvaluationError(f"undefined method `{name}' for describe")
        self._context.describe_one(self._target, site)
        return None


class RuleContext:
    """Evaluate control source against a rule registry.

    One context serves one file of a profile. Library variables are passed
    in through ``variables`` and become top-level locals of every load.
    ``checkpoint`` is called before every statement; raising from it aborts
    the load.
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        *,
        resources: Mapping[str, Callable[..., Any]] | None = None,
        variables: Mapping[str, Any] | None = None,
        output: TextIO | None = None,
        checkpoint: Callable[[], None] | None = None,
    ) -> None:
        self._registry = registry if registry is not None else RuleRegistry()
        self._resources = dict(resources) if resources is not None else build_resources(MockBackend())
        self._env = Environment(variables)
        self._output = output
        self._checkpoint = checkpoint
        self._sinks: list[Sink] = []
        self._rule_stack: list[Rule] = []
        self._group_title: str | None = None
        self._captured: list[CheckEntry] = []
        self._functions = self._build_functions()

    @property
    def rules(self) -> RuleRegistry:
        return self._registry

    @property
    def variables(self) -> dict[str, Any]:
        """Top-level locals defined so far, e.g. by library files."""
        return dict(self._env.variables)

    @property
    def group_title(self) -> str | None:
        return self._group_title

    def load(
        self,
        source: str,
        file: str = DEFAULT_SOURCE_FILE,
        line: int = DEFAULT_SOURCE_LINE,
    ) -> list[CheckEntry] | None:
        """Evaluate *source* and return checks registered outside any rule block.

        Returns ``None`` when the source defines nothing at top level.
        """
        program = parse_program(source, file=file, line=line)
        if not program.body:
            return None
        self._captured = []
        interpreter = Interpreter(file=file, functions=self._functions, source=source, checkpoint=self._checkpoint)
        interpreter.execute(program, self._env)
        logger.debug("Loaded %s: %d rule(s) registered so far", file, len(self._registry))
        return list(self._captured) or None

    # keyword implementations

    def _build_functions(self) -> dict[str, Callable[[CallSite], Any]]:
        functions: dict[str, Callable[[CallSite], Any]] = {}
        for name, provider in self._resources.items():
            functions[name] = _resource_function(provider)
        for name in MATCHER_NAMES:
            functions[name] = _matcher_function(name)
        for name in RULE_KEYWORDS:
            functions[name] = self._rule
        functions.update(
            {
                DESCRIBE_KEYWORD: self._describe,
                EXPECT_KEYWORD: self._expect,
                "title": self._title,
                "desc": self._desc,
                "impact": self._impact,
                "tag": self._tag,
                "print": self._print,
                "puts": self._puts,
            }
        )
        return functions

    def _rule(self, site: CallSite) -> None:
        if len(site.args) != 1:
            raise DslEvaluationError(f"`{site.name}' expects exactly one identifier, got {len(site.args)}")
        identifier = site.args[0]
        if not isinstance(identifier, Hashable):
            raise DslEvaluationError(f"control identifier must be hashable, got {type(identifier).__name__}")
        interpreter = site.interpreter
        source_code = interpreter.source_of(site.node) if site.node is not None else ""
        rule = self._registry.register(
            identifier,
            lambda: Rule(
                identifier=identifier,
                group_title=self._group_title,
                source_file=interpreter.file,
                source_line=site.line,
                source_code=source_code,
            ),
        )
        if site.block is None:
            return None
        self._sinks.append(rule)
        self._rule_stack.append(rule)
        try:
            interpreter.invoke(site.block)
        finally:
            self._rule_stack.pop()
            self._sinks.pop()
        return None

    def _describe(self, site: CallSite) -> DescribeHandle:
        entry = None
        if site.args or site.block is not None:
            entry = CheckEntry(DESCRIBE_KEYWORD, list(site.args), site.block)
        target = self._current_sink(site)
        if entry is not None:
            self._register(target, entry)
        return DescribeHandle(self, target)

    def describe_one(self, target: Sink, site: CallSite) -> None:
        """Record the alternatives declared in a ``describe.one`` block."""
        if site.block is None:
            return
        children: list[CheckEntry] = []
        self._sinks.append(children)
        try:
            site.interpreter.invoke(site.block)
        finally:
            self._sinks.pop()
        self._register(target, CheckEntry(DESCRIBE_ONE_KEYWORD, children, None))

    def _expect(self, site: CallSite) -> Expectation:
        if len(site.args) != 1:
            raise DslEvaluationError(f"wrong number of arguments for `expect' (given {len(site.args)}, expected 1)")
        subject = site.args[0]
        expectation = Expectation(subject)
        self._register(self._current_sink(site), CheckEntry(EXPECT_KEYWORD, [subject], expectation))
        return expectation

    def _title(self, site: CallSite) -> None:
        value = _single_argument(site)
        rule = self._current_rule()
        if rule is None:
            self._group_title = None if value is None else display(value)
        else:
            rule.title = value

    def _desc(self, site: CallSite) -> None:
        if not site.args:
            raise DslEvaluationError("`desc' expects a description")
        self._require_rule(site).description = site.args[-1]

    def _impact(self, site: CallSite) -> None:
        self._require_rule(site).impact = _single_argument(site)

    def _tag(self, site: CallSite) -> None:
        rule = self._require_rule(site)
        for arg in site.args:
            if isinstance(arg, Mapping):
                rule.tags.update({display(key): value for key, value in arg.items()})
            else:
                rule.tags[display(arg)] = None

    def _print(self, site: CallSite) -> None:
        self._stream().write("".join(display(arg) for arg in site.args))

    def _puts(self, site: CallSite) -> None:
        stream = self._stream()
        if not site.args:
            stream.write("\n")
            return
        for arg in site.args:
            for item in arg if isinstance(arg, list) else [arg]:
                text = display(item)
                stream.write(text if text.endswith("\n") else text + "\n")

    # helpers

    def _stream(self) -> TextIO:
        return self._output if self._output is not None else sys.stdout

    def _current_rule(self) -> Rule | None:
        return self._rule_stack[-1] if self._rule_stack else None

    def _require_rule(self, site: CallSite) -> Rule:
        rule = self._current_rule()
        if rule is None:
            raise DslEvaluationError(f"`{site.name}' can only be used inside a control")
        return rule

    def _current_sink(self, site: CallSite) -> Sink:
        if self._sinks:
            return self._sinks[-1]
        return self._anonymous_rule(site)

    def _anonymous_rule(self, site: CallSite) -> Rule:
        interpreter = site.interpreter
        source_code = interpreter.source_of(site.node) if site.node is not None else ""
        identifier = ANONYMOUS_ID_TEMPLATE.format(
            file=interpreter.file,
            line=site.line,
            digest=anonymous_digest(source_code),
        )
        return self._registry.register(
            identifier,
            lambda: Rule(
                identifier=identifier,
                group_title=self._group_title,
                source_file=interpreter.file,
                source_line=site.line,
                source_code=source_code,
            ),
        )

    def _register(self, target: Sink, entry: CheckEntry) -> None:
        if isinstance(target, Rule):
            target.add_check(entry)
            if not self._rule_stack:
                self._captured.append(entry)
        else:
            target.append(entry)


def _single_argument(site: CallSite) -> Any:
    if len(site.args) != 1:
        raise DslEvaluationError(f"`{site.name}' expects exactly one argument, got {len(site.args)}")
    return site.args[0]


def _resource_function(provider: Callable[..., Any]) -> Callable[[CallSite], Any]:
    def call(site: CallSite) -> Any:
        return provider(*site.args)

    return call


def _matcher_function(name: str) -> Callable[[CallSite], Matcher]:
    def call(site: CallSite) -> Matcher:
        return Matcher(name=name, args=list(site.args), block=site.block)

    return call

