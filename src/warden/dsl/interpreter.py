"""Tree-walking evaluator for parsed control files."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from warden.dsl.builtins import NOT_FOUND, call_builtin
from warden.dsl.nodes import (
    ArrayLit,
    Assign,
    BinOp,
    Block,
    Call,
    HashLit,
    If,
    Index,
    Literal,
    Name,
    Node,
    Program,
    StringInterp,
    UnaryOp,
)
from warden.dsl.values import CallSite, Closure, DslObject, Environment, Matcher, display, inspect_value, truthy
from warden.exceptions.base import WardenError
from warden.exceptions.dsl import DslError, DslEvaluationError, DslNameError

type Function = Callable[[CallSite], Any]


class Interpreter:
    """Evaluate a :class:`Program` against a set of keyword functions.

    Local variables shadow functions. Every top-level or nested statement
    that fails is re-raised as a :class:`DslEvaluationError` carrying the
    file and the line of the innermost failing statement.

    The optional ``checkpoint`` runs before each statement and stops
    evaluation by raising.
    """

    def __init__(
        self,
        *,
        file: str,
        functions: Mapping[str, Function],
        source: str = "",
        checkpoint: Callable[[], None] | None = None,
    ) -> None:
        self.file = file
        self.functions = functions
        self.source = source
        self.checkpoint = checkpoint

    def execute(self, program: Program, env: Environment) -> Any:
        self.source = program.source
        return self._body(program.body, env)

    def invoke(self, closure: Closure, *args: Any) -> Any:
        """Run a captured block with positional arguments."""
        params = closure.params
        if len(params) > 1 and len(args) == 1 and isinstance(args[0], list):
            args = tuple(args[0])
        bound = {name: (args[index] if index < len(args) else None) for index, name in enumerate(params)}
        return self._body(closure.body, closure.env.child(bound))

    def source_of(self, node: Node) -> str:
        return self.source[node.start : node.end]

    # statements

    def _body(self, body: tuple[Node, ...], env: Environment) -> Any:
        result = None
        for node in body:
            result = self._statement(node, env)
        return result

    def _statement(self, node: Node, env: Environment) -> Any:
        if self.checkpoint is not None:
            self.checkpoint()
        try:
            return self.evaluate(node, env)
        except DslError as exc:
            if exc.file is not None:
                raise
            raise type(exc)(exc.message, file=self.file, line=node.line) from exc
        except WardenError:
            raise
        except Exception as exc:
            raise DslEvaluationError(f"{type(exc).__name__}: {exc}", file=self.file, line=node.line) from exc

    # expressions

    def evaluate(self, node: Node, env: Environment) -> Any:
        match node:
            case Literal(value=value):
                return value
            case StringInterp(parts=parts):
                return "".join(part if isinstance(part, str) else display(self.evaluate(part, env)) for part in parts)
            case ArrayLit(items=items):
                return [self.evaluate(item, env) for item in items]
            case HashLit(pairs=pairs):
                return {self.evaluate(key, env): self.evaluate(value, env) for key, value in pairs}
            case Name(name=name):
                return self._name(node, name, env)
            case Call():
                return self._call(node, env)
            case Index(receiver=receiver, key=key):
                return self.index(self.evaluate(receiver, env), self.evaluate(key, env))
            case Assign(name=name, value=value):
                result = self.evaluate(value, env)
                env.assign(name, result)
                return result
            case If(condition=condition, then_body=then_body, else_body=else_body):
                if truthy(self.evaluate(condition, env)):
                    return self._body(then_body, env)
                return self._body(else_body, env)
            case BinOp():
                return self._binary(node, env)
            case UnaryOp(op=op, operand=operand):
                value = self.evaluate(operand, env)
                if op == "!":
                    return not truthy(value)
                return -value
        raise DslEvaluationError(f"cannot evaluate {type(node).__name__}")

    def _name(self, node: Name, name: str, env: Environment) -> Any:
        if name in env:
            return env.lookup(name)
        function = self.functions.get(name)
        if function is None:
            raise DslNameError(f"undefined local variable or method `{name}'")
        return function(CallSite(name=name, args=[], block=None, line=node.line, interpreter=self, node=node))

    def _call(self, node: Call, env: Environment) -> Any:
        receiver = None if node.receiver is None else self.evaluate(node.receiver, env)
        args = [self.evaluate(arg, env) for arg in node.args]
        block = self._closure(node.block, env)
        if node.receiver is None:
            function = self.functions.get(node.name)
            if function is None:
                raise DslNameError(f"undefined method `{node.name}'")
            return function(CallSite(name=node.name, args=args, block=block, line=node.line, interpreter=self, node=node))
        return self.send(receiver, node.name, args, block, node)

    def _closure(self, block: Block | None, env: Environment) -> Closure | None:
        if block is None:
            return None
        return Closure(params=block.params, body=block.body, env=env, line=block.line, source=self.source_of(block))

    def send(self, receiver: Any, name: str, args: list[Any], block: Closure | None, node: Node | None = None) -> Any:
        """Call method *name* on *receiver*."""
        if isinstance(receiver, DslObject):
            line = node.line if node is not None else 0
            return receiver.call(name, CallSite(name=name, args=args, block=block, line=line, interpreter=self, node=node))
        result = call_builtin(self, receiver, name, args, block)
        if result is not NOT_FOUND:
            return result
        if receiver is not None and not isinstance(receiver, (str, int, float, list, dict, Matcher)):
            attribute = _host_attribute(receiver, name)
            if attribute is not NOT_FOUND:
                return attribute(*args) if callable(attribute) else attribute
        raise DslEvaluationError(f"undefined method `{name}' for {inspect_value(receiver)}")

    def index(self, receiver: Any, key: Any) -> Any:
        if isinstance(receiver, DslObject):
            return receiver.index(key)
        if isinstance(receiver, Mapping):
            if key in receiver:
                return receiver[key]
            return receiver.get(str(key))
        if isinstance(receiver, (list, str)):
            if not isinstance(key, int) or isinstance(key, bool):
                raise DslEvaluationError(f"no implicit conversion of {inspect_value(key)} into Integer")
            if -len(receiver) <= key < len(receiver):
                return receiver[key]
            return None
        raise DslEvaluationError(f"undefined method `[]' for {inspect_value(receiver)}")

    def _binary(self, node: BinOp, env: Environment) -> Any:
        op = node.op
        left = self.evaluate(node.left, env)
        if op == "&&":
            return self.evaluate(node.right, env) if truthy(left) else left
        if op == "||":
            return left if truthy(left) else self.evaluate(node.right, env)
        right = self.evaluate(node.right, env)
        if isinstance(left, Matcher):
            return left.compare(op, right)
        if op == "==":
            return _equal(left, right)
        if op == "!=":
            return not _equal(left, right)
        if op == "..":
            if not all(isinstance(bound, int) and not isinstance(bound, bool) for bound in (left, right)):
                raise DslEvaluationError("range bounds must be integers")
            return list(range(left, right + 1))
        try:
            match op:
                case "+":
                    return left + right
                case "-":
                    return left - right
                case "*":
                    return left * right
                case "/":
                    if isinstance(left, int) and isinstance(right, int):
                        return left // right
                    return left / right
                case "%":
                    return left % right
                case "<":
                    return left < right
                case ">":
                    return left > right
                case "<=":
                    return left <= right
                case ">=":
                    return left >= right
        except ZeroDivisionError as exc:
            raise DslEvaluationError("divided by 0") from exc
        except TypeError as exc:
            raise DslEvaluationError(
                f"undefined operation {inspect_value(left)} {op} {inspect_value(right)}"
            ) from exc
        raise DslEvaluationError(f"unknown operator {op!r}")


def _equal(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return left is right
    return left == right


def _host_attribute(receiver: Any, name: str) -> Any:
    candidates = [name]
    if name.endswith("?"):
        candidates = [name[:-1], f"is_{name[:-1]}"]
    for candidate in candidates:
        if candidate.startswith("_"):
            continue
        if hasattr(receiver, candidate):
            return getattr(receiver, candidate)
    return NOT_FOUND
