"""Methods available on plain values inside control files."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from warden.dsl.values import Closure, Symbol, compile_pattern, display, inspect_value, truthy
from warden.exceptions.dsl import DslEvaluationError
from warden.utils.lookup import lookup

if TYPE_CHECKING:
    from warden.dsl.interpreter import Interpreter

NOT_FOUND = object()

type Builtin = Callable[["Interpreter", Any, list[Any], Closure | None], Any]


def call_builtin(interp: Interpreter, receiver: Any, name: str, args: list[Any], block: Closure | None) -> Any:
    """Dispatch *name* on a plain value; return ``NOT_FOUND`` when unknown."""
    method = _COMMON.get(name)
    if method is not None:
        return method(interp, receiver, args, block)
    table = _table_for(receiver)
    if table is None:
        return NOT_FOUND
    method = table.get(name)
    if method is None:
        if isinstance(receiver, Mapping) and not args and block is None:
            return lookup(receiver, [name])
        return NOT_FOUND
    return method(interp, receiver, args, block)


def _table_for(receiver: Any) -> dict[str, Builtin] | None:
    if isinstance(receiver, bool) or receiver is None:
        return None
    if isinstance(receiver, str):
        return _STRING
    if isinstance(receiver, (int, float)):
        return _NUMBER
    if isinstance(receiver, list):
        return _LIST
    if isinstance(receiver, Mapping):
        return _HASH
    return None


def _need_block(name: str, block: Closure | None) -> Closure:
    if block is None:
        raise DslEvaluationError(f"`{name}' requires a block")
    return block


def _arity(name: str, args: list[Any], count: int) -> None:
    if len(args) != count:
        raise DslEvaluationError(f"wrong number of arguments for `{name}' (given {len(args)}, expected {count})")


# common


def _to_s(interp: Interpreter, receiver: Any, args: list[Any], block: Closure | None) -> Any:
    return display(receiver)


_COMMON: dict[str, Builtin] = {
    "nil?": lambda interp, recv, args, block: recv is None,
    "to_s": _to_s,
    "inspect": lambda interp, recv, args, block: inspect_value(recv),
}


# strings


def _split(interp: Interpreter, receiver: str, args: list[Any], block: Closure | None) -> list[str]:
    if not args:
        return receiver.split()
    return receiver.split(str(args[0]))


def _to_i(interp: Interpreter, receiver: Any, args: list[Any], block: Closure | None) -> int:
    if isinstance(receiver, (int, float)):
        return int(receiver)
    digits = []
    for index, char in enumerate(receiver.strip()):
        if char.isdigit() or (index == 0 and char in "+-"):
            digits.append(char)
            continue
        break
    try:
        return int("".join(digits))
    except ValueError:
        return 0


def _to_f(interp: Interpreter, receiver: Any, args: list[Any], block: Closure | None) -> float:
    try:
        return float(receiver)
    except ValueError:
        return 0.0


_STRING: dict[str, Builtin] = {
    "length": lambda interp, recv, args, block: len(recv),
    "size": lambda interp, recv, args, block: len(recv),
    "upcase": lambda interp, recv, args, block: recv.upper(),
    "downcase": lambda interp, recv, args, block: recv.lower(),
    "strip": lambda interp, recv, args, block: recv.strip(),
    "empty?": lambda interp, recv, args, block: recv == "",
    "include?": lambda interp, recv, args, block: str(args[0]) in recv,
    "start_with?": lambda interp, recv, args, block: recv.startswith(tuple(str(arg) for arg in args)),
    "end_with?": lambda interp, recv, args, block: recv.endswith(tuple(str(arg) for arg in args)),
    "match?": lambda interp, recv, args, block: compile_pattern(args[0]).search(recv) is not None,
    "split": _split,
    "lines": lambda interp, recv, args, block: recv.splitlines(keepends=True),
    "to_i": _to_i,
    "to_f": _to_f,
    "to_sym": lambda interp, recv, args, block: Symbol(recv),
}


# numbers


def _times(interp: Interpreter, receiver: int, args: list[Any], block: Closure | None) -> Any:
    closure = _need_block("times", block)
    for index in range(int(receiver)):
        interp.invoke(closure, index)
    return receiver


def _upto(interp: Interpreter, receiver: int, args: list[Any], block: Closure | None) -> Any:
    _arity("upto", args, 1)
    closure = _need_block("upto", block)
    for index in range(int(receiver), int(args[0]) + 1):
        interp.invoke(closure, index)
    return receiver


_NUMBER: dict[str, Builtin] = {
    "times": _times,
    "upto": _upto,
    "to_i": _to_i,
    "to_f": lambda interp, recv, args, block: float(recv),
    "abs": lambda interp, recv, args, block: abs(recv),
    "round": lambda interp, recv, args, block: round(recv, int(args[0])) if args else round(recv),
    "zero?": lambda interp, recv, args, block: recv == 0,
    "even?": lambda interp, recv, args, block: int(recv) % 2 == 0,
    "odd?": lambda interp, recv, args, block: int(recv) % 2 == 1,
}


# lists


def _each(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> Any:
    closure = _need_block("each", block)
    for item in list(receiver):
        interp.invoke(closure, item)
    return receiver


def _each_with_index(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> Any:
    closure = _need_block("each_with_index", block)
    for index, item in enumerate(list(receiver)):
        interp.invoke(closure, item, index)
    return receiver


def _map(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> list[Any]:
    closure = _need_block("map", block)
    return [interp.invoke(closure, item) for item in list(receiver)]


def _select(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> list[Any]:
    closure = _need_block("select", block)
    return [item for item in list(receiver) if truthy(interp.invoke(closure, item))]


def _reject(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> list[Any]:
    closure = _need_block("reject", block)
    return [item for item in list(receiver) if not truthy(interp.invoke(closure, item))]


def _find(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> Any:
    closure = _need_block("find", block)
    for item in list(receiver):
        if truthy(interp.invoke(closure, item)):
            return item
    return None


def _any(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> bool:
    if block is None:
        return any(truthy(item) for item in receiver)
    return any(truthy(interp.invoke(block, item)) for item in list(receiver))


def _all(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> bool:
    if block is None:
        return all(truthy(item) for item in receiver)
    return all(truthy(interp.invoke(block, item)) for item in list(receiver))


def _count(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> int:
    if args:
        return sum(1 for item in receiver if item == args[0])
    if block is not None:
        return sum(1 for item in list(receiver) if truthy(interp.invoke(block, item)))
    return len(receiver)


def _join(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> str:
    separator = str(args[0]) if args else ""
    return separator.join(display(item) for item in receiver)


def _flatten(items: list[Any]) -> list[Any]:
    flat: list[Any] = []
    for item in items:
        if isinstance(item, list):
            flat.extend(_flatten(item))
        else:
            flat.append(item)
    return flat


def _uniq(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> list[Any]:
    unique: list[Any] = []
    for item in receiver:
        if item not in unique:
            unique.append(item)
    return unique


def _sort(interp: Interpreter, receiver: list[Any], args: list[Any], block: Closure | None) -> list[Any]:
    try:
        return sorted(receiver)
    except TypeError as exc:
        raise DslEvaluationError(f"cannot sort {inspect_value(receiver)}: {exc}") from exc


_LIST: dict[str, Builtin] = {
    "each": _each,
    "each_with_index": _each_with_index,
    "map": _map,
    "collect": _map,
    "select": _select,
    "filter": _select,
    "reject": _reject,
    "find": _find,
    "detect": _find,
    "any?": _any,
    "all?": _all,
    "none?": lambda interp, recv, args, block: not _any(interp, recv, args, block),
    "length": lambda interp, recv, args, block: len(recv),
    "size": lambda interp, recv, args, block: len(recv),
    "count": _count,
    "first": lambda interp, recv, args, block: recv[: int(args[0])] if args else (recv[0] if recv else None),
    "last": lambda interp, recv, args, block: recv[-int(args[0]) :] if args else (recv[-1] if recv else None),
    "include?": lambda interp, recv, args, block: args[0] in recv,
    "empty?": lambda interp, recv, args, block: not recv,
    "join": _join,
    "sort": _sort,
    "uniq": _uniq,
    "reverse": lambda interp, recv, args, block: list(reversed(recv)),
    "flatten": lambda interp, recv, args, block: _flatten(recv),
    "compact": lambda interp, recv, args, block: [item for item in recv if item is not None],
    "min": lambda interp, recv, args, block: min(recv) if recv else None,
    "max": lambda interp, recv, args, block: max(recv) if recv else None,
    "sum": lambda interp, recv, args, block: sum(recv),
    "to_a": lambda interp, recv, args, block: list(recv),
}


# hashes


def _hash_each(interp: Interpreter, receiver: Mapping[Any, Any], args: list[Any], block: Closure | None) -> Any:
    closure = _need_block("each", block)
    for key, value in list(receiver.items()):
        interp.invoke(closure, key, value)
    return receiver


def _hash_map(interp: Interpreter, receiver: Mapping[Any, Any], args: list[Any], block: Closure | None) -> list[Any]:
    closure = _need_block("map", block)
    return [interp.invoke(closure, key, value) for key, value in list(receiver.items())]


def _hash_select(
    interp: Interpreter, receiver: Mapping[Any, Any], args: list[Any], block: Closure | None
) -> dict[Any, Any]:
    closure = _need_block("select", block)
    return {key: value for key, value in list(receiver.items()) if truthy(interp.invoke(closure, key, value))}


def _fetch(interp: Interpreter, receiver: Mapping[Any, Any], args: list[Any], block: Closure | None) -> Any:
    if not args:
        raise DslEvaluationError("`fetch' requires a key")
    key = args[0]
    if key in receiver:
        return receiver[key]
    if len(args) > 1:
        return args[1]
    raise DslEvaluationError(f"key not found: {inspect_value(key)}")


_HASH: dict[str, Builtin] = {
    "each": _hash_each,
    "each_pair": _hash_each,
    "map": _hash_map,
    "select": _hash_select,
    "keys": lambda interp, recv, args, block: list(recv.keys()),
    "values": lambda interp, recv, args, block: list(recv.values()),
    "key?": lambda interp, recv, args, block: args[0] in recv,
    "has_key?": lambda interp, recv, args, block: args[0] in recv,
    "fetch": _fetch,
    "dig": lambda interp, recv, args, block: lookup(recv, args),
    "length": lambda interp, recv, args, block: len(recv),
    "size": lambda interp, recv, args, block: len(recv),
    "empty?": lambda interp, recv, args, block: not recv,
    "to_a": lambda interp, recv, args, block: [[key, value] for key, value in recv.items()],
}
