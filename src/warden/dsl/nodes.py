"""AST node types for the control language.

Every node carries the line it starts on and the ``[start, end)`` character
offsets of its source text, so controls can keep the verbatim code that
defined them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, kw_only=True)
class Node:
    line: int
    start: int
    end: int


@dataclass(frozen=True, kw_only=True)
class Literal(Node):
    value: Any


@dataclass(frozen=True, kw_only=True)
class StringInterp(Node):
    parts: tuple[str | Node, ...]


@dataclass(frozen=True, kw_only=True)
class ArrayLit(Node):
    items: tuple[Node, ...]


@dataclass(frozen=True, kw_only=True)
class HashLit(Node):
    pairs: tuple[tuple[Node, Node], ...]


@dataclass(frozen=True, kw_only=True)
class Name(Node):
    """A bare identifier: a local variable or a zero-argument call."""

    name: str


@dataclass(frozen=True, kw_only=True)
class Block(Node):
    params: tuple[str, ...]
    body: tuple[Node, ...]


@dataclass(frozen=True, kw_only=True)
class Call(Node):
    receiver: Node | None
    name: str
    args: tuple[Node, ...]
    block: Block | None = None


@dataclass(frozen=True, kw_only=True)
class Index(Node):
    receiver: Node
    key: Node


@dataclass(frozen=True, kw_only=True)
class Assign(Node):
    name: str
    value: Node


@dataclass(frozen=True, kw_only=True)
class If(Node):
    condition: Node
    then_body: tuple[Node, ...]
    else_body: tuple[Node, ...] = ()


@dataclass(frozen=True, kw_only=True)
class BinOp(Node):
    op: str
    left: Node
    right: Node


@dataclass(frozen=True, kw_only=True)
class UnaryOp(Node):
    op: str
    operand: Node


@dataclass(frozen=True, kw_only=True)
class Program(Node):
    body: tuple[Node, ...]
    source: str
    file: str
