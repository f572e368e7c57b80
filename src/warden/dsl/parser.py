"""Recursive-descent parser producing the control-language AST."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from warden.constants.dsl import DEFAULT_SOURCE_FILE, DEFAULT_SOURCE_LINE
from warden.dsl.lexer import Token, tokenize
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
from warden.dsl.values import Symbol
from warden.exceptions.dsl import DslSyntaxError

# Loosest binding first.
_BINARY_LEVELS: tuple[frozenset[str], ...] = (
    frozenset({"||"}),
    frozenset({"&&"}),
    frozenset({"==", "!="}),
    frozenset({"<", ">", "<=", ">="}),
    frozenset({".."}),
    frozenset({"+", "-"}),
    frozenset({"*", "/", "%"}),
)

_COMMAND_ARG_KINDS: frozenset[str] = frozenset(
    {"int", "float", "string", "dstring", "regex", "symbol", "words", "ident", "label"}
)
_COMMAND_ARG_KEYWORDS: frozenset[str] = frozenset({"true", "false", "nil"})
_KEYWORD_LITERALS: dict[str, object] = {"true": True, "false": False, "nil": None}


class Parser:
    """Parse one chunk of source text into a :class:`Program`.

    Two flags track where a trailing block may attach. While parsing the
    arguments of a parenthesis-free command call, ``do`` and ``{`` blocks
    belong to the command, not to its last argument.
    """

    def __init__(self, source: str, *, file: str = DEFAULT_SOURCE_FILE, line: int = DEFAULT_SOURCE_LINE) -> None:
        self._source = source
        self._file = file
        self._first_line = line
        self._tokens = tokenize(source, file=file, line=line)
        self._pos = 0
        self._last_end = 0
        self._no_brace = False
        self._no_do = False

    def parse(self) -> Program:
        body = self._statements()
        tok = self._peek()
        if tok.kind != "eof":
            raise self._error(f"unexpected {tok.describe()}", tok)
        return Program(
            body=body,
            source=self._source,
            file=self._file,
            line=self._first_line,
            start=0,
            end=len(self._source),
        )

    def parse_expression(self) -> Node:
        """Parse a standalone expression such as a string interpolation."""
        self._skip_newlines()
        node = self._expression()
        self._skip_newlines()
        tok = self._peek()
        if tok.kind != "eof":
            raise self._error(f"unexpected {tok.describe()}", tok)
        return node

    # statements

    def _statements(self, *enders: str) -> tuple[Node, ...]:
        body: list[Node] = []
        while True:
            self._skip_newlines()
            if self._at_body_end(enders):
                break
            body.append(self._statement())
            tok = self._peek()
            if tok.kind == "newline":
                continue
            if self._at_body_end(enders):
                break
            raise self._error(f"unexpected {tok.describe()}", tok)
        return tuple(body)

    def _at_body_end(self, enders: tuple[str, ...]) -> bool:
        tok = self._peek()
        if tok.kind == "eof":
            return True
        return tok.kind in ("keyword", "op") and tok.value in enders

    def _statement(self) -> Node:
        if self._is_keyword(self._peek(), "if", "unless"):
            node = self._conditional()
        else:
            node = self._expression_statement()
        while self._is_keyword(self._peek(), "if", "unless"):
            modifier = self._advance()
            condition = self._expression()
            if modifier.value == "unless":
                condition = self._negate(condition)
            node = If(condition=condition, then_body=(node,), line=node.line, start=node.start, end=self._last_end)
        return node

    def _expression_statement(self) -> Node:
        tok = self._peek()
        nxt = self._peek(1)
        if tok.kind == "ident" and nxt.kind == "op" and nxt.value in ("=", "+=", "-="):
            self._advance()
            op = self._advance().value
            self._skip_newlines()
            value = self._expression()
            if op != "=":
                target = Name(name=tok.value, line=tok.line, start=tok.offset, end=tok.end)
                value = BinOp(op=op[0], left=target, right=value, line=tok.line, start=tok.offset, end=self._last_end)
            return Assign(name=tok.value, value=value, line=tok.line, start=tok.offset, end=self._last_end)
        return self._expression()

    def _conditional(self) -> If:
        first = self._advance()
        negate = first.value == "unless"
        condition = self._expression()
        if negate:
            condition = self._negate(condition)
        if self._is_keyword(self._peek(), "then"):
            self._advance()
        then_body = self._statements("elsif", "else", "end")
        else_body: tuple[Node, ...] = ()
        tok = self._peek()
        if not negate and self._is_keyword(tok, "elsif"):
            # The nested conditional consumes the shared `end`.
            else_body = (self._conditional(),)
            return If(
                condition=condition,
                then_body=then_body,
                else_body=else_body,
                line=first.line,
                start=first.offset,
                end=self._last_end,
            )
        if self._is_keyword(tok, "else"):
            self._advance()
            else_body = self._statements("end")
        self._expect_keyword("end")
        return If(
            condition=condition,
            then_body=then_body,
            else_body=else_body,
            line=first.line,
            start=first.offset,
            end=self._last_end,
        )

    # expressions

    def _expression(self) -> Node:
        left = self._not_expression()
        while self._is_keyword(self._peek(), "and", "or"):
            op = "&&" if self._advance().value == "and" else "||"
            self._skip_newlines()
            right = self._not_expression()
            left = BinOp(op=op, left=left, right=right, line=left.line, start=left.start, end=self._last_end)
        return left

    def _not_expression(self) -> Node:
        tok = self._peek()
        if self._is_keyword(tok, "not"):
            self._advance()
            operand = self._not_expression()
            return UnaryOp(op="!", operand=operand, line=tok.line, start=tok.offset, end=self._last_end)
        return self._binary(0)

    def _binary(self, level: int) -> Node:
        if level >= len(_BINARY_LEVELS):
            return self._unary()
        left = self._binary(level + 1)
        ops = _BINARY_LEVELS[level]
        while True:
            tok = self._peek()
            if tok.kind != "op" or tok.value not in ops:
                return left
            self._advance()
            self._skip_newlines()
            right = self._binary(level + 1)
            left = BinOp(op=tok.value, left=left, right=right, line=left.line, start=left.start, end=self._last_end)

    def _unary(self) -> Node:
        tok = self._peek()
        if self._is_op(tok, "!"):
            self._advance()
            operand = self._unary()
            return UnaryOp(op="!", operand=operand, line=tok.line, start=tok.offset, end=self._last_end)
        if self._is_op(tok, "-"):
            self._advance()
            operand = self._unary()
            if isinstance(operand, Literal) and type(operand.value) in (int, float):
                return Literal(value=-operand.value, line=tok.line, start=tok.offset, end=self._last_end)
            return UnaryOp(op="-", operand=operand, line=tok.line, start=tok.offset, end=self._last_end)
        return self._postfix()

    def _postfix(self) -> Node:
        node = self._primary()
        while True:
            tok = self._peek()
            if self._is_op(tok, "."):
                self._advance()
                name_tok = self._advance()
                if name_tok.kind != "ident":
                    raise self._error(f"expected a method name after '.', got {name_tok.describe()}", name_tok)
                node = self._call_tail(node, name_tok)
            elif self._is_op(tok, "[") and not tok.spaced:
                self._advance()
                with self._flags(no_brace=False, no_do=False):
                    self._skip_newlines()
                    key = self._expression()
                    self._skip_newlines()
                self._expect_op("]")
                node = Index(receiver=node, key=key, line=node.line, start=node.start, end=self._last_end)
            else:
                return node

    def _primary(self) -> Node:
        tok = self._peek()
        kind = tok.kind
        if kind in ("int", "float", "string", "regex"):
            self._advance()
            return Literal(value=tok.value, line=tok.line, start=tok.offset, end=tok.end)
        if kind == "symbol":
            self._advance()
            return Literal(value=Symbol(tok.value), line=tok.line, start=tok.offset, end=tok.end)
        if kind == "dstring":
            self._advance()
            return self._interpolated(tok)
        if kind == "words":
            self._advance()
            items = tuple(Literal(value=word, line=tok.line, start=tok.offset, end=tok.end) for word in tok.value)
            return ArrayLit(items=items, line=tok.line, start=tok.offset, end=tok.end)
        if kind == "keyword" and tok.value in _KEYWORD_LITERALS:
            self._advance()
            return Literal(value=_KEYWORD_LITERALS[tok.value], line=tok.line, start=tok.offset, end=tok.end)
        if kind == "ident":
            self._advance()
            return self._call_tail(None, tok)
        if self._is_op(tok, "("):
            self._advance()
            with self._flags(no_brace=False, no_do=False):
                self._skip_newlines()
                node = self._expression()
                self._skip_newlines()
            self._expect_op(")")
            return node
        if self._is_op(tok, "["):
            return self._array_literal()
        if self._is_op(tok, "{"):
            return self._hash_literal()
        raise self._error(f"unexpected {tok.describe()}", tok)

    def _interpolated(self, tok: Token) -> StringInterp:
        parts: list[str | Node] = []
        for part in tok.value:
            if isinstance(part, str):
                parts.append(part)
            else:
                parts.append(Parser(part.source, file=self._file, line=part.line).parse_expression())
        return StringInterp(parts=tuple(parts), line=tok.line, start=tok.offset, end=tok.end)

    def _array_literal(self) -> ArrayLit:
        first = self._advance()
        items: list[Node] = []
        with self._flags(no_brace=False, no_do=False):
            self._skip_newlines()
            while not self._is_op(self._peek(), "]"):
                items.append(self._expression())
                self._skip_newlines()
                if not self._is_op(self._peek(), ","):
                    break
                self._advance()
                self._skip_newlines()
        self._expect_op("]")
        return ArrayLit(items=tuple(items), line=first.line, start=first.offset, end=self._last_end)

    def _hash_literal(self) -> HashLit:
        first = self._advance()
        pairs: list[tuple[Node, Node]] = []
        with self._flags(no_brace=False, no_do=False):
            self._skip_newlines()
            while not self._is_op(self._peek(), "}"):
                pairs.append(self._pair())
                self._skip_newlines()
                if not self._is_op(self._peek(), ","):
                    break
                self._advance()
                self._skip_newlines()
        self._expect_op("}")
        return HashLit(pairs=tuple(pairs), line=first.line, start=first.offset, end=self._last_end)

    def _pair(self) -> tuple[Node, Node]:
        tok = self._peek()
        if tok.kind == "label":
            self._advance()
            self._skip_newlines()
            key: Node = Literal(value=Symbol(tok.value), line=tok.line, start=tok.offset, end=tok.end)
            return key, self._expression()
        key = self._expression()
        self._skip_newlines()
        self._expect_op("=>")
        self._skip_newlines()
        return key, self._expression()

    # calls and blocks

    def _call_tail(self, receiver: Node | None, name_tok: Token) -> Node:
        tok = self._peek()
        args: tuple[Node, ...] = ()
        explicit_call = False
        if self._is_op(tok, "(") and not tok.spaced:
            self._advance()
            with self._flags(no_brace=False, no_do=False):
                args = self._arguments(closing=")")
                self._skip_newlines()
            self._expect_op(")")
            explicit_call = True
        elif self._starts_command_arg(tok):
            with self._flags(no_brace=True, no_do=True):
                args = self._arguments(closing=None)

        block: Block | None = None
        tok = self._peek()
        if self._is_op(tok, "{") and not self._no_brace:
            block = self._brace_block()
        elif self._is_keyword(tok, "do") and not self._no_do:
            block = self._do_block()

        start = receiver.start if receiver is not None else name_tok.offset
        line = receiver.line if receiver is not None else name_tok.line
        if receiver is None and not args and block is None and not explicit_call:
            return Name(name=name_tok.value, line=line, start=start, end=self._last_end)
        return Call(
            receiver=receiver,
            name=name_tok.value,
            args=args,
            block=block,
            line=line,
            start=start,
            end=self._last_end,
        )

    def _starts_command_arg(self, tok: Token) -> bool:
        if not tok.spaced:
            return False
        if tok.kind in _COMMAND_ARG_KINDS:
            return True
        if tok.kind == "keyword":
            return tok.value in _COMMAND_ARG_KEYWORDS
        if tok.kind == "op":
            if tok.value in ("[", "("):
                return True
            if tok.value in ("-", "!"):
                return not self._peek(1).spaced
        return False

    def _arguments(self, *, closing: str | None) -> tuple[Node, ...]:
        args: list[Node] = []
        pairs: list[tuple[Node, Node]] = []
        first = self._peek()
        while True:
            if closing is not None:
                self._skip_newlines()
                if self._is_op(self._peek(), closing):
                    break
            tok = self._peek()
            if tok.kind == "label":
                self._advance()
                self._skip_newlines()
                key = Literal(value=Symbol(tok.value), line=tok.line, start=tok.offset, end=tok.end)
                pairs.append((key, self._not_expression()))
            else:
                value = self._not_expression()
                if self._is_op(self._peek(), "=>"):
                    self._advance()
                    self._skip_newlines()
                    pairs.append((value, self._not_expression()))
                else:
                    args.append(value)
            if not self._is_op(self._peek(), ","):
                break
            self._advance()
            self._skip_newlines()
        if pairs:
            args.append(HashLit(pairs=tuple(pairs), line=first.line, start=first.offset, end=self._last_end))
        return tuple(args)

    def _brace_block(self) -> Block:
        first = self._advance()
        with self._flags(no_brace=False, no_do=False):
            params = self._block_params()
            body = self._statements("}")
        self._expect_op("}")
        return Block(params=params, body=body, line=first.line, start=first.offset, end=self._last_end)

    def _do_block(self) -> Block:
        first = self._advance()
        with self._flags(no_brace=False, no_do=False):
            params = self._block_params()
            body = self._statements("end")
        self._expect_keyword("end")
        return Block(params=params, body=body, line=first.line, start=first.offset, end=self._last_end)

    def _block_params(self) -> tuple[str, ...]:
        if not self._is_op(self._peek(), "|"):
            return ()
        self._advance()
        names: list[str] = []
        while not self._is_op(self._peek(), "|"):
            tok = self._advance()
            if tok.kind != "ident":
                raise self._error(f"expected a block parameter name, got {tok.describe()}", tok)
            names.append(tok.value)
            if self._is_op(self._peek(), ","):
                self._advance()
        self._advance()
        return tuple(names)

    # helpers

    @contextmanager
    def _flags(self, *, no_brace: bool, no_do: bool) -> Iterator[None]:
        saved = (self._no_brace, self._no_do)
        self._no_brace, self._no_do = no_brace, no_do
        try:
            yield
        finally:
            self._no_brace, self._no_do = saved

    @staticmethod
    def _negate(condition: Node) -> Node:
        return UnaryOp(op="!", operand=condition, line=condition.line, start=condition.start, end=condition.end)

    def _peek(self, ahead: int = 0) -> Token:
        index = min(self._pos + ahead, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.kind != "eof":
            self._pos += 1
            self._last_end = tok.end
        return tok

    def _skip_newlines(self) -> None:
        while self._peek().kind == "newline":
            self._advance()

    @staticmethod
    def _is_op(tok: Token, *values: str) -> bool:
        return tok.kind == "op" and tok.value in values

    @staticmethod
    def _is_keyword(tok: Token, *values: str) -> bool:
        return tok.kind == "keyword" and tok.value in values

    def _expect_op(self, value: str) -> Token:
        tok = self._peek()
        if not self._is_op(tok, value):
            raise self._error(f"expected '{value}', got {tok.describe()}", tok)
        return self._advance()

    def _expect_keyword(self, value: str) -> Token:
        tok = self._peek()
        if not self._is_keyword(tok, value):
            raise self._error(f"expected '{value}', got {tok.describe()}", tok)
        return self._advance()

    def _error(self, message: str, tok: Token) -> DslSyntaxError:
        return DslSyntaxError(message, file=self._file, line=tok.line)


def parse_program(source: str, *, file: str = DEFAULT_SOURCE_FILE, line: int = DEFAULT_SOURCE_LINE) -> Program:
    """Parse *source* into a :class:`Program`, numbering lines from *line*."""
    return Parser(source, file=file, line=line).parse()
