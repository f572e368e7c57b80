"""Tokenizer for control-language source text.

Produces a flat token list with line/column positions and a ``spaced`` flag
recording whether whitespace preceded the token. The parser relies on that
flag to tell ``foo [1]`` (command argument) from ``foo[1]`` (index).
"""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, replace
from typing import Any, NamedTuple

from warden.constants.lexing import (
    HEREDOC_PATTERN,
    IDENT_PATTERN,
    KEYWORDS,
    LABEL_PATTERN,
    NUMBER_PATTERN,
    OPERATORS,
    REGEX_FLAGS,
    STRING_ESCAPES,
    SYMBOL_PATTERN,
    WORDS_OPENERS,
)
from warden.exceptions.dsl import DslSyntaxError

# A trailing operator or keyword means the expression continues on the next line.
_CONTINUATION_OPS: frozenset[str] = frozenset(
    {",", "+", "-", "*", "/", "%", "&&", "||", "==", "!=", "<", ">", "<=", ">=", "=", "+=", "-=", "=>", ".", "("}
)
_CONTINUATION_KEYWORDS: frozenset[str] = frozenset({"and", "or", "not"})
# After these a `/` is a division, anywhere else it may open a regexp literal.
_VALUE_KEYWORDS: frozenset[str] = frozenset({"end", "true", "false", "nil"})
_VALUE_CLOSERS: frozenset[str] = frozenset({")", "]", "}"})


@dataclass(frozen=True)
class Token:
    """A single lexical token."""

    kind: str
    value: Any
    line: int
    column: int
    offset: int
    end: int
    spaced: bool = False

    def describe(self) -> str:
        if self.kind == "eof":
            return "end of input"
        if self.kind == "newline":
            return "end of line"
        return f"{self.kind} {self.value!r}"


@dataclass(frozen=True)
class Interpolation:
    """Embedded ``#{...}`` source inside a double-quoted string."""

    source: str
    line: int


class _PendingHeredoc(NamedTuple):
    index: int
    tag: str
    mode: str
    raw: bool


class Lexer:
    """Single-pass lexer over one chunk of source text."""

    def __init__(self, source: str, *, file: str, line: int = 1) -> None:
        self._src = source
        self._file = file
        self._pos = 0
        self._line = line
        self._line_start = 0
        self._depth = 0
        self._token_line = line
        self._token_column = 1
        self._tokens: list[Token] = []
        self._heredocs: list[_PendingHeredoc] = []

    def tokenize(self) -> list[Token]:
        spaced = True
        src = self._src
        while self._pos < len(src):
            char = src[self._pos]
            if char in " \t\r\f":
                self._pos += 1
                spaced = True
                continue
            if char == "\\" and src.startswith("\\\n", self._pos):
                self._pos += 1
                self._newline()
                spaced = True
                continue
            if char == "#":
                self._skip_comment()
                continue
            if char == "\n":
                self._newline()
                if self._heredocs:
                    self._read_heredoc_bodies()
                if self._depth == 0 and not self._next_line_continues():
                    self._emit_newline()
                spaced = True
                continue
            if char == ";":
                self._pos += 1
                self._emit_newline()
                spaced = True
                continue
            self._lex_token(char, spaced)
            spaced = False

        if self._heredocs:
            raise self._error(f"unterminated heredoc, missing {self._heredocs[0].tag}")
        self._emit_newline()
        self._tokens.append(self._make("eof", None, self._pos, self._pos, spaced=True))
        return self._tokens

    def _lex_token(self, char: str, spaced: bool) -> None:
        start = self._pos
        src = self._src
        self._token_line = self._line
        self._token_column = start - self._line_start + 1
        if char.isdigit():
            match = NUMBER_PATTERN.match(src, start)
            assert match is not None
            text = match.group(0).replace("_", "")
            self._pos = match.end()
            if match.group(1) or match.group(2):
                self._push("float", float(text), start, spaced)
            else:
                self._push("int", int(text), start, spaced)
            return
        if char == "'":
            self._push("string", self._single_quoted(), start, spaced)
            return
        if char == '"':
            parts = self._double_quoted()
            if all(isinstance(part, str) for part in parts):
                self._push("string", "".join(parts), start, spaced)
            else:
                self._push("dstring", tuple(parts), start, spaced)
            return
        if char == ":":
            match = SYMBOL_PATTERN.match(src, start)
            if match is None:
                raise self._error("unexpected ':'")
            self._pos = match.end()
            self._push("symbol", match.group(1), start, spaced)
            return
        if char == "%" and src.startswith("%w", start) and src[start + 2 : start + 3] in WORDS_OPENERS:
            self._push("words", self._words(), start, spaced)
            return
        if char.isalpha() or char == "_":
            self._identifier(start, spaced)
            return
        if char == "/" and self._starts_regex(spaced):
            self._push("regex", self._regex(), start, spaced)
            return
        if char == "<":
            heredoc = HEREDOC_PATTERN.match(src, start)
            if heredoc is not None:
                self._heredoc(heredoc, start, spaced)
                return
        for op in OPERATORS:
            if src.startswith(op, start):
                self._pos += len(op)
                if op in ("(", "["):
                    self._depth += 1
                elif op in (")", "]") and self._depth > 0:
                    self._depth -= 1
                self._push("op", op, start, spaced)
                return
        if char in "@$":
            raise self._error(f"instance and global variables are not supported: {char!r}")
        raise self._error(f"unexpected character {char!r}")

    def _identifier(self, start: int, spaced: bool) -> None:
        label = LABEL_PATTERN.match(self._src, start)
        if label is not None:
            self._pos = label.end()
            self._push("label", label.group(1), start, spaced)
            return
        match = IDENT_PATTERN.match(self._src, start)
        assert match is not None
        text = match.group(0)
        # `x!= y` is `x != y`, not a bang method.
        if text.endswith(("!", "?")) and self._src.startswith("=", match.end()):
            text = text[:-1]
        self._pos = start + len(text)
        kind = "keyword" if text in KEYWORDS else "ident"
        self._push(kind, text, start, spaced)

    def _single_quoted(self) -> str:
        self._pos += 1
        chars: list[str] = []
        while True:
            char = self._peek_char()
            if char is None:
                raise self._error("unterminated string literal")
            if char == "\\" and self._src[self._pos + 1 : self._pos + 2] in ("\\", "'"):
                chars.append(self._src[self._pos + 1])
                self._pos += 2
                continue
            self._pos += 1
            if char == "'":
                return "".join(chars)
            if char == "\n":
                self._mark_line()
            chars.append(char)

    def _double_quoted(self) -> list[str | Interpolation]:
        self._pos += 1
        parts: list[str | Interpolation] = []
        chars: list[str] = []
        while True:
            char = self._peek_char()
            if char is None:
                raise self._error("unterminated string literal")
            if char == '"':
                self._pos += 1
                break
            if char == "\\":
                escaped = self._src[self._pos + 1 : self._pos + 2]
                if not escaped:
                    raise self._error("unterminated string literal")
                chars.append(STRING_ESCAPES.get(escaped, escaped))
                self._pos += 2
                continue
            if char == "#" and self._src.startswith("#{", self._pos):
                if chars:
                    parts.append("".join(chars))
                    chars = []
                parts.append(self._interpolation())
                continue
            self._pos += 1
            if char == "\n":
                self._mark_line()
            chars.append(char)
        if chars or not parts:
            parts.append("".join(chars))
        return parts

    def _interpolation(self) -> Interpolation:
        line = self._line
        self._pos += 2
        start = self._pos
        depth = 1
        while depth:
            char = self._peek_char()
            if char is None:
                raise self._error("unterminated string interpolation")
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
            elif char == "\n":
                self._pos += 1
                self._mark_line()
                continue
            self._pos += 1
        return Interpolation(source=self._src[start : self._pos - 1], line=line)

    def _words(self) -> list[str]:
        closer = WORDS_OPENERS[self._src[self._pos + 2]]
        self._pos += 3
        end = self._src.find(closer, self._pos)
        if end < 0:
            raise self._error("unterminated %w literal")
        body = self._src[self._pos : end]
        for _ in range(body.count("\n")):
            self._mark_line()
        self._pos = end + 1
        return body.split()

    def _starts_regex(self, spaced: bool) -> bool:
        """Tell a ``/pattern/`` literal apart from the division operator."""
        if not self._tokens:
            return True
        last = self._tokens[-1]
        if last.kind in ("newline", "label"):
            return True
        if last.kind == "op":
            return last.value not in _VALUE_CLOSERS
        if last.kind == "keyword":
            return last.value not in _VALUE_KEYWORDS
        if last.kind == "ident":
            # `match /x/` passes a pattern; `a / b` and `a/b` divide.
            return spaced and self._src[self._pos + 1 : self._pos + 2] not in ("", " ", "\t", "=")
        return False

    def _regex(self) -> re.Pattern[str]:
        self._pos += 1
        chars: list[str] = []
        while True:
            char = self._peek_char()
            if char is None or char == "\n":
                raise self._error("unterminated regexp literal")
            if char == "\\":
                escaped = self._src[self._pos + 1 : self._pos + 2]
                if escaped in ("", "\n"):
                    raise self._error("unterminated regexp literal")
                chars.append("/" if escaped == "/" else char + escaped)
                self._pos += 2
                continue
            self._pos += 1
            if char == "/":
                break
            chars.append(char)
        pattern = "".join(chars)
        flags = re.NOFLAG
        while self._peek_char() in REGEX_FLAGS:
            flags |= REGEX_FLAGS[self._src[self._pos]]
            self._pos += 1
        try:
            return re.compile(pattern, flags)
        except re.error as exc:
            raise self._error(f"invalid regexp /{pattern}/: {exc}") from exc

    def _heredoc(self, match: re.Match[str], start: int, spaced: bool) -> None:
        """Push a placeholder string; its body is read once the line ends."""
        mode, quote, tag = match.groups()
        self._pos = match.end()
        self._push("string", "", start, spaced)
        self._heredocs.append(_PendingHeredoc(index=len(self._tokens) - 1, tag=tag, mode=mode, raw=quote == "'"))

    def _read_heredoc_bodies(self) -> None:
        pending, self._heredocs = self._heredocs, []
        for heredoc in pending:
            body_line = self._line
            lines: list[str] = []
            while True:
                if self._pos >= len(self._src):
                    raise self._error(f"unterminated heredoc, missing {heredoc.tag}")
                end = self._src.find("\n", self._pos)
                if end < 0:
                    end = len(self._src)
                text = self._src[self._pos : end].rstrip("\r")
                self._pos = end
                if end < len(self._src):
                    self._newline()
                terminator = text.strip() if heredoc.mode else text
                if terminator == heredoc.tag:
                    break
                lines.append(text)
            body = "".join(line + "\n" for line in lines)
            if heredoc.mode == "~":
                body = textwrap.dedent(body)
            parts = [body] if heredoc.raw else self._split_interpolations(body, body_line)
            token = self._tokens[heredoc.index]
            if all(isinstance(part, str) for part in parts):
                self._tokens[heredoc.index] = replace(token, value="".join(str(part) for part in parts))
            else:
                self._tokens[heredoc.index] = replace(token, kind="dstring", value=tuple(parts))

    def _split_interpolations(self, text: str, line: int) -> list[str | Interpolation]:
        parts: list[str | Interpolation] = []
        pos = 0
        while True:
            start = text.find("#{", pos)
            if start < 0:
                break
            cursor = start + 2
            depth = 1
            while depth and cursor < len(text):
                if text[cursor] == "{":
                    depth += 1
                elif text[cursor] == "}":
                    depth -= 1
                cursor += 1
            if depth:
                raise self._error("unterminated string interpolation")
            if start > pos:
                parts.append(text[pos:start])
            parts.append(Interpolation(source=text[start + 2 : cursor - 1], line=line + text.count("\n", 0, start)))
            pos = cursor
        if pos < len(text) or not parts:
            parts.append(text[pos:])
        return parts

    def _skip_comment(self) -> None:
        end = self._src.find("\n", self._pos)
        self._pos = len(self._src) if end < 0 else end

    def _next_line_continues(self) -> bool:
        """Return True when the next significant character starts a `.method` chain."""
        pos = self._pos
        src = self._src
        while pos < len(src):
            char = src[pos]
            if char in " \t\r\f\n":
                pos += 1
                continue
            if char == "#":
                end = src.find("\n", pos)
                if end < 0:
                    return False
                pos = end
                continue
            return char == "." and not src.startswith("..", pos)
        return False

    def _emit_newline(self) -> None:
        if not self._tokens:
            return
        last = self._tokens[-1]
        if last.kind == "newline":
            return
        if last.kind == "op" and last.value in _CONTINUATION_OPS:
            return
        if last.kind == "keyword" and last.value in _CONTINUATION_KEYWORDS:
            return
        self._tokens.append(self._make("newline", None, self._pos, self._pos, spaced=True))

    def _newline(self) -> None:
        self._pos += 1
        self._mark_line()

    def _mark_line(self) -> None:
        self._line += 1
        self._line_start = self._pos

    def _peek_char(self) -> str | None:
        if self._pos >= len(self._src):
            return None
        return self._src[self._pos]

    def _push(self, kind: str, value: Any, start: int, spaced: bool) -> None:
        self._tokens.append(
            Token(
                kind=kind,
                value=value,
                line=self._token_line,
                column=self._token_column,
                offset=start,
                end=self._pos,
                spaced=spaced,
            )
        )

    def _make(self, kind: str, value: Any, start: int, end: int, *, spaced: bool) -> Token:
        column = max(start - self._line_start, 0) + 1
        return Token(kind=kind, value=value, line=self._line, column=column, offset=start, end=end, spaced=spaced)

    def _error(self, message: str) -> DslSyntaxError:
        return DslSyntaxError(message, file=self._file, line=self._line)


def tokenize(source: str, *, file: str, line: int = 1) -> list[Token]:
    """Tokenize *source*, numbering lines from *line*."""
    return Lexer(source, file=file, line=line).tokenize()
