"""Token patterns and keyword sets for the control-language lexer."""

from __future__ import annotations

import re
from re import Pattern

KEYWORDS: frozenset[str] = frozenset(
    {
        "and",
        "do",
        "else",
        "elsif",
        "end",
        "false",
        "if",
        "nil",
        "not",
        "or",
        "then",
        "true",
        "unless",
    }
)

IDENT_PATTERN: Pattern[str] = re.compile(r"[A-Za-z_][A-Za-z0-9_]*[?!]?")
LABEL_PATTERN: Pattern[str] = re.compile(r"([A-Za-z_][A-Za-z0-9_]*):(?!:)")
NUMBER_PATTERN: Pattern[str] = re.compile(r"\d[\d_]*(\.\d+)?([eE][+-]?\d+)?")
SYMBOL_PATTERN: Pattern[str] = re.compile(r":([A-Za-z_][A-Za-z0-9_]*[?!]?)")
WORDS_OPENERS: dict[str, str] = {"{": "}", "[": "]", "(": ")", "<": ">"}

# Longest operators first so the lexer can match greedily.
OPERATORS: tuple[str, ...] = (
    "+=",
    "-=",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "=>",
    "..",
    "(",
    ")",
    "[",
    "]",
    "{",
    "}",
    ",",
    ".",
    "=",
    "<",
    ">",
    "+",
    "-",
    "*",
    "/",
    "%",
    "!",
    "|",
)

STRING_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "e": "\x1b",
    "s": " ",
}

REGEX_FLAGS: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.DOTALL,
    "x": re.VERBOSE,
    "o": re.NOFLAG,
}

# <<TAG, <<-TAG (indented terminator), <<~TAG (indented and dedented body).
# A single-quoted tag turns off interpolation.
HEREDOC_PATTERN: Pattern[str] = re.compile(r"<<([-~]?)(['\"]?)([A-Za-z_][A-Za-z0-9_]*)\2")
