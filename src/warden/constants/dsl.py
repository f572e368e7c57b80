"""Keyword, matcher and identifier constants for the control language."""

from __future__ import annotations

DESCRIBE_KEYWORD: str = "describe"
EXPECT_KEYWORD: str = "expect"
DESCRIBE_ONE_KEYWORD: str = "describe.one"

RULE_KEYWORDS: frozenset[str] = frozenset({"rule", "control"})

DEFAULT_SOURCE_FILE: str = "unknown"
DEFAULT_SOURCE_LINE: int = 1

ANONYMOUS_ID_PREFIX: str = "(generated "
ANONYMOUS_ID_TEMPLATE: str = "(generated from {file}:{line} {digest})"
ANONYMOUS_DIGEST_LENGTH: int = 16

MATCHER_NAMES: frozenset[str] = frozenset(
    {
        "be",
        "be_directory",
        "be_empty",
        "be_enabled",
        "be_executable",
        "be_falsey",
        "be_file",
        "be_installed",
        "be_listening",
        "be_nil",
        "be_owned_by",
        "be_readable",
        "be_running",
        "be_truthy",
        "be_within",
        "be_writable",
        "cmp",
        "contain",
        "end_with",
        "eq",
        "eql",
        "equal",
        "exist",
        "include",
        "match",
        "start_with",
    }
)

MATCHER_COMPARISON_OPERATORS: frozenset[str] = frozenset({"<", ">", "<=", ">=", "=="})

EXPECTATION_METHODS: frozenset[str] = frozenset({"to", "not_to", "to_not"})
