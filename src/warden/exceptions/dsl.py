"""Typed control-language error hierarchy."""

from __future__ import annotations

from warden.exceptions.base import WardenError


class DslError(WardenError):
    """Base class for control-language errors.

    Carries the source file and line so callers can point authors at the
    offending statement.
    """

    def __init__(self, message: str, *, file: str | None = None, line: int | None = None) -> None:
        self.message = message
        self.file = file
        self.line = line
        super().__init__(self._render())

    def _render(self) -> str:
        if self.file is None:
            return self.message
        if self.line is None:
            return f"{self.file}: {self.message}"
        return f"{self.file}:{self.line}: {self.message}"


class DslSyntaxError(DslError):
    """Raised when control source text cannot be tokenized or parsed."""


class DslEvaluationError(DslError):
    """Raised when a parsed control file fails during interpretation."""


class DslNameError(DslEvaluationError):
    """Raised when a name is neither a local, a keyword, nor a resource."""
