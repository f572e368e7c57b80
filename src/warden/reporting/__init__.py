"""Report rendering."""

from __future__ import annotations

from warden.reporting.stdout import StdoutReporter

__all__ = ["StdoutReporter"]
