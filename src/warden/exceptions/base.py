"""Root exception type for Warden."""

from __future__ import annotations


class WardenError(Exception):
    """Base class for all errors raised by Warden."""
