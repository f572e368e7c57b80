"""Configuration-related exceptions."""

from __future__ import annotations

from warden.exceptions.base import WardenError


class ConfigError(WardenError, ValueError):
    """Raised when tool configuration is invalid."""
