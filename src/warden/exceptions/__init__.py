"""Shared exception hierarchy for Warden."""

from __future__ import annotations

from .base import WardenError
from .config import ConfigError
from .dsl import DslError, DslEvaluationError, DslNameError, DslSyntaxError
from .profile import ProfileError, ProfileLoadTimeout, ProfileResolutionError, UnsupportedPlatformError

__all__ = [
    "ConfigError",
    "DslError",
    "DslEvaluationError",
    "DslNameError",
    "DslSyntaxError",
    "ProfileError",
    "ProfileLoadTimeout",
    "ProfileResolutionError",
    "UnsupportedPlatformError",
    "WardenError",
]
