"""Profile resolution and loading exceptions."""

from __future__ import annotations

from warden.exceptions.base import WardenError


class ProfileError(WardenError):
    """Base class for profile-level failures."""


class ProfileResolutionError(ProfileError):
    """Raised when no fetcher or source reader understands a target."""


class UnsupportedPlatformError(ProfileError):
    """Raised when a profile does not support the backend platform."""


class ProfileLoadTimeout(ProfileError):
    """Raised when loading a profile exceeds the caller's deadline."""
