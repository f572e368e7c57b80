"""Configuration loading and the resolved config model."""

from __future__ import annotations

from warden.config.loader import load_config
from warden.config.model import WardenConfig

__all__ = ["WardenConfig", "load_config"]
