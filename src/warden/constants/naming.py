"""Constants for name normalization and sanitization."""

from __future__ import annotations

import re
from re import Pattern

NON_SLUG_PATTERN: Pattern[str] = re.compile(r"[^\w-]")
SLUG_FALLBACK: str = "profile"
