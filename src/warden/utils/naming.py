"""Name normalization helpers."""

from __future__ import annotations

from warden.constants.naming import NON_SLUG_PATTERN, SLUG_FALLBACK


def slugify(name: object) -> str:
    """Turn a profile name into a filesystem-safe archive basename."""
    text = str(name or "").lower().strip().replace(" ", "-")
    slug = NON_SLUG_PATTERN.sub("_", text)
    return slug or SLUG_FALLBACK
