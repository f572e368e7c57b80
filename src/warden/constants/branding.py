"""Branding constants for terminal output."""

from __future__ import annotations

BRAND_NAME: str = "WARDEN"
ASCII_LOGO_LINES: tuple[str, ...] = (
    ">_ WARDEN",
    "     // structural checks for compliance profiles",
)
CHECK_SUMMARY_TITLE: str = "Profile check"
CLI_DESCRIPTION: str = "\n".join((*ASCII_LOGO_LINES, "", f"{BRAND_NAME} profile tool"))
