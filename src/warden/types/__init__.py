"""Shared type aliases for Warden."""

from .common import ArchiveFormat, JsonObject, JsonScalar, JsonValue
from .profile import RuleGroupInfo, RuleInfo, RuleView

__all__ = [
    "ArchiveFormat",
    "JsonObject",
    "JsonScalar",
    "JsonValue",
    "RuleGroupInfo",
    "RuleInfo",
    "RuleView",
]
