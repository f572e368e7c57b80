"""Resource providers and target backends."""

from .backend import Backend, CommandResult, FileInfo, MockBackend
from .providers import (
    CommandResource,
    FileResource,
    JsonConfig,
    OsResource,
    Resource,
    ScriptResource,
    build_resources,
    family_matches,
)

__all__ = [
    "Backend",
    "CommandResource",
    "CommandResult",
    "FileInfo",
    "FileResource",
    "JsonConfig",
    "MockBackend",
    "OsResource",
    "Resource",
    "ScriptResource",
    "build_resources",
    "family_matches",
]
