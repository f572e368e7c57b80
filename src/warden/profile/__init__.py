"""Profile resolution, loading, checking and archiving."""

from __future__ import annotations

from warden.profile.archive import ArchiveOptions, TarArchiveGenerator, ZipArchiveGenerator
from warden.profile.loader import load_profile_rules
from warden.profile.metadata import Metadata
from warden.profile.profile import Profile, ProfileState
from warden.profile.sources import DirectorySourceReader, DirectoryTarget, LocalFetcher

__all__ = [
    "ArchiveOptions",
    "DirectorySourceReader",
    "DirectoryTarget",
    "LocalFetcher",
    "Metadata",
    "Profile",
    "ProfileState",
    "TarArchiveGenerator",
    "ZipArchiveGenerator",
    "load_profile_rules",
]
