"""Fetchers and source readers for on-disk profiles."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from warden.constants.profile import (
    CONTROLS_DIRNAME,
    DEFAULT_CONTROL_SUFFIXES,
    LEGACY_CONTROLS_DIRNAME,
    LEGACY_METADATA_FILENAME,
    LIBRARIES_DIRNAME,
    METADATA_FILENAME,
)
from warden.exceptions import ProfileResolutionError
from warden.profile.metadata import Metadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryTarget:
    """A profile directory: its path prefix and every file below it."""

    root: Path
    files: tuple[str, ...] = field(default=())

    @classmethod
    def scan(cls, root: Path) -> DirectoryTarget:
        root = root.resolve()
        files = sorted(path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file())
        return cls(root=root, files=tuple(files))

    @property
    def prefix(self) -> str:
        return self.root.as_posix() + "/"

    def abs_path(self, ref: str) -> str:
        return (self.root / ref).as_posix()

    def read(self, ref: str) -> str:
        try:
            return (self.root / ref).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ProfileResolutionError(f"Cannot read {ref}: {exc}") from exc


class LocalFetcher:
    """Fetches profiles that already live in a local directory."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def resolve(cls, target: object) -> LocalFetcher | None:
        if not isinstance(target, (str, Path)):
            return None
        path = Path(target)
        if not path.is_dir():
            return None
        return cls(path)

    @property
    def relative_target(self) -> DirectoryTarget:
        return DirectoryTarget.scan(self.path)


class DirectorySourceReader:
    """Understands the ``profile.yml`` + ``controls/`` + ``libraries/`` layout.

    Also accepts the legacy ``metadata.yml`` file and ``test/`` directory.
    """

    def __init__(self, target: DirectoryTarget, *, control_suffixes: tuple[str, ...] = DEFAULT_CONTROL_SUFFIXES) -> None:
        self.target = target
        self._suffixes = control_suffixes
        self.metadata = self._read_metadata()
        self.tests = self._collect((CONTROLS_DIRNAME, LEGACY_CONTROLS_DIRNAME))
        self.libraries = self._collect((LIBRARIES_DIRNAME,))

    @classmethod
    def resolve(
        cls,
        target: DirectoryTarget,
        *,
        control_suffixes: tuple[str, ...] = DEFAULT_CONTROL_SUFFIXES,
    ) -> DirectorySourceReader | None:
        files = set(target.files)
        if METADATA_FILENAME not in files and LEGACY_METADATA_FILENAME not in files:
            return None
        return cls(target, control_suffixes=control_suffixes)

    def _read_metadata(self) -> Metadata:
        files = set(self.target.files)
        ref = METADATA_FILENAME if METADATA_FILENAME in files else LEGACY_METADATA_FILENAME
        return Metadata.from_yaml(ref, self.target.read(ref))

    def _collect(self, dirnames: tuple[str, ...]) -> dict[str, str]:
        sources: dict[str, str] = {}
        for ref in self.target.files:
            top, _, rest = ref.partition("/")
            if not rest or top not in dirnames or not ref.endswith(self._suffixes):
                continue
            sources[ref] = self.target.read(ref)
        logger.debug("Collected %d source file(s) from %s", len(sources), ", ".join(dirnames))
        return sources


def resolve_fetcher(target: object) -> LocalFetcher:
    fetcher = LocalFetcher.resolve(target)
    if fetcher is None:
        raise ProfileResolutionError(f"Could not fetch profile in {target!r}.")
    return fetcher


def resolve_reader(
    target: DirectoryTarget,
    source: object,
    *,
    control_suffixes: tuple[str, ...] = DEFAULT_CONTROL_SUFFIXES,
) -> DirectorySourceReader:
    reader = DirectorySourceReader.resolve(target, control_suffixes=control_suffixes)
    if reader is None:
        raise ProfileResolutionError(
            f"Don't understand profile in {source!r}, it doesn't look like a supported profile structure."
        )
    return reader
