"""Archive writers that package a profile directory."""

from __future__ import annotations

import logging
import tarfile
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArchiveOptions:
    """``archive`` is an explicit destination; otherwise one is derived from the profile name."""

    archive: Path | None = None
    zip: bool = False
    overwrite: bool = False


class ZipArchiveGenerator:
    def archive(self, root_path: str, files: Iterable[str], destination: Path) -> None:
        root = Path(root_path)
        with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as bundle:
            for ref in files:
                logger.debug("zip: %s", ref)
                bundle.write(root / ref, arcname=ref)


class TarArchiveGenerator:
    def archive(self, root_path: str, files: Iterable[str], destination: Path) -> None:
        root = Path(root_path)
        with tarfile.open(destination, "w:gz") as bundle:
            for ref in files:
                logger.debug("tar: %s", ref)
                bundle.add(root / ref, arcname=ref, recursive=False)
