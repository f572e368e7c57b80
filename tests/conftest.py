"""Shared pytest fixtures for repository-local test data."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

type ProfileFactory = Callable[..., Path]


@pytest.fixture(scope="session")
def fixtures_root() -> Path:
    """Return root directory for test fixtures."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def basic_profile_root(fixtures_root: Path) -> Path:
    """Return the well-formed fixture profile."""
    return fixtures_root / "profiles" / "basic"


@pytest.fixture(scope="session")
def legacy_profile_root(fixtures_root: Path) -> Path:
    """Return the fixture profile that uses the deprecated layout."""
    return fixtures_root / "profiles" / "legacy"


def _complete_metadata(name: str) -> dict[str, str]:
    return {
        "name": name,
        "title": f"{name} title",
        "version": "1.0.0",
        "summary": "summary",
        "maintainer": "maintainer",
        "copyright": "copyright",
    }


@pytest.fixture()
def make_profile(tmp_path: Path) -> ProfileFactory:
    """Build a profile directory under ``tmp_path`` from control sources."""

    def _make(
        controls: dict[str, str],
        *,
        metadata: dict[str, object] | None = None,
        libraries: dict[str, str] | None = None,
        name: str = "sample-profile",
    ) -> Path:
        root = tmp_path / name
        (root / "controls").mkdir(parents=True)
        payload = _complete_metadata(name) if metadata is None else metadata
        (root / "profile.yml").write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        for ref, source in controls.items():
            (root / "controls" / ref).write_text(source, encoding="utf-8")
        if libraries:
            (root / "libraries").mkdir()
            for ref, source in libraries.items():
                (root / "libraries" / ref).write_text(source, encoding="utf-8")
        return root

    return _make
