from __future__ import annotations

import shutil
import tarfile
import zipfile
from pathlib import Path

import pytest

from warden.exceptions import ProfileError
from warden.profile import ArchiveOptions, Profile, ProfileState

BASIC_FILES = ["controls/os.ctl", "controls/ssh.ctl", "libraries/helpers.ctl", "profile.yml"]


@pytest.fixture()
def profile_root(basic_profile_root: Path, tmp_path: Path) -> Path:
    root = tmp_path / "basic"
    shutil.copytree(basic_profile_root, root)
    return root


def test_tar_archive_contains_profile_files(profile_root: Path, tmp_path: Path) -> None:
    destination = tmp_path / "out.tar.gz"
    profile = Profile.for_target(profile_root)

    assert profile.archive(ArchiveOptions(archive=destination)) is True

    with tarfile.open(destination, "r:gz") as bundle:
        assert sorted(bundle.getnames()) == BASIC_FILES
    assert profile.state is ProfileState.ARCHIVED


def test_zip_archive_contains_profile_files(profile_root: Path, tmp_path: Path) -> None:
    destination = tmp_path / "out.zip"

    assert Profile.for_target(profile_root).archive(ArchiveOptions(archive=destination, zip=True)) is True

    with zipfile.ZipFile(destination) as bundle:
        assert sorted(bundle.namelist()) == BASIC_FILES
        assert bundle.read("controls/os.ctl") == (profile_root / "controls" / "os.ctl").read_bytes()


def test_default_destination_uses_slugified_name(profile_root: Path, tmp_path: Path) -> None:
    cwd = tmp_path / "work"
    cwd.mkdir()

    assert Profile.for_target(profile_root).archive(ArchiveOptions(zip=True), cwd=cwd) is True

    assert (cwd / "basic-hardening.zip").is_file()


def test_existing_archive_is_kept_without_overwrite(profile_root: Path, tmp_path: Path) -> None:
    destination = tmp_path / "out.tar.gz"
    destination.write_bytes(b"previous")

    assert Profile.for_target(profile_root).archive(ArchiveOptions(archive=destination)) is False

    assert destination.read_bytes() == b"previous"


def test_overwrite_regenerates_archive(profile_root: Path, tmp_path: Path) -> None:
    destination = tmp_path / "out.tar.gz"
    destination.write_bytes(b"previous")

    assert Profile.for_target(profile_root).archive(ArchiveOptions(archive=destination, overwrite=True)) is True

    with tarfile.open(destination, "r:gz") as bundle:
        assert sorted(bundle.getnames()) == BASIC_FILES


def test_archive_inside_profile_is_not_packaged(profile_root: Path) -> None:
    destination = profile_root / "bundle.zip"
    destination.write_bytes(b"stale")

    assert Profile.for_target(profile_root).archive(ArchiveOptions(archive=destination, zip=True, overwrite=True))

    with zipfile.ZipFile(destination) as bundle:
        assert sorted(bundle.namelist()) == BASIC_FILES


@pytest.mark.parametrize("overwrite", [False, True], ids=["keep", "overwrite"])
def test_directory_destination_is_refused(profile_root: Path, tmp_path: Path, overwrite: bool) -> None:
    destination = tmp_path / "bundle"
    destination.mkdir()

    with pytest.raises(ProfileError, match="is a directory"):
        Profile.for_target(profile_root).archive(ArchiveOptions(archive=destination, overwrite=overwrite))

    assert destination.is_dir()
