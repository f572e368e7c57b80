"""Tests for the command-line entrypoint."""

from __future__ import annotations

import json
import shutil
import tarfile
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from warden.cli.main import build_parser, main


@pytest.fixture()
def profile_root(basic_profile_root: Path, tmp_path: Path) -> Path:
    root = tmp_path / "basic"
    shutil.copytree(basic_profile_root, root)
    return root


def test_parser_requires_a_subcommand() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_check_valid_profile_exits_zero(profile_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["check", str(profile_root), "--no-color"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Basic Hardening" in out
    assert "valid" in out
    assert "0 error(s) / 0 warning(s)" in out


def test_check_json_output(profile_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["check", str(profile_root), "--format", "json"])

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["summary"]["valid"] is True
    assert payload["summary"]["controls"] == 4
    assert payload["errors"] == []


def test_check_writes_report_file(profile_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    report_path = tmp_path / "reports" / "check.json"

    main(["check", str(profile_root), "--no-color", "-o", str(report_path)])

    capsys.readouterr()
    payload = json.loads(report_path.read_text(encoding="utf-8"))
    assert payload["summary"]["profile"] == "Basic Hardening"


def test_check_invalid_profile_exits_one(
    make_profile: Callable[..., Path], capsys: pytest.CaptureFixture[str]
) -> None:
    root = make_profile({"a.ctl": "control ''\n"})

    code = main(["check", str(root), "--no-color"])

    out = capsys.readouterr().out
    assert code == 1
    assert "Avoid controls with empty IDs" in out


def test_control_error_exits_one(make_profile: Callable[..., Path], capsys: pytest.CaptureFixture[str]) -> None:
    root = make_profile({"a.ctl": "control 'a' do\n  undefined_thing\nend\n"})

    code = main(["check", str(root)])

    err = capsys.readouterr().err
    assert code == 1
    assert err.startswith("Control error:")
    assert "a.ctl:2" in err


def test_unknown_profile_path_exits_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["check", str(tmp_path / "missing")])

    assert code == 2
    assert "Could not fetch profile" in capsys.readouterr().err


def test_directory_without_metadata_exits_two(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["info", str(tmp_path)])

    assert code == 2
    assert "Don't understand profile" in capsys.readouterr().err


def test_bad_config_exits_two(profile_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (profile_root / "warden.yaml").write_text("workers: 0\n", encoding="utf-8")

    code = main(["check", str(profile_root)])

    assert code == 2
    assert capsys.readouterr().err.startswith("Configuration error:")


def test_info_prints_json(profile_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["info", str(profile_root), "--id", "renamed"])

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["name"] == "renamed"
    assert payload["rules"]["controls/ssh.ctl"]["title"] == "SSH server"


def test_archive_writes_tarball(profile_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    destination = tmp_path / "profile.tar.gz"

    code = main(["archive", str(profile_root), "-o", str(destination)])

    capsys.readouterr()
    assert code == 0
    with tarfile.open(destination, "r:gz") as bundle:
        assert "profile.yml" in bundle.getnames()


def test_archive_format_from_config(profile_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (profile_root / "warden.yaml").write_text("archive_format: zip\n", encoding="utf-8")
    destination = tmp_path / "profile.zip"

    code = main(["archive", str(profile_root), "-o", str(destination)])

    capsys.readouterr()
    assert code == 0
    with zipfile.ZipFile(destination) as bundle:
        assert "warden.yaml" in bundle.namelist()


def test_archive_refuses_existing_destination(
    profile_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    destination = tmp_path / "profile.tar.gz"
    destination.write_bytes(b"keep")

    code = main(["archive", str(profile_root), "-o", str(destination)])

    assert code == 1
    assert "Use --overwrite" in capsys.readouterr().err
    assert destination.read_bytes() == b"keep"

    assert main(["archive", str(profile_root), "-o", str(destination), "--overwrite"]) == 0


def test_archive_refuses_invalid_profile(
    make_profile: Callable[..., Path], tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = make_profile({"a.ctl": "control ''\n"})
    destination = tmp_path / "out.tar.gz"

    code = main(["archive", str(root), "-o", str(destination)])

    assert code == 1
    assert "Profile check failed" in capsys.readouterr().err
    assert not destination.exists()


def test_archive_directory_destination_exits_one(
    profile_root: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    destination = tmp_path / "bundle"
    destination.mkdir()

    code = main(["archive", str(profile_root), "-o", str(destination), "--overwrite"])

    assert code == 1
    assert "is a directory" in capsys.readouterr().err
    assert destination.is_dir()


def test_undecodable_control_file_exits_two(profile_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (profile_root / "controls" / "b.ctl").write_bytes(b"# caf\xe9\nrule 'b'\n")

    code = main(["check", str(profile_root)])

    assert code == 2
    err = capsys.readouterr().err
    assert err.startswith("Profile error:")
    assert "Cannot read controls/b.ctl" in err
