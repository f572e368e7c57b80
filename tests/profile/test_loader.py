from __future__ import annotations

import io
import itertools
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from warden.exceptions import (
    DslEvaluationError,
    ProfileLoadTimeout,
    ProfileResolutionError,
    UnsupportedPlatformError,
)
from warden.profile import DirectorySourceReader, DirectoryTarget, load_profile_rules
from warden.resources import MockBackend


def _reader(root: Path) -> DirectorySourceReader:
    return DirectorySourceReader(DirectoryTarget.scan(root))


def test_reader_collects_controls_and_libraries(basic_profile_root: Path) -> None:
    reader = _reader(basic_profile_root)

    assert sorted(reader.tests) == ["controls/os.ctl", "controls/ssh.ctl"]
    assert sorted(reader.libraries) == ["libraries/helpers.ctl"]
    assert reader.metadata.ref == "profile.yml"


def test_reader_ignores_other_suffixes(make_profile: Callable[..., Path]) -> None:
    root = make_profile({"a.ctl": "rule 'a'\n", "notes.txt": "rule 'b'\n"})

    assert list(_reader(root).tests) == ["controls/a.ctl"]


def test_rules_are_grouped_by_relative_file(basic_profile_root: Path) -> None:
    grouped = load_profile_rules(_reader(basic_profile_root), backend=MockBackend())

    assert list(grouped) == ["controls/os.ctl", "controls/ssh.ctl"]
    assert grouped["controls/os.ctl"].keys() == ["os-01", "os-02"]
    assert grouped["controls/ssh.ctl"].keys() == ["ssh-permitrootlogin", "ssh-passwordauthentication"]


def test_library_locals_reach_control_files(basic_profile_root: Path) -> None:
    grouped = load_profile_rules(_reader(basic_profile_root), backend=MockBackend())

    rule = grouped["controls/ssh.ctl"]["ssh-permitrootlogin"]
    assert rule.description == "PermitRootLogin must be set to no in /etc/ssh/sshd_config."
    assert rule.source_file.endswith("/controls/ssh.ctl")
    assert rule.group_title == "SSH server"


def test_unsupported_platform_is_rejected(basic_profile_root: Path) -> None:
    backend = MockBackend(os={"family": "windows", "name": "windows"})

    with pytest.raises(UnsupportedPlatformError):
        load_profile_rules(_reader(basic_profile_root), backend=backend)

    grouped = load_profile_rules(_reader(basic_profile_root), backend=backend, ignore_supports=True)
    assert len(grouped) == 2


def test_concurrent_load_matches_sequential(make_profile: Callable[..., Path]) -> None:
    controls = {f"c{index}.ctl": f"control 'c-{index}' do\n  describe {index} do; end\nend\n" for index in range(6)}
    root = make_profile(controls)

    sequential = load_profile_rules(_reader(root), backend=MockBackend(), workers=1)
    concurrent = load_profile_rules(_reader(root), backend=MockBackend(), workers=4)

    assert list(concurrent) == list(sequential)
    for file, registry in sequential.items():
        assert concurrent[file].keys() == registry.keys()


def test_concurrent_load_propagates_errors(make_profile: Callable[..., Path]) -> None:
    root = make_profile({"a.ctl": "rule 'a'\n", "b.ctl": "rule 'b' do\n  impact 1 / 0\nend\n"})

    with pytest.raises(DslEvaluationError) as excinfo:
        load_profile_rules(_reader(root), backend=MockBackend(), workers=2)

    assert excinfo.value.line == 2
    assert excinfo.value.file is not None
    assert excinfo.value.file.endswith("controls/b.ctl")


def test_timeout_discards_partial_results(make_profile: Callable[..., Path], monkeypatch: pytest.MonkeyPatch) -> None:
    root = make_profile({"a.ctl": "rule 'a'\n", "b.ctl": "rule 'b'\n"})
    clock = itertools.count(start=0.0, step=5.0)
    monkeypatch.setattr(time, "monotonic", lambda: next(clock))

    with pytest.raises(ProfileLoadTimeout, match="partial results discarded"):
        load_profile_rules(_reader(root), backend=MockBackend(), timeout=1.0)


def test_print_output_goes_to_stream(make_profile: Callable[..., Path]) -> None:
    root = make_profile({"a.ctl": "puts 'loading'\n"})
    stream = io.StringIO()

    load_profile_rules(_reader(root), backend=MockBackend(), output=stream)

    assert stream.getvalue() == "loading\n"


def test_undecodable_control_file_is_a_resolution_error(make_profile: Callable[..., Path]) -> None:
    root = make_profile({"a.ctl": "rule 'a'\n"})
    (root / "controls" / "b.ctl").write_bytes(b"# caf\xe9\nrule 'b'\n")

    with pytest.raises(ProfileResolutionError, match="Cannot read controls/b.ctl"):
        _reader(root)


def test_undecodable_metadata_is_a_resolution_error(make_profile: Callable[..., Path]) -> None:
    root = make_profile({"a.ctl": "rule 'a'\n"})
    (root / "profile.yml").write_bytes(b"name: caf\xe9\n")

    with pytest.raises(ProfileResolutionError, match="Cannot read profile.yml"):
        _reader(root)


SLOW_CONTROL = "200000.times { |i| x = i }\nputs 'done'\n"


def test_concurrent_timeout_discards_partial_results(make_profile: Callable[..., Path]) -> None:
    root = make_profile({"a.ctl": SLOW_CONTROL, "b.ctl": SLOW_CONTROL})
    stream = io.StringIO()

    with pytest.raises(ProfileLoadTimeout):
        load_profile_rules(_reader(root), backend=MockBackend(), workers=2, timeout=0.05, output=stream)

    assert stream.getvalue() == ""


def test_timeout_stops_running_workers(make_profile: Callable[..., Path]) -> None:
    root = make_profile({"a.ctl": SLOW_CONTROL, "b.ctl": SLOW_CONTROL})
    stream = io.StringIO()

    with pytest.raises(ProfileLoadTimeout):
        load_profile_rules(_reader(root), backend=MockBackend(), workers=2, timeout=0.05, output=stream)
    time.sleep(0.2)

    assert stream.getvalue() == ""


def test_timeout_interrupts_a_single_slow_file(make_profile: Callable[..., Path]) -> None:
    root = make_profile({"a.ctl": SLOW_CONTROL})
    stream = io.StringIO()
    started = time.monotonic()

    with pytest.raises(ProfileLoadTimeout):
        load_profile_rules(_reader(root), backend=MockBackend(), timeout=0.05, output=stream)

    assert time.monotonic() - started < 5.0
    assert stream.getvalue() == ""


def test_failing_file_stops_other_workers(make_profile: Callable[..., Path]) -> None:
    root = make_profile({"a.ctl": "impact_of = 1 / 0\n", "b.ctl": SLOW_CONTROL})
    stream = io.StringIO()

    with pytest.raises(DslEvaluationError):
        load_profile_rules(_reader(root), backend=MockBackend(), workers=2, output=stream)

    assert stream.getvalue() == ""
