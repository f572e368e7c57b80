from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from warden.profile import Profile, ProfileState


def test_info_groups_rules_by_file(basic_profile_root: Path) -> None:
    info = Profile.for_target(basic_profile_root).info()

    assert info["name"] == "Basic Hardening"
    assert info["version"] == "1.2.0"
    assert list(info["rules"]) == ["controls/os.ctl", "controls/ssh.ctl"]
    os_group = info["rules"]["controls/os.ctl"]
    assert os_group["title"] == "Operating system"
    assert list(os_group["rules"]) == ["os-01", "os-02"]


def test_info_rule_fields_drop_checks(basic_profile_root: Path) -> None:
    rule = Profile.for_target(basic_profile_root).info()["rules"]["controls/os.ctl"]["rules"]["os-01"]

    assert "checks" not in rule
    assert rule["title"] == "Host runs the expected distribution"
    assert rule["impact"] == 0.7
    assert rule["tags"] == {"baseline": None, "severity": "medium"}
    assert rule["source_code"].startswith("control 'os-01' do")
    assert rule["source_code"].endswith("end")
    file, line = rule["source_location"]
    assert file.endswith("controls/os.ctl")
    assert line == 3


def test_info_defaults_and_clamps_impact(make_profile: Callable[..., Path]) -> None:
    root = make_profile(
        {
            "a.ctl": "control 'none'\ncontrol 'high' do\n  impact 3\nend\ncontrol 'low' do\n  impact -1\nend\n",
        }
    )

    rules = Profile.for_target(root).info()["rules"]["controls/a.ctl"]["rules"]

    assert rules["none"]["impact"] == 0.5
    assert rules["high"]["impact"] == 1.0
    assert rules["low"]["impact"] == 0.0


def test_info_skips_empty_ids_and_uses_file_title(make_profile: Callable[..., Path]) -> None:
    root = make_profile({"a.ctl": "control ''\ncontrol 'kept'\n"})

    group = Profile.for_target(root).info()["rules"]["controls/a.ctl"]

    assert group["title"] == "controls/a.ctl"
    assert list(group["rules"]) == ["kept"]


def test_params_are_cached_after_first_load(basic_profile_root: Path) -> None:
    profile = Profile.for_target(basic_profile_root)

    assert profile.state is ProfileState.RESOLVED
    first = profile.params

    assert profile.params is first
    assert profile.state is ProfileState.PARAMS_LOADED
    assert profile.rules_count() == 4


def test_load_params_keeps_checks(basic_profile_root: Path) -> None:
    params = Profile.for_target(basic_profile_root).load_params()

    os_02 = params["rules"]["controls/os.ctl"]["os-02"]
    assert [check.keyword for check in os_02["checks"]] == ["describe.one"]
    assert len(os_02["checks"][0].args) == 2
