from __future__ import annotations

import base64

import pytest

from warden.exceptions import DslEvaluationError
from warden.resources import CommandResult, MockBackend, build_resources
from warden.resources.providers import (
    CommandResource,
    FileResource,
    JsonConfig,
    OsResource,
    ScriptResource,
    family_matches,
)


@pytest.fixture()
def backend() -> MockBackend:
    return MockBackend(
        files={
            "/etc/ssh/sshd_config": "PermitRootLogin no\n",
            "/etc/app.json": '{"server": {"port": 8080, "hosts": [{"name": "a"}, {"name": "b"}]}}',
            "/etc/broken.json": "{not json",
        },
        commands={"uname -s": CommandResult(stdout="Linux\n")},
    )


@pytest.mark.parametrize(
    ("family", "wanted", "expected"),
    [
        ("ubuntu", "ubuntu", True),
        ("ubuntu", "linux", True),
        ("Ubuntu", "unix", True),
        ("darwin", "linux", False),
        ("darwin", "unix", True),
        ("windows", "linux", False),
    ],
)
def test_family_matches(family: str, wanted: str, expected: bool) -> None:
    assert family_matches(family, wanted) is expected


def test_os_resource_exposes_mock_facts(backend: MockBackend) -> None:
    os_resource = OsResource(backend)

    assert os_resource.index("family") == "ubuntu"
    assert os_resource.attribute("release") == "22.04"
    assert os_resource.attribute("linux?") is True
    assert os_resource.attribute("windows?") is False


def test_os_resource_unknown_attribute_raises(backend: MockBackend) -> None:
    with pytest.raises(DslEvaluationError, match="undefined method"):
        OsResource(backend).attribute("kernel")


def test_file_resource_for_existing_file(backend: MockBackend) -> None:
    file = FileResource(backend, "/etc/ssh/sshd_config")

    assert file.type == "file"
    assert file.content == "PermitRootLogin no\n"
    assert file.size == 19
    assert file.attribute("exist?") is True
    assert str(file) == "File /etc/ssh/sshd_config"


def test_file_resource_for_missing_file(backend: MockBackend) -> None:
    file = FileResource(backend, "")

    assert file.type == "unknown"
    assert file.content is None
    assert file.attribute("exist?") is False
    assert file.attribute("mode") is None


def test_command_resource_runs_lazily(backend: MockBackend) -> None:
    command = CommandResource(backend, "uname -s")

    assert command.attribute("stdout") == "Linux\n"
    assert command.attribute("exit_status") == 0
    assert CommandResource(backend, "missing").attribute("stdout") == ""


def test_script_resource_is_skipped_off_windows(backend: MockBackend) -> None:
    script = ScriptResource(backend, "Get-Service")

    assert script.skipped
    assert script.skip_message == "The `script` resource is not supported on your OS yet."
    assert script.attribute("stdout") == ""
    assert script.attribute("exist?") is None


def test_script_resource_encodes_for_powershell() -> None:
    backend = MockBackend(os={"family": "windows", "name": "windows"})
    script = ScriptResource(backend, "Get-Service")
    encoded = base64.b64encode("Get-Service".encode("utf-16-le")).decode("ascii")

    assert not script.skipped
    assert script.command == f"powershell -encodedCommand {encoded}"


def test_json_resource_key_paths(backend: MockBackend) -> None:
    config = JsonConfig(backend, "/etc/app.json")

    assert not config.skipped
    assert config.value("server.port") == 8080
    assert config.value(["server", "hosts", "name"]) == ["a", "b"]
    assert config.index("server") == config.params["server"]


@pytest.mark.parametrize(
    ("path", "message"),
    [
        ("/etc/missing.json", 'Can\'t find file "/etc/missing.json"'),
        ("/etc/broken.json", 'Can\'t parse file "/etc/broken.json"'),
    ],
)
def test_json_resource_skips_unusable_files(backend: MockBackend, path: str, message: str) -> None:
    config = JsonConfig(backend, path)

    assert config.skipped
    assert config.skip_message is not None
    assert config.skip_message.startswith(message)
    assert config.params == {}


def test_build_resources_binds_backend(backend: MockBackend) -> None:
    resources = build_resources(backend)

    assert set(resources) == {"os", "file", "command", "script", "json"}
    assert resources["file"]("/etc/ssh/sshd_config").type == "file"
    assert resources["os"]().index("name") == "ubuntu"
