"""Resource providers bound into the control-language scope."""

from __future__ import annotations

import base64
import json
import logging
from collections.abc import Callable
from typing import Any

from warden.dsl.values import CallSite, DslObject
from warden.exceptions.dsl import DslEvaluationError
from warden.resources.backend import Backend, CommandResult
from warden.utils.lookup import dotted_path, lookup

logger = logging.getLogger(__name__)

_LINUX_FAMILIES: frozenset[str] = frozenset(
    {"linux", "ubuntu", "debian", "redhat", "centos", "fedora", "amazon", "suse", "alpine", "arch", "oracle"}
)
_UNIX_FAMILIES: frozenset[str] = _LINUX_FAMILIES | {"unix", "darwin", "mac_os_x", "freebsd", "openbsd", "solaris", "aix"}
_WINDOWS_FAMILIES: frozenset[str] = frozenset({"windows"})

FAMILY_GROUPS: dict[str, frozenset[str]] = {
    "linux": _LINUX_FAMILIES,
    "unix": _UNIX_FAMILIES,
    "windows": _WINDOWS_FAMILIES,
}


def family_matches(family: str, wanted: str) -> bool:
    """True when *family* is *wanted* or belongs to the *wanted* group."""
    family = family.lower()
    wanted = wanted.lower()
    return family == wanted or family in FAMILY_GROUPS.get(wanted, frozenset())


class Resource(DslObject):
    """Base class for providers.

    A provider that cannot inspect its subject marks itself skipped instead
    of failing the load.
    """

    type_name = "resource"

    def __init__(self, backend: Backend) -> None:
        self.backend = backend
        self.skip_message: str | None = None

    def skip_resource(self, message: str) -> None:
        logger.debug("Skipping %s: %s", self, message)
        self.skip_message = message

    @property
    def skipped(self) -> bool:
        return self.skip_message is not None

    def attribute(self, name: str) -> Any:
        raise DslEvaluationError(f"undefined method `{name}' for {self}")

    def call(self, name: str, site: CallSite) -> Any:
        if name == "to_s":
            return str(self)
        return self.attribute(name)

    def __str__(self) -> str:
        return self.type_name


class OsResource(Resource):
    type_name = "os"

    def __init__(self, backend: Backend) -> None:
        super().__init__(backend)
        self.info = dict(backend.os_info())

    def index(self, key: Any) -> Any:
        return self.info.get(str(key))

    def attribute(self, name: str) -> Any:
        if name.endswith("?") and name[:-1] in FAMILY_GROUPS:
            return family_matches(str(self.info.get("family", "")), name[:-1])
        if name in self.info:
            return self.info[name]
        return super().attribute(name)

    def __str__(self) -> str:
        return "Operating System Detection"


class FileResource(Resource):
    type_name = "file"

    def __init__(self, backend: Backend, path: Any) -> None:
        super().__init__(backend)
        self.path = str(path)
        self._info = backend.file_info(self.path)
        self.content = backend.read_file(self.path) if self._info is not None else None

    @property
    def type(self) -> str:
        return "unknown" if self._info is None else self._info.type

    @property
    def size(self) -> int:
        return 0 if self._info is None else self._info.size

    def attribute(self, name: str) -> Any:
        match name:
            case "type":
                return self.type
            case "content":
                return self.content
            case "size":
                return self.size
            case "path":
                return self.path
            case "exist?":
                return self._info is not None
            case "file?":
                return self.type == "file"
            case "directory?":
                return self.type == "directory"
            case "mode":
                return None if self._info is None else self._info.mode
            case "owner":
                return None if self._info is None else self._info.owner
        return super().attribute(name)

    def __str__(self) -> str:
        return f"File {self.path}"


class CommandResource(Resource):
    type_name = "command"

    def __init__(self, backend: Backend, command: Any) -> None:
        super().__init__(backend)
        self.command = str(command)
        self._result: CommandResult | None = None

    @property
    def result(self) -> CommandResult:
        if self._result is None:
            self._result = self.backend.run_command(self.command)
        return self._result

    def attribute(self, name: str) -> Any:
        match name:
            case "stdout":
                return self.result.stdout
            case "stderr":
                return self.result.stderr
            case "exit_status":
                return self.result.exit_status
            case "exist?":
                return bool(self.command)
        return super().attribute(name)

    def __str__(self) -> str:
        return f"Command {self.command}"


class ScriptResource(CommandResource):
    """PowerShell script run through ``-encodedCommand``; Windows only."""

    type_name = "script"

    def __init__(self, backend: Backend, script: Any) -> None:
        self.script = str(script)
        encoded = base64.b64encode(self.script.encode("utf-16-le")).decode("ascii")
        super().__init__(backend, f"powershell -encodedCommand {encoded}")
        if not family_matches(str(backend.os_info().get("family", "")), "windows"):
            self.skip_resource("The `script` resource is not supported on your OS yet.")
            self._result = CommandResult()

    def attribute(self, name: str) -> Any:
        if name == "exist?":
            return None
        return super().attribute(name)

    def __str__(self) -> str:
        return "Script"


class JsonConfig(Resource):
    """Structured JSON file with key-path access to its values."""

    type_name = "json"

    def __init__(self, backend: Backend, path: Any) -> None:
        super().__init__(backend)
        self.path = str(path)
        self.params: Any = {}
        file = FileResource(backend, self.path)
        if file.type != "file":
            self.skip_resource(f'Can\'t find file "{self.path}"')
            return
        content = file.content or ""
        if not content and file.size > 0:
            self.skip_resource(f'Can\'t read file "{self.path}"')
            return
        try:
            self.params = self.parse(content)
        except ValueError as exc:
            self.skip_resource(f'Can\'t parse file "{self.path}": {exc}')

    def parse(self, content: str) -> Any:
        return json.loads(content)

    def value(self, keys: Any) -> Any:
        if isinstance(keys, str):
            keys = dotted_path(keys)
        elif not isinstance(keys, list):
            keys = [keys]
        return lookup(self.params, keys)

    def index(self, key: Any) -> Any:
        return self.value([key])

    def call(self, name: str, site: CallSite) -> Any:
        if name == "params":
            return self.params
        if name == "value":
            return self.value(site.args[0] if len(site.args) == 1 else list(site.args))
        if name == "to_s":
            return str(self)
        return self.value([name, *site.args])

    def __str__(self) -> str:
        return f"Json {self.path}"


type Provider = Callable[..., Any]


def build_resources(backend: Backend) -> dict[str, Provider]:
    """Return the provider callables exposed to control files."""
    return {
        "os": lambda: OsResource(backend),
        "file": lambda path: FileResource(backend, path),
        "command": lambda cmd: CommandResource(backend, cmd),
        "script": lambda script: ScriptResource(backend, script),
        "json": lambda path: JsonConfig(backend, path),
    }
