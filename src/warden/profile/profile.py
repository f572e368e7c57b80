"""Profile orchestration: load every control, lint the result, package it."""

from __future__ import annotations

import logging
from collections.abc import Hashable
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, TextIO

from warden.config.model import WardenConfig
from warden.constants.dsl import ANONYMOUS_ID_PREFIX
from warden.constants.profile import (
    ARCHIVE_EXTENSION_TAR,
    ARCHIVE_EXTENSION_ZIP,
    DEFAULT_IMPACT,
    LEGACY_CONTROLS_DIRNAME,
    LEGACY_METADATA_FILENAME,
    MAX_IMPACT,
    MIN_IMPACT,
    MSG_EMPTY_CONTROL_ID,
    MSG_IMPACT_ABOVE,
    MSG_IMPACT_BELOW,
    MSG_LEGACY_CONTROLS_DIR,
    MSG_LEGACY_METADATA,
    MSG_NO_CONTROLS,
    MSG_NO_DESCRIPTION,
    MSG_NO_TESTS,
    MSG_NO_TITLE,
    MSG_UNSUPPORTED,
)
from warden.exceptions import ProfileError
from warden.model.report import Finding, ReportSummary, ValidationReport
from warden.model.rule import Rule
from warden.profile.archive import ArchiveOptions, TarArchiveGenerator, ZipArchiveGenerator
from warden.profile.loader import load_profile_rules
from warden.profile.metadata import Metadata
from warden.profile.sources import DirectorySourceReader, resolve_fetcher, resolve_reader
from warden.resources import Backend, MockBackend
from warden.types.profile import RuleGroupInfo, RuleInfo, RuleView
from warden.utils.naming import slugify

logger = logging.getLogger(__name__)


class ProfileState(Enum):
    RESOLVED = "resolved"
    PARAMS_LOADED = "params_loaded"
    CHECKED = "checked"
    ARCHIVED = "archived"


class Profile:
    """A resolved profile and the operations run against it.

    Loading always ignores the profile's ``supports`` list: inspecting a
    profile must not depend on the machine doing the inspection.
    """

    def __init__(
        self,
        source_reader: DirectorySourceReader,
        *,
        target: Any = None,
        profile_id: str | None = None,
        config: WardenConfig | None = None,
        backend: Backend | None = None,
        output: TextIO | None = None,
    ) -> None:
        self.source_reader = source_reader
        self.target = target
        self.profile_id = profile_id
        self.config = config or WardenConfig()
        self.backend = backend or MockBackend(os=dict(self.config.mock_os))
        self._output = output
        self._params: dict[str, Any] | None = None
        self.state = ProfileState.RESOLVED
        self.metadata.finalize(profile_id)

    @staticmethod
    def resolve_target(target: Any, *, config: WardenConfig | None = None) -> DirectorySourceReader:
        """Find a fetcher for *target*, then a reader that understands its layout."""
        config = config or WardenConfig()
        fetcher = resolve_fetcher(target)
        return resolve_reader(fetcher.relative_target, target, control_suffixes=config.control_suffixes)

    @classmethod
    def for_target(
        cls,
        target: Any,
        *,
        profile_id: str | None = None,
        config: WardenConfig | None = None,
        backend: Backend | None = None,
        output: TextIO | None = None,
    ) -> Profile:
        reader = cls.resolve_target(target, config=config)
        return cls(reader, target=target, profile_id=profile_id, config=config, backend=backend, output=output)

    @property
    def tests(self) -> dict[str, str]:
        return self.source_reader.tests

    @property
    def libraries(self) -> dict[str, str]:
        return self.source_reader.libraries

    @property
    def metadata(self) -> Metadata:
        return self.source_reader.metadata

    @property
    def location(self) -> str | None:
        return None if self.target is None else str(self.target)

    @property
    def params(self) -> dict[str, Any]:
        if self._params is None:
            self._params = self.load_params()
        return self._params

    def load_params(self, timeout: float | None = None) -> dict[str, Any]:
        """Evaluate all control files and snapshot their rules, grouped by file."""
        if timeout is None:
            timeout = self.config.timeout_seconds
        params = dict(self.metadata.params)
        if self.profile_id is not None:
            params["name"] = self.profile_id

        grouped = load_profile_rules(
            self.source_reader,
            backend=self.backend,
            metadata=self.metadata,
            ignore_supports=True,
            workers=self.config.workers,
            timeout=timeout,
            output=self._output,
        )
        params["rules"] = {
            file: {identifier: _rule_view(rule) for identifier, rule in registry.items()}
            for file, registry in grouped.items()
        }

        if self.profile_id is None:
            self.profile_id = params.get("name")
        self._params = params
        if self.state is ProfileState.RESOLVED:
            self.state = ProfileState.PARAMS_LOADED
        return params

    def info(self) -> dict[str, Any]:
        """Params for reporting: no checks, impacts defaulted and clamped."""
        result = dict(self.params)
        groups: dict[str, RuleGroupInfo] = {}
        for group_id, group in result["rules"].items():
            if not str(group_id):
                continue
            info = RuleGroupInfo(title=group_id, rules={})
            for identifier, view in group.items():
                if _is_empty_id(identifier):
                    continue
                impact = DEFAULT_IMPACT if view["impact"] is None else _to_float(view["impact"])
                info["rules"][identifier] = RuleInfo(
                    title=view["title"],
                    desc=view["desc"],
                    impact=min(max(impact, MIN_IMPACT), MAX_IMPACT),
                    tags=view["tags"],
                    source_code=view["source_code"],
                    source_location=view["source_location"],
                    group_title=view["group_title"],
                )
                if view["group_title"] is not None:
                    info["title"] = view["group_title"]
            groups[group_id] = info
        result["rules"] = groups
        return result

    def rules_count(self) -> int:
        return sum(len(group) for group in self.params["rules"].values())

    def check(self) -> ValidationReport:
        """Load the profile and lint metadata and controls.

        Every finding is logged and recorded. The report is valid when no
        errors were found; warnings never invalidate it.
        """
        errors: list[Finding] = []
        warnings: list[Finding] = []

        def warn(file: str | None, line: int | None, column: int | None, control_id: Any, msg: str) -> None:
            logger.warning(msg)
            warnings.append(Finding(file=file, line=line, column=column, control_id=control_id, message=msg))

        def error(file: str | None, line: int | None, column: int | None, control_id: Any, msg: str) -> None:
            logger.error(msg)
            errors.append(Finding(file=file, line=line, column=column, control_id=control_id, message=msg))

        timestamp = datetime.now(UTC).isoformat(timespec="seconds")
        location = self.location
        logger.info("Checking profile in %s", location)

        metadata = self.metadata
        meta_path = self.source_reader.target.abs_path(metadata.ref)
        if metadata.ref == LEGACY_METADATA_FILENAME:
            warn(location, 0, 0, None, MSG_LEGACY_METADATA)

        m_errors, m_warnings = metadata.valid()
        for msg in m_errors:
            error(meta_path, 0, 0, None, msg)
        for msg in m_warnings:
            warn(meta_path, 0, 0, None, msg)
        m_unsupported = metadata.unsupported
        for entry in m_unsupported:
            warn(meta_path, 0, 0, None, MSG_UNSUPPORTED.format(entry=entry))
        if not m_errors and not m_unsupported:
            logger.info("Metadata OK.")

        profile_name = metadata.params.get("name")

        if any(ref.startswith(f"{LEGACY_CONTROLS_DIRNAME}/") for ref in self.tests):
            warn(location, 0, 0, None, MSG_LEGACY_CONTROLS_DIR)

        params = self.load_params()
        count = self.rules_count()
        if count == 0:
            warn(None, None, None, None, MSG_NO_CONTROLS)
        else:
            logger.info("Found %d controls.", count)

        for group, controls in params["rules"].items():
            logger.info("Verify all controls in %s", group)
            for control_id, control in controls.items():
                sfile, sline = control["source_location"]
                if _is_empty_id(control_id):
                    error(sfile, sline, None, control_id, MSG_EMPTY_CONTROL_ID)
                if isinstance(control_id, str) and control_id.startswith(ANONYMOUS_ID_PREFIX):
                    continue
                label = "" if control_id is None else str(control_id)
                if _is_blank(control["title"]):
                    warn(sfile, sline, None, control_id, MSG_NO_TITLE.format(control_id=label))
                if _is_blank(control["desc"]):
                    warn(sfile, sline, None, control_id, MSG_NO_DESCRIPTION.format(control_id=label))
                impact = _to_float(control["impact"])
                if impact > MAX_IMPACT:
                    warn(sfile, sline, None, control_id, MSG_IMPACT_ABOVE.format(control_id=label))
                if impact < MIN_IMPACT:
                    warn(sfile, sline, None, control_id, MSG_IMPACT_BELOW.format(control_id=label))
                if not control["checks"]:
                    warn(sfile, sline, None, control_id, MSG_NO_TESTS.format(control_id=label))

        if not warnings:
            logger.info("Control definitions OK.")

        self.state = ProfileState.CHECKED
        return ValidationReport(
            summary=ReportSummary(
                valid=not errors,
                timestamp=timestamp,
                location=location,
                profile_name=None if profile_name is None else str(profile_name),
                controls=count,
            ),
            errors=tuple(errors),
            warnings=tuple(warnings),
        )

    def archive(self, options: ArchiveOptions, *, cwd: Path | None = None) -> bool:
        """Write the profile's files to a zip or tar.gz archive.

        Returns ``False`` without touching anything when the destination
        exists and ``overwrite`` is not set.
        A destination that is a directory is never replaced.
        """
        profile_name = self.params.get("name")
        extension = ARCHIVE_EXTENSION_ZIP if options.zip else ARCHIVE_EXTENSION_TAR

        if options.archive is not None:
            destination = Path(options.archive)
        else:
            destination = (cwd or Path.cwd()) / f"{slugify(profile_name)}.{extension}"

        if destination.is_dir():
            raise ProfileError(f"Archive destination {destination} is a directory.")

        if destination.exists() and not options.overwrite:
            logger.info("Archive %s exists already. Use --overwrite.", destination)
            return False

        if destination.exists():
            destination.unlink()
        logger.info("Generate archive %s.", destination)

        target = self.source_reader.target
        root_path = target.prefix
        excluded = destination.resolve().as_posix()
        files = [ref for ref in target.files if target.abs_path(ref) != excluded]
        logger.debug("Add the following files to archive:")
        for ref in files:
            logger.debug("    %s", ref)

        generator = ZipArchiveGenerator() if options.zip else TarArchiveGenerator()
        generator.archive(root_path, files, destination)

        logger.info("Finished archive generation.")
        self.state = ProfileState.ARCHIVED
        return True


def _rule_view(rule: Rule) -> RuleView:
    return RuleView(
        title=rule.title,
        desc=rule.description,
        impact=rule.impact,
        tags=dict(rule.tags),
        checks=list(rule.checks),
        source_code=rule.source_code,
        source_location=rule.source_location,
        group_title=rule.group_title,
    )


def _is_empty_id(identifier: Hashable) -> bool:
    return identifier is None or str(identifier) == ""


def _is_blank(value: Any) -> bool:
    return value is None or str(value) == ""


def _to_float(value: Any) -> float:
    """Lenient numeric coercion: ``nil`` and unparsable text become 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return 0.0
