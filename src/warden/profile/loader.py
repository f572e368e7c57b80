"""Evaluate every control file of a profile into per-file rule registries."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import TextIO

from warden.dsl.context import RuleContext
from warden.exceptions import ProfileLoadTimeout, UnsupportedPlatformError
from warden.model.rule import RuleRegistry
from warden.profile.metadata import Metadata
from warden.profile.sources import DirectorySourceReader
from warden.resources import Backend, build_resources

logger = logging.getLogger(__name__)


def load_profile_rules(
    reader: DirectorySourceReader,
    *,
    backend: Backend,
    metadata: Metadata | None = None,
    ignore_supports: bool = False,
    workers: int = 1,
    timeout: float | None = None,
    output: TextIO | None = None,
) -> dict[str, RuleRegistry]:
    """Load libraries, then every control file, and group rules by file.

    File keys are relative to the profile root. Library files run first in
    a shared context and their top-level locals are visible to every
    control file. With ``workers > 1`` control files are evaluated on a
    thread pool; results are merged in file order once all of them finish.
    Evaluation checks the deadline before every statement, and once loading
    fails or times out the remaining workers stop at their next statement.
    """
    metadata = metadata or reader.metadata
    if not ignore_supports and not metadata.supports_platform(backend.os_info()):
        raise UnsupportedPlatformError(
            f"Profile {metadata.params.get('name')!r} does not support the target platform {dict(backend.os_info())!r}"
        )

    deadline = None if timeout is None else time.monotonic() + timeout
    resources = build_resources(backend)
    target = reader.target
    cancelled = threading.Event()

    def checkpoint() -> None:
        if cancelled.is_set():
            raise ProfileLoadTimeout("Profile loading was cancelled")
        _check_deadline(deadline, timeout)

    library_context = RuleContext(resources=resources, output=output, checkpoint=checkpoint)
    for ref in sorted(reader.libraries):
        logger.debug("Loading library %s", ref)
        library_context.load(reader.libraries[ref], file=target.abs_path(ref))
    variables = library_context.variables

    def load_file(ref: str) -> RuleRegistry:
        context = RuleContext(resources=resources, variables=variables, output=output, checkpoint=checkpoint)
        context.load(reader.tests[ref], file=target.abs_path(ref))
        return context.rules

    refs = sorted(reader.tests)
    registries: list[RuleRegistry] = []
    if workers <= 1 or len(refs) <= 1:
        for ref in refs:
            _check_deadline(deadline, timeout)
            registries.append(load_file(ref))
        _check_deadline(deadline, timeout)
    else:
        registries = _load_concurrently(
            load_file, refs, workers=workers, deadline=deadline, timeout=timeout, cancelled=cancelled
        )

    return _group_by_file(registries, prefix=target.prefix)


def _load_concurrently(
    load_file: Callable[[str], RuleRegistry],
    refs: list[str],
    *,
    workers: int,
    deadline: float | None,
    timeout: float | None,
    cancelled: threading.Event,
) -> list[RuleRegistry]:
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="warden-load")
    try:
        futures = [executor.submit(load_file, ref) for ref in refs]
        remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
        done, not_done = wait(futures, timeout=remaining, return_when=FIRST_EXCEPTION)
        for future in done:
            error = future.exception()
            if error is not None:
                raise error
        if not_done:
            raise ProfileLoadTimeout(f"Loading profile exceeded {timeout} second(s); partial results discarded")
        return [future.result() for future in futures]
    finally:
        # Running workers stop at their next statement.
        cancelled.set()
        executor.shutdown(wait=True, cancel_futures=True)


def _check_deadline(deadline: float | None, timeout: float | None) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise ProfileLoadTimeout(f"Loading profile exceeded {timeout} second(s); partial results discarded")


def _group_by_file(registries: list[RuleRegistry], *, prefix: str) -> dict[str, RuleRegistry]:
    grouped: dict[str, RuleRegistry] = {}
    for registry in registries:
        for identifier, rule in registry.items():
            file = rule.source_file
            if file.startswith(prefix):
                file = file[len(prefix) :]
            group = grouped.setdefault(file, RuleRegistry())
            merged = group.register(identifier, lambda rule=rule: rule)
            if merged is not rule:
                merged.checks.extend(rule.checks)
    return grouped
