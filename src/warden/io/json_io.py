"""Atomic JSON persistence for reports."""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import suppress
from pathlib import Path

from warden.constants.reporting import REPORT_TEMP_PREFIX, REPORT_TEMP_SUFFIX


def write_json_atomic(path: Path, payload: object) -> None:
    """Write *payload* next to *path* and rename it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=REPORT_TEMP_PREFIX,
            suffix=REPORT_TEMP_SUFFIX,
            delete=False,
        ) as handle:
            temp_name = handle.name
            json.dump(payload, handle, indent=2, default=str)
            handle.write("\n")
    except Exception:
        if temp_name:
            with suppress(FileNotFoundError):
                Path(temp_name).unlink()
        raise

    assert temp_name is not None
    os.replace(temp_name, path)
