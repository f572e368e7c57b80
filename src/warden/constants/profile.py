"""Profile layout names and structural-check messages."""

from __future__ import annotations

METADATA_FILENAME: str = "profile.yml"
LEGACY_METADATA_FILENAME: str = "metadata.yml"

CONTROLS_DIRNAME: str = "controls"
LEGACY_CONTROLS_DIRNAME: str = "test"
LIBRARIES_DIRNAME: str = "libraries"

DEFAULT_CONTROL_SUFFIXES: tuple[str, ...] = (".ctl",)

DEFAULT_IMPACT: float = 0.5
MIN_IMPACT: float = 0.0
MAX_IMPACT: float = 1.0

MSG_LEGACY_METADATA: str = f"The use of `{LEGACY_METADATA_FILENAME}` is deprecated. Use `{METADATA_FILENAME}`."
MSG_LEGACY_CONTROLS_DIR: str = (
    f"Profile uses deprecated `{LEGACY_CONTROLS_DIRNAME}` directory, rename it to `{CONTROLS_DIRNAME}`."
)
MSG_NO_CONTROLS: str = "No controls or tests were defined."
MSG_EMPTY_CONTROL_ID: str = "Avoid controls with empty IDs"
MSG_UNSUPPORTED: str = "doesn't support: {entry}"
MSG_NO_TITLE: str = "Control {control_id} has no title"
MSG_NO_DESCRIPTION: str = "Control {control_id} has no description"
MSG_IMPACT_ABOVE: str = "Control {control_id} has impact > 1.0"
MSG_IMPACT_BELOW: str = "Control {control_id} has impact < 0.0"
MSG_NO_TESTS: str = "Control {control_id} has no tests defined"

ARCHIVE_EXTENSION_ZIP: str = "zip"
ARCHIVE_EXTENSION_TAR: str = "tar.gz"
