"""Tests for terminal rendering of check reports."""

from __future__ import annotations

from warden.constants.reporting import ANSI_GREEN, ANSI_RED
from warden.model import Finding, ReportSummary, ValidationReport
from warden.reporting import StdoutReporter


def _report(*, errors: tuple[Finding, ...] = (), warnings: tuple[Finding, ...] = ()) -> ValidationReport:
    return ValidationReport(
        summary=ReportSummary(
            valid=not errors,
            timestamp="2024-01-01T00:00:00+00:00",
            location="/profiles/web",
            profile_name="web-baseline",
            controls=3,
        ),
        errors=errors,
        warnings=warnings,
    )


def test_render_header_without_findings() -> None:
    output = StdoutReporter(_report(), color=False).render()

    assert "Profile     web-baseline" in output
    assert "Location    /profiles/web" in output
    assert "Controls    3" in output
    assert "Result      valid" in output
    assert "Errors" not in output
    assert "Warnings" not in output
    assert "Checked at" not in output


def test_render_findings_with_locations() -> None:
    report = _report(
        errors=(Finding("controls/a.ctl", 4, None, "", "Avoid controls with empty IDs"),),
        warnings=(Finding(None, None, None, None, "No controls or tests were defined."),),
    )

    output = StdoutReporter(report, color=False).render()

    assert "Result      invalid" in output
    assert "controls/a.ctl:4  Avoid controls with empty IDs" in output
    assert "    -  No controls or tests were defined." in output
    assert "1 error(s) / 1 warning(s)" in output


def test_verbose_shows_control_ids_and_timestamp() -> None:
    report = _report(warnings=(Finding("controls/a.ctl", 2, None, "c-1", "Control c-1 has no title"),))

    output = StdoutReporter(report, color=False, verbose=True).render()

    assert "controls/a.ctl:2 [c-1]  Control c-1 has no title" in output
    assert "Checked at  2024-01-01T00:00:00+00:00" in output


def test_color_marks_verdict() -> None:
    assert ANSI_GREEN in StdoutReporter(_report()).render()
    invalid = _report(errors=(Finding("profile.yml", 0, 0, None, "Missing profile name in profile.yml"),))
    assert ANSI_RED in StdoutReporter(invalid).render()
