"""Human-readable stdout rendering of a validation report."""

from __future__ import annotations

from warden.constants.branding import ASCII_LOGO_LINES, CHECK_SUMMARY_TITLE
from warden.constants.reporting import ANSI_DIM, ANSI_GREEN, ANSI_RED, ANSI_RESET, ANSI_YELLOW
from warden.model.report import Finding, ValidationReport


def _colorize(text: str, color: str) -> str:
    return f"{color}{text}{ANSI_RESET}"


def _location(finding: Finding) -> str:
    if finding.file is None:
        return "-"
    if finding.line:
        return f"{finding.file}:{finding.line}"
    return finding.file


class StdoutReporter:
    """Formats a :class:`ValidationReport` for the terminal."""

    def __init__(self, report: ValidationReport, *, color: bool = True, verbose: bool = False) -> None:
        self._report = report
        self._color = color
        self._verbose = verbose

    def render(self) -> str:
        """Render the full report as a single string."""
        sections = [
            self._render_header(),
            self._render_findings("Errors", self._report.errors, ANSI_RED),
            self._render_findings("Warnings", self._report.warnings, ANSI_YELLOW),
        ]
        return "\n".join(section for section in sections if section)

    def _render_header(self) -> str:
        summary = self._report.summary
        sep = "  " + "─" * 38
        verdict = "valid" if summary.valid else "invalid"
        if self._color:
            verdict = _colorize(verdict, ANSI_GREEN if summary.valid else ANSI_RED)

        lines = [
            "",
            f"  {ASCII_LOGO_LINES[0]}",
            f"  {ASCII_LOGO_LINES[1]}",
            f"  {CHECK_SUMMARY_TITLE}",
            sep,
            "",
            f"  Profile     {summary.profile_name or '-'}",
            f"  Location    {summary.location or '-'}",
            f"  Controls    {summary.controls}",
            f"  Result      {verdict}",
            f"  Findings    {len(self._report.errors)} error(s) / {len(self._report.warnings)} warning(s)",
        ]
        if self._verbose:
            timestamp = f"  Checked at  {summary.timestamp}"
            lines.append(_colorize(timestamp, ANSI_DIM) if self._color else timestamp)
        lines.append("")
        return "\n".join(lines)

    def _render_findings(self, title: str, findings: tuple[Finding, ...], color: str) -> str:
        if not findings:
            return ""
        heading = _colorize(title, color) if self._color else title
        lines = [f"  {heading}"]
        for finding in findings:
            control = f" [{finding.control_id}]" if finding.control_id not in (None, "") and self._verbose else ""
            lines.append(f"    {_location(finding)}{control}  {finding.message}")
        lines.append("")
        return "\n".join(lines)
