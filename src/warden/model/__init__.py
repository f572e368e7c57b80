"""Core data models for Warden."""

from .report import Finding, ReportSummary, ValidationReport
from .rule import CheckEntry, Rule, RuleRegistry

__all__ = [
    "CheckEntry",
    "Finding",
    "ReportSummary",
    "Rule",
    "RuleRegistry",
    "ValidationReport",
]
