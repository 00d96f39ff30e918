"""Public interface for the diff report adapter."""

from __future__ import annotations

from .parser import (
    DIFF_FILE_PATTERN,
    REPORT_END_MARKER,
    DiffReport,
    diff_versions_from_name,
    discover_diff_reports,
    parse_diff_lines,
    parse_diff_report,
)
from .schema import DiffMatchRecordModel
from .translator import DiffTranslation, build_diff_edge

__all__ = [
    "DIFF_FILE_PATTERN",
    "REPORT_END_MARKER",
    "DiffMatchRecordModel",
    "DiffReport",
    "DiffTranslation",
    "build_diff_edge",
    "diff_versions_from_name",
    "discover_diff_reports",
    "parse_diff_lines",
    "parse_diff_report",
]
