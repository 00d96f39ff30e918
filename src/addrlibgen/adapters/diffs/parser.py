"""Reader for ``<left>_<right>.txt`` diff reports.

A report opens with free-form statistics. The match list starts after the
line beginning with ``Overall success:`` and the empty line that must follow
it, and runs until the next blank line or the end of the file::

    Overall success: 18.454%

    0x1436C69FE\t0x142C6201E
    0x1436C70A4\t0x142C62630\tfunction\t0.87\tmodified
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from addrlibgen.common import read_text_lines
from addrlibgen.domain.errors import IngestionError
from addrlibgen.domain.model import Version

from .schema import DiffMatchRecordModel

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

DIFF_FILE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(\d+(?:\.\d+)+)_(\d+(?:\.\d+)+)\.txt$"
)
REPORT_END_MARKER: Final[str] = "Overall success:"

_SHORT_ROW: Final[int] = 2
_FULL_ROW: Final[int] = 5

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiffReport:
    """Parsed rows of one report, oriented from ``left`` to ``right``."""

    left: Version
    right: Version
    rows: tuple[DiffMatchRecordModel, ...]
    path: Path | None = None


def diff_versions_from_name(name: str) -> tuple[Version, Version] | None:
    match = DIFF_FILE_PATTERN.match(name)
    if match is None:
        return None
    return Version.parse(match.group(1)), Version.parse(match.group(2))


def discover_diff_reports(root: Path) -> list[Path]:
    return sorted(
        path
        for path in root.rglob("*_*.txt")
        if path.is_file() and DIFF_FILE_PATTERN.match(path.name)
    )


def parse_diff_lines(
    lines: Iterable[str],
    *,
    left: Version,
    right: Version,
) -> list[DiffMatchRecordModel]:
    """Skip the statistics header and validate every match row."""

    iterator = iter(enumerate(lines, start=1))
    for _, line in iterator:
        if line.startswith(REPORT_END_MARKER):
            following = next(iterator, None)
            if following is None or following[1].strip():
                raise IngestionError(f"Expected an empty line after '{REPORT_END_MARKER}'")
            break
    else:
        raise IngestionError(f"Reached the end of the report before '{REPORT_END_MARKER}'")

    rows: list[DiffMatchRecordModel] = []
    for line_number, line in iterator:
        if not line.strip():
            break
        rows.append(_parse_row(line, line_number, left=left, right=right))
    return rows


def parse_diff_report(path: Path) -> DiffReport:
    versions = diff_versions_from_name(path.name)
    if versions is None:
        raise IngestionError("File name is not '<left>_<right>.txt'", path=path)
    left, right = versions
    if left == right:
        raise IngestionError(f"Diff report maps version {left} onto itself", path=path)

    try:
        rows = parse_diff_lines(read_text_lines(path), left=left, right=right)
    except IngestionError as exc:
        if exc.path is not None:
            raise
        raise IngestionError(str(exc), path=path) from exc

    log.info("Loaded diff %s -> %s: %s rows", left, right, len(rows))
    return DiffReport(left=left, right=right, rows=tuple(rows), path=path)


def _parse_row(
    line: str,
    line_number: int,
    *,
    left: Version,
    right: Version,
) -> DiffMatchRecordModel:
    fields = line.strip().split("\t")
    if len(fields) not in (_SHORT_ROW, _FULL_ROW):
        raise IngestionError(
            f"Expected 2 or 5 tab-separated fields on line {line_number}, got {len(fields)}"
        )
    payload: dict[str, object] = {
        "left_version": left.text,
        "right_version": right.text,
        "left_address": fields[0],
        "right_address": fields[1],
    }
    if len(fields) == _FULL_ROW:
        payload.update(category=fields[2], confidence=fields[3], kind=fields[4])
    try:
        return DiffMatchRecordModel.model_validate(payload)
    except ValidationError as exc:
        raise IngestionError(f"Invalid match row on line {line_number}: {line!r}") from exc
