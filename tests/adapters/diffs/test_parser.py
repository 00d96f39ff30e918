from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from addrlibgen.adapters.diffs import (
    diff_versions_from_name,
    discover_diff_reports,
    parse_diff_lines,
    parse_diff_report,
)
from addrlibgen.domain.errors import IngestionError
from addrlibgen.domain.model import EntityCategory, MatchKind
from tests.support.builders import v
from tests.support.files import DIFF_HEADER

if TYPE_CHECKING:
    from pathlib import Path

SAMPLE = (
    DIFF_HEADER
    + "0x1436C69FE\t0x142C6201E\n"
    + "0x1436C70A4\t0x142C62630\n"
    + "0x1436CAE1D\t0x142C6065D\n"
    + "0x1430C7E4C\t0x14272DE5C\n"
    + "0x142E626D8\t0x1424D0528\n"
)


def test_rows_after_the_statistics_header() -> None:
    rows = parse_diff_lines(SAMPLE.splitlines(), left=v("1.5.97"), right=v("1.6.318"))

    assert [(row.left_address, row.right_address) for row in rows] == [
        (0x1436C69FE, 0x142C6201E),
        (0x1436C70A4, 0x142C62630),
        (0x1436CAE1D, 0x142C6065D),
        (0x1430C7E4C, 0x14272DE5C),
        (0x142E626D8, 0x1424D0528),
    ]
    assert all(row.kind is MatchKind.IDENTICAL and row.confidence == 1.0 for row in rows)
    assert all(row.category is None for row in rows)
    assert rows[0].left_version == "1.5.97"


def test_optional_columns_carry_category_confidence_and_kind() -> None:
    text = DIFF_HEADER + "0x10\t0x20\tGlobal\t0.75\tModified\n"

    (row,) = parse_diff_lines(text.splitlines(), left=v("1.0"), right=v("1.1"))

    assert row.category is EntityCategory.GLOBAL
    assert row.confidence == 0.75
    assert row.kind is MatchKind.MODIFIED


def test_rows_stop_at_first_blank_line() -> None:
    text = DIFF_HEADER + "0x10\t0x20\n\n0x30\t0x40\n"

    rows = parse_diff_lines(text.splitlines(), left=v("1.0"), right=v("1.1"))

    assert len(rows) == 1


def test_missing_end_marker_is_rejected() -> None:
    with pytest.raises(IngestionError, match="before 'Overall success:'"):
        parse_diff_lines(["Matched 5 offsets", "0x10\t0x20"], left=v("1.0"), right=v("1.1"))


def test_end_marker_must_be_followed_by_an_empty_line() -> None:
    lines = ["Overall success: 1%", "0x10\t0x20"]

    with pytest.raises(IngestionError, match="Expected an empty line"):
        parse_diff_lines(lines, left=v("1.0"), right=v("1.1"))


@pytest.mark.parametrize(
    "row",
    [
        "0x10",
        "0x10\t0x20\tfunction",
        "0xZZ\t0x20",
        "0x10\t0x20\tfunction\t1.5\tidentical",
        "0x10\t0x20\tsymbol\t1.0\tidentical",
        "0x10\t0x20\tfunction\t1.0\tguess",
    ],
)
def test_malformed_rows_are_rejected(row: str) -> None:
    lines = [*DIFF_HEADER.splitlines(), row]

    with pytest.raises(IngestionError, match="line"):
        parse_diff_lines(lines, left=v("1.0"), right=v("1.1"))


def test_parse_diff_report_reads_versions_from_file_name(tmp_path: Path) -> None:
    path = tmp_path / "1.5.97_1.6.318.txt"
    path.write_text(SAMPLE)

    report = parse_diff_report(path)

    assert (report.left, report.right) == (v("1.5.97"), v("1.6.318"))
    assert len(report.rows) == 5
    assert report.path == path


def test_report_mapping_a_version_onto_itself_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "1.2_1.2.0.txt"
    path.write_text(SAMPLE)

    with pytest.raises(IngestionError, match="onto itself"):
        parse_diff_report(path)


def test_parse_errors_name_the_report(tmp_path: Path) -> None:
    path = tmp_path / "1.0_1.1.txt"
    path.write_text("no marker here\n")

    with pytest.raises(IngestionError, match="1.0_1.1.txt"):
        parse_diff_report(path)


def test_diff_file_names() -> None:
    assert diff_versions_from_name("1.5.97_1.6.318.txt") == (v("1.5.97"), v("1.6.318"))
    assert diff_versions_from_name("idaexport_base.txt") is None
    assert diff_versions_from_name("1.5.97-1.6.318.txt") is None


def test_discover_diff_reports(tmp_path: Path) -> None:
    (tmp_path / "diffs").mkdir()
    (tmp_path / "diffs" / "1.0_1.1.txt").write_text("")
    (tmp_path / "0.9_1.0.txt").write_text("")
    (tmp_path / "idaexport_base.txt").write_text("")

    assert discover_diff_reports(tmp_path) == [
        tmp_path / "0.9_1.0.txt",
        tmp_path / "diffs" / "1.0_1.1.txt",
    ]
