from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from addrlibgen.adapters.bins import (
    bin_filename,
    discover_bins,
    encode_bin,
    read_bin,
    version_from_bin_name,
    write_bin,
)
from addrlibgen.domain.errors import BinWriteError, InvariantViolation, MalformedBinError
from tests.support.builders import make_table, v

if TYPE_CHECKING:
    from pathlib import Path


def test_bin_filename_pads_to_four_components() -> None:
    assert bin_filename(v("1.6.640")) == "version-1-6-640-0.bin"
    assert bin_filename(v("1.10.163.0")) == "version-1-10-163-0.bin"
    assert bin_filename(v("2")) == "version-2-0-0-0.bin"
    assert bin_filename(v("1.2.3.4.5")) == "version-1-2-3-4-5.bin"
    assert version_from_bin_name("version-1-6-640-0.bin") == v("1.6.640")
    assert version_from_bin_name("version-1-6-640.bin") == v("1.6.640")
    assert version_from_bin_name("version-1-6-640.txt") is None


def test_write_then_read(tmp_path: Path) -> None:
    table = make_table("1.2.3", functions={0x1100: 0, 0x1200: 1})

    path = write_bin(tmp_path, table)

    assert path == tmp_path / "version-1-2-3-0.bin"
    assert read_bin(path) == table


def test_existing_bin_is_never_overwritten(tmp_path: Path) -> None:
    original = make_table("1.0", functions={0x1100: 0})
    path = write_bin(tmp_path, original)
    before = path.read_bytes()

    with pytest.raises(BinWriteError, match="Refusing to overwrite"):
        write_bin(tmp_path, make_table("1.0", functions={0x1100: 9}))

    assert path.read_bytes() == before


def test_invalid_table_leaves_no_file(tmp_path: Path) -> None:
    with pytest.raises(InvariantViolation):
        write_bin(tmp_path, make_table("1.0", functions={0x1100: 1, 0x1200: 1}))

    assert list(tmp_path.iterdir()) == []


def test_read_names_the_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "version-1-0.bin"
    path.write_bytes(b"ALIB\x01")

    with pytest.raises(MalformedBinError, match="version-1-0.bin"):
        read_bin(path)


def test_read_rejects_header_that_disagrees_with_file_name(tmp_path: Path) -> None:
    path = tmp_path / "version-2-0.bin"
    path.write_bytes(encode_bin(make_table("1.0")))

    with pytest.raises(MalformedBinError, match="named for 2.0"):
        read_bin(path)


def test_discover_bins_finds_nested_bins_only(tmp_path: Path) -> None:
    nested = tmp_path / "old"
    nested.mkdir()
    (nested / "version-1-0.bin").write_bytes(b"")
    (tmp_path / "version-1-1.bin").write_bytes(b"")
    (tmp_path / "version-latest.bin").write_bytes(b"")
    (tmp_path / "notes.bin").write_bytes(b"")

    assert discover_bins(tmp_path) == [nested / "version-1-0.bin", tmp_path / "version-1-1.bin"]
