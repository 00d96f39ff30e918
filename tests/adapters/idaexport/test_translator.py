from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from addrlibgen.adapters.idaexport import (
    BaseAddressRecordModel,
    EntityRecordModel,
    build_version_node,
    discover_export_directories,
    load_export_directory,
    name_hash,
)
from addrlibgen.domain.errors import IngestionError
from addrlibgen.domain.model import EntityCategory, EntityMeta
from tests.support.builders import v
from tests.support.files import write_export_dir

if TYPE_CHECKING:
    from pathlib import Path

BASE = 0x140000000


def test_load_export_directory(tmp_path: Path) -> None:
    directory = write_export_dir(
        tmp_path,
        "1.6.640",
        base=BASE,
        functions=[(BASE + 0x1000, 0x10), (BASE + 0x1060, 0xB)],
        globals_=[BASE + 0x2C0F30C],
        vtables=[BASE + 0x2C18670],
        names={BASE + 0x1000: "main", BASE + 0x5000: "orphan"},
    )

    node = load_export_directory(directory)

    assert node.version == v("1.6.640")
    assert node.base_address == BASE
    assert node.addresses(EntityCategory.FUNCTION) == [BASE + 0x1000, BASE + 0x1060]
    assert node.meta_for(EntityCategory.FUNCTION, BASE + 0x1000) == EntityMeta(
        size=0x10, name_hash=name_hash("main")
    )
    assert node.meta_for(EntityCategory.FUNCTION, BASE + 0x1060) == EntityMeta(size=0xB)
    assert node.addresses(EntityCategory.VTABLE) == [BASE + 0x2C18670]
    assert node.addresses(EntityCategory.STRING) == []
    assert node.sources == (str(directory),)


def test_missing_required_file_is_an_ingestion_error(tmp_path: Path) -> None:
    directory = write_export_dir(tmp_path, "1.0.0", base=BASE)
    (directory / "idaexport_global.txt").unlink()

    with pytest.raises(IngestionError, match="Missing idaexport_global.txt"):
        load_export_directory(directory)


def test_parse_failure_names_the_file(tmp_path: Path) -> None:
    directory = write_export_dir(tmp_path, "1.0.0", base=BASE)
    (directory / "idaexport_func.txt").write_text("version\t7\n")

    with pytest.raises(IngestionError, match="idaexport_func.txt"):
        load_export_directory(directory)


def test_address_below_base_is_an_ingestion_error(tmp_path: Path) -> None:
    directory = write_export_dir(tmp_path, "1.0.0", base=BASE, globals_=[0x1000])

    with pytest.raises(IngestionError, match="below the base address"):
        load_export_directory(directory)


def test_first_record_for_an_address_wins() -> None:
    base = BaseAddressRecordModel(version="1.0", base_address=0x1000)
    records = [
        EntityRecordModel(category=EntityCategory.FUNCTION, address=0x1100, size=4),
        EntityRecordModel(category=EntityCategory.FUNCTION, address=0x1100, size=8),
        EntityRecordModel(category=EntityCategory.GLOBAL, address=0x1100),
    ]

    node = build_version_node(base, records)

    assert node.meta_for(EntityCategory.FUNCTION, 0x1100) == EntityMeta(size=4)
    assert node.meta_for(EntityCategory.GLOBAL, 0x1100) == EntityMeta()


def test_name_hash_is_stable() -> None:
    assert name_hash("main") == name_hash("main")
    assert name_hash("main") != name_hash("WinMain")
    assert 0 <= name_hash("main") < 2**64


def test_discover_export_directories(tmp_path: Path) -> None:
    write_export_dir(tmp_path / "exports", "1.6.640", base=BASE)
    write_export_dir(tmp_path, "1.5.97", base=BASE)
    (tmp_path / "notes").mkdir()
    (tmp_path / "1.7").write_text("not a directory")

    assert discover_export_directories(tmp_path) == [
        tmp_path / "1.5.97",
        tmp_path / "exports" / "1.6.640",
    ]
