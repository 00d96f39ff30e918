"""Turn an export directory into a ``VersionNode``."""

from __future__ import annotations

import hashlib
import re
from logging import getLogger
from typing import TYPE_CHECKING, Final

from addrlibgen.domain.errors import IngestionError
from addrlibgen.domain.model import EntityMeta, Version, VersionNode, empty_entity_tables

from .parser import (
    BASE_FILE,
    FUNCTION_FILE,
    GLOBAL_FILE,
    NAME_FILE,
    STRING_FILE,
    VTABLE_FILE,
    parse_base_address,
    parse_export_file,
    parse_function_records,
    parse_global_records,
    parse_name_hints,
    parse_string_records,
    parse_vtable_records,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from .schema import BaseAddressRecordModel, EntityRecordModel

EXPORT_DIRECTORY_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d+(?:\.\d+)+$")

log = getLogger(__name__)


def name_hash(name: str) -> int:
    """Stable 64-bit hash of a symbol name."""

    digest = hashlib.blake2b(name.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "little")


def discover_export_directories(root: Path) -> list[Path]:
    """Return every directory below ``root`` named like a dotted version, sorted."""

    candidates = [root, *root.rglob("*")]
    return sorted(
        path
        for path in candidates
        if path.is_dir() and EXPORT_DIRECTORY_PATTERN.match(path.name)
    )


def load_export_directory(directory: Path) -> VersionNode:
    """Parse every export file of ``directory``; optional files may be absent."""

    try:
        version = Version.parse(directory.name)
    except ValueError as exc:
        raise IngestionError("Directory name is not a version", path=directory) from exc

    for required in (BASE_FILE, FUNCTION_FILE, GLOBAL_FILE):
        if not (directory / required).is_file():
            raise IngestionError(f"Missing {required}", path=directory)

    base = parse_export_file(
        directory / BASE_FILE,
        lambda lines: parse_base_address(lines, version=version.text),
    )
    records = [
        *parse_export_file(directory / FUNCTION_FILE, parse_function_records),
        *parse_export_file(directory / GLOBAL_FILE, parse_global_records),
    ]
    if (directory / VTABLE_FILE).is_file():
        records.extend(parse_export_file(directory / VTABLE_FILE, parse_vtable_records))
    if (directory / STRING_FILE).is_file():
        records.extend(parse_export_file(directory / STRING_FILE, parse_string_records))
    name_hints: dict[int, str] = {}
    if (directory / NAME_FILE).is_file():
        name_hints = parse_export_file(directory / NAME_FILE, parse_name_hints)

    try:
        node = build_version_node(base, records, name_hints=name_hints, source=str(directory))
    except IngestionError as exc:
        raise IngestionError(str(exc), path=directory) from exc

    log.info(
        "Loaded export %s: base=0x%X, entities=%s",
        node.version,
        node.base_address,
        node.entity_count(),
    )
    return node


def build_version_node(
    base: BaseAddressRecordModel,
    records: Iterable[EntityRecordModel],
    *,
    name_hints: Mapping[int, str] | None = None,
    source: str | None = None,
) -> VersionNode:
    """Group entity records by category, keyed by address.

    The first record for an address wins within a category. Name hints attach
    to every category that owns the hinted address.
    """

    tables = empty_entity_tables()
    duplicates = 0
    for record in records:
        if record.address < base.base_address:
            raise IngestionError(
                f"{record.category} address 0x{record.address:X} lies below the base "
                f"address 0x{base.base_address:X}"
            )
        table = tables[record.category]
        if record.address in table:
            duplicates += 1
            continue
        hint = record.name_hint
        table[record.address] = EntityMeta(
            size=record.size,
            name_hash=name_hash(hint) if hint is not None else None,
        )

    for address, name in sorted((name_hints or {}).items()):
        for table in tables.values():
            meta = table.get(address)
            if meta is not None and meta.name_hash is None:
                table[address] = EntityMeta(size=meta.size, name_hash=name_hash(name))

    if duplicates:
        log.debug("Ignored %s duplicate entity records for %s", duplicates, base.version)

    return VersionNode(
        version=base.parsed_version,
        base_address=base.base_address,
        entities=tables,
        sources=(source,) if source else (),
    )
