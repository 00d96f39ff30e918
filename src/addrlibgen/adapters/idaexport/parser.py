"""Readers for the tab-separated ``idaexport_*.txt`` files.

Every file opens with ``version\\t1``. Records follow one per line until the
first blank line or the end of the file. Addresses are hexadecimal without a
prefix, exactly as IDA prints them.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final, TypeAlias, TypeVar

from pydantic import ValidationError

from addrlibgen.common import read_text_lines
from addrlibgen.domain.errors import IngestionError
from addrlibgen.domain.model import EntityCategory

from .schema import BaseAddressRecordModel, EntityRecordModel

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence
    from pathlib import Path

BASE_FILE: Final[str] = "idaexport_base.txt"
FUNCTION_FILE: Final[str] = "idaexport_func.txt"
GLOBAL_FILE: Final[str] = "idaexport_global.txt"
VTABLE_FILE: Final[str] = "idaexport_vtable.txt"
STRING_FILE: Final[str] = "idaexport_string.txt"
NAME_FILE: Final[str] = "idaexport_name.txt"

SUPPORTED_FORMAT_VERSION: Final[str] = "1"

_RowBuilder: TypeAlias = "Callable[[list[str]], dict[str, object]]"

_T = TypeVar("_T")

log = getLogger(__name__)


def parse_base_address(lines: Sequence[str], *, version: str) -> BaseAddressRecordModel:
    """Parse the contents of ``idaexport_base.txt``."""

    _check_format_header(lines)
    if len(lines) < 2:
        raise IngestionError("Missing base address line")
    fields = lines[1].rstrip("\r\n").split("\t")
    if len(fields) < 2 or fields[0] != "baseaddress":
        raise IngestionError(f"Expected 'baseaddress\\t<hex>' on line 2, got {lines[1]!r}")
    try:
        return BaseAddressRecordModel(version=version, base_address=fields[1])
    except ValidationError as exc:
        raise IngestionError(f"Invalid base address line {lines[1]!r}") from exc


def parse_function_records(lines: Sequence[str]) -> list[EntityRecordModel]:
    return _parse_entity_lines(lines, tag="func", builder=_function_row, min_fields=3)


def parse_global_records(lines: Sequence[str]) -> list[EntityRecordModel]:
    return _parse_entity_lines(
        lines,
        tag="global",
        builder=_sized_row(EntityCategory.GLOBAL, has_size=False),
    )


def parse_vtable_records(lines: Sequence[str]) -> list[EntityRecordModel]:
    return _parse_entity_lines(
        lines,
        tag="vtable",
        builder=_sized_row(EntityCategory.VTABLE, has_size=True),
    )


def parse_string_records(lines: Sequence[str]) -> list[EntityRecordModel]:
    return _parse_entity_lines(
        lines,
        tag="string",
        builder=_sized_row(EntityCategory.STRING, has_size=True),
    )


def parse_name_hints(lines: Sequence[str]) -> dict[int, str]:
    """Map address -> symbol name; the first name listed for an address wins."""

    hints: dict[int, str] = {}
    for line_number, fields in _records(lines, tag="name", min_fields=2):
        try:
            record = EntityRecordModel(
                category=EntityCategory.FUNCTION,
                address=fields[1],
                name_hint=fields[2] if len(fields) > 2 else None,
            )
        except ValidationError as exc:
            raise IngestionError(f"Invalid name record on line {line_number}") from exc
        if record.name_hint is not None:
            hints.setdefault(record.address, record.name_hint)
    return hints


def parse_export_file(
    path: Path,
    parse: Callable[[Sequence[str]], _T],
) -> _T:
    """Read ``path`` and run ``parse`` over its lines, naming the file on failure."""

    lines = read_text_lines(path)
    try:
        return parse(lines)
    except IngestionError as exc:
        if exc.path is not None:
            raise
        raise IngestionError(str(exc), path=path) from exc


def _parse_entity_lines(
    lines: Sequence[str],
    *,
    tag: str,
    builder: _RowBuilder,
    min_fields: int = 2,
) -> list[EntityRecordModel]:
    records: list[EntityRecordModel] = []
    for line_number, fields in _records(lines, tag=tag, min_fields=min_fields):
        try:
            records.append(EntityRecordModel.model_validate(builder(fields)))
        except (ValidationError, ValueError) as exc:
            raise IngestionError(f"Invalid {tag} record on line {line_number}: {exc}") from exc
    log.debug("Parsed %s %s records", len(records), tag)
    return records


def _function_row(fields: list[str]) -> dict[str, object]:
    start = _hex_field(fields[1])
    end = _hex_field(fields[2])
    if end < start:
        raise ValueError(f"function end 0x{end:X} precedes start 0x{start:X}")
    return {"category": EntityCategory.FUNCTION, "address": start, "size": end - start}


def _sized_row(category: EntityCategory, *, has_size: bool) -> _RowBuilder:
    def build(fields: list[str]) -> dict[str, object]:
        row: dict[str, object] = {"category": category, "address": fields[1]}
        if has_size and len(fields) > 2 and fields[2].strip():
            row["size"] = fields[2]
        return row

    return build


def _hex_field(value: str) -> int:
    try:
        return int(value.strip(), 16)
    except ValueError as exc:
        raise ValueError(f"invalid hexadecimal value {value!r}") from exc


def _check_format_header(lines: Sequence[str]) -> None:
    if not lines:
        raise IngestionError("Empty export file")
    fields = lines[0].strip().split("\t")
    if len(fields) != 2 or fields[0] != "version":
        raise IngestionError(f"Expected 'version\\t1' header, got {lines[0]!r}")
    if fields[1] != SUPPORTED_FORMAT_VERSION:
        raise IngestionError(f"Unsupported export format version: {fields[1]}")


def _records(
    lines: Sequence[str],
    *,
    tag: str,
    min_fields: int,
) -> Iterator[tuple[int, list[str]]]:
    _check_format_header(lines)
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            return
        fields = line.rstrip("\r\n").split("\t")
        if fields[0] != tag or len(fields) < min_fields:
            raise IngestionError(f"Expected a '{tag}' record on line {line_number}, got {line!r}")
        yield line_number, fields
