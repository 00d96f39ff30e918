"""Binary encoding of version bins.

Layout, little-endian::

    magic            4s   b"ALIB"
    format version   u16  1
    version length   u16
    version string   UTF-8, ``version length`` bytes
    base address     u64
    category count   u16  4
    per category, in CATEGORY_ORDER:
        tag          u8   index of the category in CATEGORY_ORDER
        count        u32
        count x (id: u32, offset: u64), ascending by id

``offset`` is the entity address minus the base address. Decoding rejects
anything that ``encode_bin`` would not have produced.
"""

from __future__ import annotations

import struct
from typing import TYPE_CHECKING, Final

from addrlibgen.domain.errors import InvariantViolation, MalformedBinError
from addrlibgen.domain.model import CATEGORY_ORDER, IdTable, Version

if TYPE_CHECKING:
    from addrlibgen.domain.model import Address, EntityCategory, EntityId

MAGIC: Final[bytes] = b"ALIB"
FORMAT_VERSION: Final[int] = 1

_PREAMBLE: Final[struct.Struct] = struct.Struct("<4sHH")
_BASE: Final[struct.Struct] = struct.Struct("<QH")
_SECTION: Final[struct.Struct] = struct.Struct("<BI")
_PAIR: Final[struct.Struct] = struct.Struct("<IQ")

_U16_MAX: Final[int] = 0xFFFF
_U32_MAX: Final[int] = 0xFFFF_FFFF
_U64_MAX: Final[int] = 0xFFFF_FFFF_FFFF_FFFF


def encode_bin(table: IdTable) -> bytes:
    """Serialize ``table``; raise ``InvariantViolation`` if it is not encodable."""

    table.validate()
    version_bytes = table.version.text.encode("utf-8")
    if len(version_bytes) > _U16_MAX:
        raise InvariantViolation(f"Version string too long to encode: {table.version}")
    if not 0 <= table.base_address <= _U64_MAX:
        raise InvariantViolation(f"Base address out of range: {table.base_address}")

    out = bytearray()
    out.extend(_PREAMBLE.pack(MAGIC, FORMAT_VERSION, len(version_bytes)))
    out.extend(version_bytes)
    out.extend(_BASE.pack(table.base_address, len(CATEGORY_ORDER)))

    for tag, category in enumerate(CATEGORY_ORDER):
        pairs = sorted(
            (entity_id, address - table.base_address)
            for address, entity_id in table.ids_for(category).items()
        )
        if len(pairs) > _U32_MAX:
            raise InvariantViolation(f"Too many {category} entries for {table.version}")
        out.extend(_SECTION.pack(tag, len(pairs)))
        for entity_id, offset in pairs:
            if not 0 <= entity_id <= _U32_MAX:
                raise InvariantViolation(
                    f"{category} ID {entity_id} of {table.version} does not fit in 32 bits"
                )
            if offset > _U64_MAX:
                raise InvariantViolation(
                    f"{category} offset 0x{offset:X} of {table.version} does not fit in 64 bits"
                )
            out.extend(_PAIR.pack(entity_id, offset))

    return bytes(out)


def decode_bin(data: bytes) -> IdTable:
    """Parse bytes written by ``encode_bin``; raise ``MalformedBinError`` otherwise."""

    reader = _Reader(data)
    magic, format_version, version_length = reader.unpack(_PREAMBLE, "header")
    if magic != MAGIC:
        raise MalformedBinError(f"Unexpected magic {magic!r}, expected {MAGIC!r}")
    if format_version != FORMAT_VERSION:
        raise MalformedBinError(f"Unsupported bin format version {format_version}")

    raw_version = reader.take(version_length, "version string")
    try:
        version = Version.parse(raw_version.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedBinError(f"Invalid version string {raw_version!r}") from exc

    base_address, category_count = reader.unpack(_BASE, "base address")
    if category_count != len(CATEGORY_ORDER):
        raise MalformedBinError(
            f"Expected {len(CATEGORY_ORDER)} categories, header declares {category_count}"
        )

    ids: dict[EntityCategory, dict[Address, EntityId]] = {}
    for expected_tag, category in enumerate(CATEGORY_ORDER):
        tag, count = reader.unpack(_SECTION, f"{category} section header")
        if tag != expected_tag:
            raise MalformedBinError(
                f"Expected category tag {expected_tag} ({category}), found {tag}"
            )
        if reader.remaining < count * _PAIR.size:
            raise MalformedBinError(
                f"Truncated {category} section: {count} entries declared, "
                f"{reader.remaining} bytes left"
            )
        mapping: dict[Address, EntityId] = {}
        previous: EntityId | None = None
        for _ in range(count):
            entity_id, offset = reader.unpack(_PAIR, f"{category} entry")
            if previous is not None and entity_id == previous:
                raise MalformedBinError(f"Duplicate {category} ID {entity_id}")
            if previous is not None and entity_id < previous:
                raise MalformedBinError(
                    f"{category} IDs are not ascending: {entity_id} follows {previous}"
                )
            address = base_address + offset
            if address > _U64_MAX:
                raise MalformedBinError(f"{category} offset 0x{offset:X} overflows the address")
            if address in mapping:
                raise MalformedBinError(f"Duplicate {category} offset 0x{offset:X}")
            mapping[address] = entity_id
            previous = entity_id
        ids[category] = mapping

    if reader.remaining:
        raise MalformedBinError(f"{reader.remaining} trailing bytes after the last category")

    return IdTable(version=version, base_address=base_address, ids=ids)


class _Reader:
    __slots__ = ("_data", "_position")

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self._position = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._position

    def take(self, size: int, what: str) -> bytes:
        if self.remaining < size:
            raise MalformedBinError(
                f"Truncated bin while reading {what}: need {size} bytes, have {self.remaining}"
            )
        chunk = bytes(self._data[self._position : self._position + size])
        self._position += size
        return chunk

    def unpack(self, layout: struct.Struct, what: str) -> tuple:
        if self.remaining < layout.size:
            raise MalformedBinError(
                f"Truncated bin while reading {what}: need {layout.size} bytes, "
                f"have {self.remaining}"
            )
        values = layout.unpack_from(self._data, self._position)
        self._position += layout.size
        return values
