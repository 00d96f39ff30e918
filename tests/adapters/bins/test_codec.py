from __future__ import annotations

import struct

import pytest

from addrlibgen.adapters.bins import FORMAT_VERSION, MAGIC, decode_bin, encode_bin
from addrlibgen.domain.errors import InvariantViolation, MalformedBinError
from tests.support.builders import FUNCTION, make_table


def _raw_bin(
    sections: dict[int, list[tuple[int, int]]] | None = None,
    *,
    magic: bytes = MAGIC,
    format_version: int = FORMAT_VERSION,
    version: bytes = b"1.0",
    base: int = 0x1000,
    category_count: int = 4,
    tags: list[int] | None = None,
) -> bytes:
    sections = sections or {}
    out = bytearray(struct.pack("<4sHH", magic, format_version, len(version)))
    out += version
    out += struct.pack("<QH", base, category_count)
    for tag in tags if tags is not None else [0, 1, 2, 3]:
        pairs = sections.get(tag, [])
        out += struct.pack("<BI", tag, len(pairs))
        for entity_id, offset in pairs:
            out += struct.pack("<IQ", entity_id, offset)
    return bytes(out)


def test_encode_writes_documented_layout() -> None:
    table = make_table("1.0", base=0x1000, functions={0x1300: 2, 0x1100: 5})

    assert encode_bin(table) == _raw_bin({0: [(2, 0x300), (5, 0x100)]})


def test_round_trip_preserves_table() -> None:
    table = make_table(
        "1.6.640",
        base=0x140000000,
        functions={0x140001000: 0, 0x140001060: 1, 0x140001080: 7},
        globals_={0x142C0F30C: 3},
        strings={0x146A8C000: 0},
    )

    decoded = decode_bin(encode_bin(table))

    assert decoded == table
    assert str(decoded.version) == "1.6.640"


def test_empty_table_round_trips() -> None:
    table = make_table("2.0", base=0)

    assert decode_bin(encode_bin(table)) == table


def test_encode_rejects_one_id_at_two_addresses() -> None:
    table = make_table("1.0", functions={0x1100: 7, 0x1200: 7})

    with pytest.raises(InvariantViolation, match="more than one address"):
        encode_bin(table)


def test_encode_rejects_address_below_base() -> None:
    with pytest.raises(InvariantViolation, match="below the base address"):
        encode_bin(make_table("1.0", base=0x1000, functions={0x10: 0}))


def test_encode_rejects_ids_wider_than_32_bits() -> None:
    with pytest.raises(InvariantViolation, match="32 bits"):
        encode_bin(make_table("1.0", functions={0x1100: 2**32}))


def test_decode_rejects_non_ascending_ids() -> None:
    data = _raw_bin({0: [(3, 0x10), (1, 0x20), (2, 0x30)]})

    with pytest.raises(MalformedBinError, match="not ascending"):
        decode_bin(data)


def test_decode_rejects_duplicate_ids() -> None:
    with pytest.raises(MalformedBinError, match="Duplicate function ID 1"):
        decode_bin(_raw_bin({0: [(1, 0x10), (1, 0x20)]}))


def test_decode_rejects_duplicate_offsets() -> None:
    with pytest.raises(MalformedBinError, match="Duplicate global offset"):
        decode_bin(_raw_bin({1: [(1, 0x10), (2, 0x10)]}))


def test_decode_rejects_bad_magic() -> None:
    with pytest.raises(MalformedBinError, match="magic"):
        decode_bin(_raw_bin(magic=b"NOPE"))


def test_decode_rejects_unknown_format_version() -> None:
    with pytest.raises(MalformedBinError, match="Unsupported bin format version 2"):
        decode_bin(_raw_bin(format_version=2))


def test_decode_rejects_wrong_category_count() -> None:
    with pytest.raises(MalformedBinError, match="header declares 3"):
        decode_bin(_raw_bin(category_count=3))


def test_decode_rejects_out_of_order_tags() -> None:
    with pytest.raises(MalformedBinError, match="Expected category tag 0"):
        decode_bin(_raw_bin(tags=[1, 0, 2, 3]))


def test_decode_rejects_truncated_data() -> None:
    data = _raw_bin({0: [(1, 0x10)]})

    for cut in (3, 10, len(data) - 1):
        with pytest.raises(MalformedBinError, match="Truncated"):
            decode_bin(data[:cut])


def test_decode_rejects_trailing_bytes() -> None:
    with pytest.raises(MalformedBinError, match="trailing bytes"):
        decode_bin(_raw_bin() + b"\x00")


def test_decode_rejects_invalid_version_string() -> None:
    with pytest.raises(MalformedBinError, match="Invalid version string"):
        decode_bin(_raw_bin(version=b"one.two"))


def test_decoded_offsets_are_rebased() -> None:
    table = decode_bin(_raw_bin({0: [(4, 0x100)]}, base=0x140000000))

    assert table.ids_for(FUNCTION) == {0x140000100: 4}
