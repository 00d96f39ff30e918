"""Helpers shared by the line-oriented text parsers."""

from __future__ import annotations

import string
from typing import TYPE_CHECKING

from addrlibgen.domain.errors import IngestionError

if TYPE_CHECKING:
    from pathlib import Path

_HEX_DIGITS = frozenset(string.hexdigits)


def parse_hex(value: object) -> object:
    """Turn ``"140001000"`` or ``"0x140001000"`` into an int; leave other values alone."""

    if not isinstance(value, str):
        return value
    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if not text or not _HEX_DIGITS.issuperset(text):
        raise ValueError(f"Invalid hexadecimal value: {value!r}")
    return int(text, 16)


def blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def read_text_lines(path: Path) -> list[str]:
    """Return the lines of ``path`` without line endings."""

    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise IngestionError(f"Cannot read file ({exc.strerror})", path=path) from exc
    return text.splitlines()
