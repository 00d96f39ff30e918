from __future__ import annotations

from .text import blank_to_none, parse_hex, read_text_lines

__all__ = [
    "blank_to_none",
    "parse_hex",
    "read_text_lines",
]
