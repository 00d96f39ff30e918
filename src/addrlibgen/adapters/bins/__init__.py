"""Version bin codec and storage."""

from __future__ import annotations

from .codec import FORMAT_VERSION, MAGIC, decode_bin, encode_bin
from .store import (
    BIN_FILE_PATTERN,
    bin_filename,
    discover_bins,
    read_bin,
    version_from_bin_name,
    write_bin,
)

__all__ = [
    "BIN_FILE_PATTERN",
    "FORMAT_VERSION",
    "MAGIC",
    "bin_filename",
    "decode_bin",
    "discover_bins",
    "encode_bin",
    "read_bin",
    "version_from_bin_name",
    "write_bin",
]
