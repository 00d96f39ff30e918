"""Filesystem access for version bins."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING, Final

from addrlibgen.domain.errors import BinWriteError, MalformedBinError
from addrlibgen.domain.model import Version

from .codec import decode_bin, encode_bin

if TYPE_CHECKING:
    from pathlib import Path

    from addrlibgen.domain.model import IdTable

BIN_FILE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^version-(\d+(?:-\d+)*)\.bin$")
BIN_NAME_COMPONENTS: Final[int] = 4

log = getLogger(__name__)


def bin_filename(version: Version) -> str:
    """Name the bin for ``version``, padded to four components: ``version-1-10-163-0.bin``."""

    parts = version.parts + (0,) * (BIN_NAME_COMPONENTS - len(version.parts))
    return f"version-{'-'.join(str(part) for part in parts)}.bin"


def version_from_bin_name(name: str) -> Version | None:
    match = BIN_FILE_PATTERN.match(name)
    if match is None:
        return None
    parts = tuple(int(part) for part in match.group(1).split("-"))
    return Version(parts=parts)


def discover_bins(root: Path) -> list[Path]:
    """Return every ``version-*.bin`` file below ``root``, sorted by path."""

    return sorted(
        path
        for path in root.rglob("version-*.bin")
        if path.is_file() and BIN_FILE_PATTERN.match(path.name)
    )


def read_bin(path: Path) -> IdTable:
    """Decode the bin at ``path``; raise ``MalformedBinError`` naming the file."""

    try:
        data = path.read_bytes()
    except OSError as exc:
        raise MalformedBinError(f"Cannot read version bin {path}: {exc}") from exc
    try:
        table = decode_bin(data)
    except MalformedBinError as exc:
        raise MalformedBinError(f"{exc}: {path}") from exc

    named = version_from_bin_name(path.name)
    if named is not None and named != table.version:
        raise MalformedBinError(
            f"Bin header declares version {table.version} but the file is named for "
            f"{named}: {path}"
        )
    log.debug("Read bin %s: version=%s, entities=%s", path, table.version, table.entity_count())
    return table


def write_bin(directory: Path, table: IdTable) -> Path:
    """Encode ``table`` and write it next to the other bins.

    The table is encoded before the target is touched, so an
    ``InvariantViolation`` leaves no file behind. An existing target is never
    replaced.
    """

    payload = encode_bin(table)
    path = directory / bin_filename(table.version)
    try:
        handle = path.open("xb")
    except FileExistsError as exc:
        raise BinWriteError(f"Refusing to overwrite existing bin: {path}") from exc
    except OSError as exc:
        raise BinWriteError(f"Cannot create bin {path}: {exc}") from exc

    try:
        with handle:
            handle.write(payload)
    except OSError as exc:
        path.unlink(missing_ok=True)
        raise BinWriteError(f"Failed writing bin {path}: {exc}") from exc

    log.info("Wrote %s (%s bytes)", path, len(payload))
    return path
