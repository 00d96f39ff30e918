"""Error taxonomy shared by the engine, the codec and the ingestors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from addrlibgen.domain.model import Version


class AddrLibError(Exception):
    """Base class for every error raised by addrlibgen."""


class IngestionError(AddrLibError):
    """Raised when one export directory or diff report cannot be parsed.

    Only the offending input is dropped; the run continues without it.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path = path
        super().__init__(f"{message}: {path}" if path is not None else message)


class GraphConstructionError(AddrLibError):
    """Raised when the inputs contradict each other and no graph can be built."""


class DuplicateVersionError(GraphConstructionError):
    """Raised when two inputs declare the same version inconsistently."""

    def __init__(self, version: Version, *, reason: str) -> None:
        self.version = version
        self.reason = reason
        super().__init__(f"Conflicting inputs for version {version}: {reason}")


class DanglingEdgeError(GraphConstructionError):
    """Raised when a diff edge points at a version that was never ingested."""

    def __init__(self, *, left: Version, right: Version, missing: tuple[Version, ...]) -> None:
        self.left = left
        self.right = right
        self.missing = missing
        missing_list = ", ".join(str(version) for version in missing)
        super().__init__(
            f"Diff edge {left} -> {right} references unknown version(s): {missing_list}"
        )


class InvariantViolation(AddrLibError):
    """Raised when an ID table breaks the one-ID-per-address rule.

    This always indicates a defect in the producer of the table, never bad user
    input, and must not be papered over by writing the table anyway.
    """


class MalformedBinError(AddrLibError):
    """Raised when a version bin cannot be decoded exactly as written."""


class BinWriteError(AddrLibError):
    """Raised when a version bin cannot be written to its target path."""
