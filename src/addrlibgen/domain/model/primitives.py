"""Domain primitives: scalar aliases + small value objects."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Final, TypeAlias

Address: TypeAlias = int
Offset: TypeAlias = int
EntityId: TypeAlias = int

_VERSION_PATTERN: Final[re.Pattern[str]] = re.compile(r"^v?(\d+(?:\.\d+)*)$")


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class Version:
    """Dotted release version such as ``1.10.163``.

    Versions compare numerically component by component; the shorter sequence
    is padded with zeros, so ``1.2`` and ``1.2.0`` name the same release.
    ``text`` keeps the spelling the version was discovered under.
    """

    parts: tuple[int, ...]
    text: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.parts:
            raise ValueError("Version requires at least one component")
        if any(part < 0 for part in self.parts):
            raise ValueError(f"Version components must be non-negative: {self.parts}")
        if not self.text:
            object.__setattr__(self, "text", ".".join(str(part) for part in self.parts))

    @classmethod
    def parse(cls, value: str) -> Version:
        match = _VERSION_PATTERN.match(value.strip())
        if match is None:
            raise ValueError(f"Invalid version string: {value!r}")
        text = match.group(1)
        return cls(parts=tuple(int(part) for part in text.split(".")), text=text)

    @property
    def key(self) -> tuple[int, ...]:
        """Comparison key with trailing zero components removed."""

        parts = list(self.parts)
        while len(parts) > 1 and parts[-1] == 0:
            parts.pop()
        return tuple(parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.key == other.key

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        width = max(len(self.parts), len(other.parts))
        return _padded(self.parts, width) < _padded(other.parts, width)

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.text


def _padded(parts: tuple[int, ...], width: int) -> tuple[int, ...]:
    return parts + (0,) * (width - len(parts))
