"""Inheritance policy for clean one-to-one matches.

Cardinality is decided in ``resolve``; this stage only answers whether a
single, unambiguous record is trustworthy enough to carry an ID across.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, assert_never

from addrlibgen.domain.model import AmbiguityReason, MatchKind

if TYPE_CHECKING:
    from addrlibgen.domain.model import MatchRecord


@dataclass(frozen=True, slots=True, kw_only=True)
class InheritancePolicy:
    """Decide whether a 1:1 record may pass an ID from one version to another.

    ``modified_min_confidence`` applies to ``Modified`` records only. At the
    default of 0.0 every 1:1 ``Modified`` match inherits.
    """

    modified_min_confidence: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.modified_min_confidence <= 1.0:
            raise ValueError(
                "modified_min_confidence must be within [0, 1]: "
                f"{self.modified_min_confidence}"
            )

    def rejection(self, record: MatchRecord) -> AmbiguityReason | None:
        """Return why ``record`` cannot carry an ID, or ``None`` if it can."""

        match record.kind:
            case MatchKind.IDENTICAL:
                return None
            case MatchKind.MODIFIED:
                if record.confidence < self.modified_min_confidence:
                    return AmbiguityReason.LOW_CONFIDENCE
                return None
            case MatchKind.AMBIGUOUS:
                return AmbiguityReason.AMBIGUOUS_KIND
            case _:
                assert_never(record.kind)
