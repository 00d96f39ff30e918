"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class EntityCategory(StrEnum):
    """Kind of artifact extracted from a binary. Each kind owns its own ID space."""

    FUNCTION = "function"
    GLOBAL = "global"
    VTABLE = "vtable"
    STRING = "string"


# Order used when minting IDs and when laying out version bins.
CATEGORY_ORDER: Final[tuple[EntityCategory, ...]] = (
    EntityCategory.FUNCTION,
    EntityCategory.GLOBAL,
    EntityCategory.VTABLE,
    EntityCategory.STRING,
)


class MatchKind(StrEnum):
    """How a diff report paired two addresses.

    The set is closed: the resolution policy in ``domain.propagation`` matches
    on every member, so adding one means revisiting that policy.
    """

    IDENTICAL = "identical"
    MODIFIED = "modified"
    AMBIGUOUS = "ambiguous"


class VersionStatus(StrEnum):
    """Outcome of propagation for one version."""

    ALREADY_ANCHOR = "already_anchor"
    RESOLVED = "resolved"
    UNREACHABLE = "unreachable"
    FAILED = "failed"


class AmbiguityReason(StrEnum):
    """Why an entity was denied an inherited ID."""

    SPLIT = "split"  # one neighbour address matched to several of ours
    MERGE = "merge"  # several neighbour addresses matched to one of ours
    AMBIGUOUS_KIND = "ambiguous_kind"
    LOW_CONFIDENCE = "low_confidence"
    CONFLICT = "conflict"  # neighbours imply different IDs
    COLLISION = "collision"  # one inherited ID implied for several addresses
