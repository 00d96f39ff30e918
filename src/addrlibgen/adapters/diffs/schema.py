"""Pydantic model describing one row of a diff report."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from addrlibgen.common import blank_to_none, parse_hex
from addrlibgen.domain.model import EntityCategory, MatchKind

_U64_MAX = 0xFFFF_FFFF_FFFF_FFFF


def _lower(value: object) -> object:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _lower_or_none(value: object) -> object:
    return _lower(blank_to_none(value))


class DiffMatchRecordModel(BaseModel):
    """One pairing of a left and a right address.

    ``category`` is ``None`` when the report does not say; it is then inferred
    from the entity tables of the two versions.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    left_version: str
    right_version: str
    category: EntityCategory | None = None
    left_address: int = Field(ge=0, le=_U64_MAX)
    right_address: int = Field(ge=0, le=_U64_MAX)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    kind: MatchKind = MatchKind.IDENTICAL

    _parse_addresses = field_validator("left_address", "right_address", mode="before")(parse_hex)
    _normalize_category = field_validator("category", mode="before")(_lower_or_none)
    _normalize_kind = field_validator("kind", mode="before")(_lower)
