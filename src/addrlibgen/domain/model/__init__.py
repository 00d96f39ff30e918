"""Public domain model surface."""

from __future__ import annotations

from addrlibgen.domain.model.enums import (
    CATEGORY_ORDER,
    AmbiguityReason,
    EntityCategory,
    MatchKind,
    VersionStatus,
)
from addrlibgen.domain.model.primitives import Address, EntityId, Offset, Version
from addrlibgen.domain.model.records import (
    DiffEdge,
    EntityMeta,
    EntityTable,
    EntityTables,
    IdMapping,
    IdTable,
    MatchRecord,
    VersionNode,
    empty_entity_tables,
    merge_entity_tables,
)

__all__ = [  # noqa: RUF022
    # enums
    "CATEGORY_ORDER",
    "AmbiguityReason",
    "EntityCategory",
    "MatchKind",
    "VersionStatus",
    # primitives
    "Address",
    "EntityId",
    "Offset",
    "Version",
    # records
    "DiffEdge",
    "EntityMeta",
    "EntityTable",
    "EntityTables",
    "IdMapping",
    "IdTable",
    "MatchRecord",
    "VersionNode",
    "empty_entity_tables",
    "merge_entity_tables",
]
