"""Data contracts passed between the ingestors, the engine and the codec.

These types carry no policy. The only behavior they own is checking their own
structural invariants (confidence range, one ID per address).
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias

from addrlibgen.domain.errors import InvariantViolation

from .enums import CATEGORY_ORDER, EntityCategory, MatchKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .primitives import Address, EntityId, Version


EntityTable: TypeAlias = "dict[Address, EntityMeta]"
EntityTables: TypeAlias = "dict[EntityCategory, EntityTable]"
IdMapping: TypeAlias = "dict[Address, EntityId]"


def empty_entity_tables() -> EntityTables:
    return {category: {} for category in CATEGORY_ORDER}


@dataclass(frozen=True, slots=True)
class EntityMeta:
    """Lightweight facts about one entity.

    ``name_hash`` is a hint for humans reviewing diagnostics; it never decides
    identity.
    """

    size: int = 0
    name_hash: int | None = None

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.size, -1 if self.name_hash is None else self.name_hash)


@dataclass(frozen=True, slots=True, order=True)
class MatchRecord:
    """One pairing reported by a diff, oriented left to right."""

    category: EntityCategory
    left_address: Address
    right_address: Address
    confidence: float = 1.0
    kind: MatchKind = MatchKind.IDENTICAL

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Match confidence must be within [0, 1]: {self.confidence}")


@dataclass(frozen=True, slots=True)
class DiffEdge:
    """Match evidence between two versions.

    Traversal treats the edge as undirected; the addresses inside each record
    keep the orientation declared by the report.
    """

    left: Version
    right: Version
    records: tuple[MatchRecord, ...] = ()
    source: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.left == self.right:
            raise ValueError(f"Diff edge maps version {self.left} onto itself")

    def other(self, version: Version) -> Version:
        if version == self.left:
            return self.right
        if version == self.right:
            return self.left
        raise ValueError(f"Version {version} is not an endpoint of {self.left} -> {self.right}")

    def records_for(self, category: EntityCategory) -> tuple[MatchRecord, ...]:
        return tuple(record for record in self.records if record.category is category)

    @property
    def sort_key(self) -> tuple[Version, Version, tuple[MatchRecord, ...]]:
        return (self.left, self.right, self.records)


@dataclass(frozen=True, slots=True)
class IdTable:
    """Resolved identifiers of one version: category -> address -> ID.

    Every category is present after construction, empty when the version has no
    entity of that kind, so two tables compare equal regardless of how sparse
    their inputs were.
    """

    version: Version
    base_address: int
    ids: Mapping[EntityCategory, Mapping[Address, EntityId]] = field(
        default_factory=dict["EntityCategory", "Mapping[Address, EntityId]"]
    )

    def __post_init__(self) -> None:
        unknown = set(self.ids) - set(CATEGORY_ORDER)
        if unknown:
            raise ValueError(f"Unknown entity categories: {sorted(unknown)}")
        normalized: dict[EntityCategory, IdMapping] = {
            category: dict(self.ids.get(category, {})) for category in CATEGORY_ORDER
        }
        object.__setattr__(self, "ids", normalized)

    def ids_for(self, category: EntityCategory) -> Mapping[Address, EntityId]:
        return self.ids[category]

    def max_id(self, category: EntityCategory) -> EntityId | None:
        values = self.ids[category].values()
        return max(values) if values else None

    def entity_count(self) -> int:
        return sum(len(mapping) for mapping in self.ids.values())

    def entity_tables(self) -> EntityTables:
        """Entity tables implied by the table when no export is available."""

        return {
            category: {address: EntityMeta() for address in sorted(self.ids[category])}
            for category in CATEGORY_ORDER
        }

    def validate(self) -> None:
        """Raise ``InvariantViolation`` if any ID names two addresses."""

        for category in CATEGORY_ORDER:
            duplicated = sorted(
                entity_id
                for entity_id, count in Counter(self.ids[category].values()).items()
                if count > 1
            )
            if duplicated:
                raise InvariantViolation(
                    f"Version {self.version} assigns {category} ID(s) "
                    f"{', '.join(str(entity_id) for entity_id in duplicated[:10])} "
                    "to more than one address"
                )
            below_base = [address for address in self.ids[category] if address < self.base_address]
            if below_base:
                listed = ', '.join(f'0x{address:X}' for address in sorted(below_base)[:10])
                raise InvariantViolation(
                    f"Version {self.version} has {category} address(es) below the base address "
                    f"0x{self.base_address:X}: {listed}"
                )


@dataclass(slots=True)
class VersionNode:
    """One release as seen by the propagation engine.

    ``id_table`` is present for anchors (an existing bin was read) and is
    attached exactly once by the engine for every version it resolves.
    """

    version: Version
    base_address: int
    entities: EntityTables = field(default_factory=empty_entity_tables)
    id_table: IdTable | None = None
    sources: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        tables = empty_entity_tables()
        for category, table in self.entities.items():
            tables[category] = dict(table)
        self.entities = tables
        if self.id_table is not None:
            self._check_table(self.id_table)

    @classmethod
    def from_id_table(cls, table: IdTable, *, source: str | None = None) -> VersionNode:
        return cls(
            version=table.version,
            base_address=table.base_address,
            entities=table.entity_tables(),
            id_table=table,
            sources=(source,) if source else (),
        )

    @property
    def is_anchor(self) -> bool:
        return self.id_table is not None

    def addresses(self, category: EntityCategory) -> list[Address]:
        return sorted(self.entities[category])

    def meta_for(self, category: EntityCategory, address: Address) -> EntityMeta | None:
        return self.entities[category].get(address)

    def entity_count(self) -> int:
        return sum(len(table) for table in self.entities.values())

    def attach_id_table(self, table: IdTable) -> None:
        if self.id_table is not None:
            raise InvariantViolation(f"Version {self.version} already carries an ID table")
        self._check_table(table)
        self.id_table = table

    def _check_table(self, table: IdTable) -> None:
        if table.version != self.version or table.base_address != self.base_address:
            raise InvariantViolation(
                f"ID table for {table.version}@0x{table.base_address:X} does not belong to "
                f"{self.version}@0x{self.base_address:X}"
            )


def merge_entity_tables(*tables: Iterable[tuple[EntityCategory, EntityTable]]) -> EntityTables:
    """Union entity tables; when two inputs describe one address the larger meta wins."""

    merged = empty_entity_tables()
    for items in tables:
        for category, table in items:
            target = merged[category]
            for address, meta in table.items():
                current = target.get(address)
                if current is None or meta.sort_key > current.sort_key:
                    target[address] = meta
    return merged
