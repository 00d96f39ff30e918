"""Per-version identity resolution.

Responsibilities of this stage:
- classify every entity of one version against each resolved neighbour as
  unmatched, clean 1:1, or ambiguous
- combine the evidence of all resolved neighbours into inherited IDs
- list, in ascending address order, the entities that need a fresh ID

Planning is read-only and does not touch the ID counter. The engine reserves
ID ranges for a whole frontier level in version order and then calls
``VersionPlan.materialize``, so the IDs a version receives do not depend on
which worker planned it or when.

Matching policy:
- no record for our address -> fresh ID
- exactly one record, whose neighbour address has exactly one record, and the
  inheritance policy accepts it -> inherit the neighbour's ID
- anything else (one-to-many, many-to-one, ``Ambiguous`` kind, low-confidence
  ``Modified``) -> fresh ID + diagnostic
- neighbours implying different IDs for one address -> fresh ID + diagnostic
- one inherited ID implied for several addresses -> fresh IDs + diagnostics
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias

from addrlibgen.domain.model import CATEGORY_ORDER, AmbiguityReason, IdTable

from .report import AmbiguityDiagnostic

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from addrlibgen.domain.model import (
        Address,
        DiffEdge,
        EntityCategory,
        EntityId,
        MatchRecord,
        Version,
        VersionNode,
    )

    from .policy import InheritancePolicy


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolvedNeighbour:
    """A version resolved at an earlier depth and the edge linking it to ours."""

    node: VersionNode
    table: IdTable
    edge: DiffEdge

    @property
    def version(self) -> Version:
        return self.node.version


@dataclass(frozen=True, slots=True, kw_only=True)
class _Inherit:
    neighbour: Version
    entity_id: EntityId
    name_hint_match: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class _Reject:
    neighbour: Version
    reason: AmbiguityReason
    candidate_ids: tuple[EntityId, ...] = ()
    name_hint_match: bool = False


_Evidence: TypeAlias = "_Inherit | _Reject"
_EvidenceByAddress: TypeAlias = "dict[Address, _Evidence]"


@dataclass(frozen=True, slots=True, kw_only=True)
class CategoryPlan:
    """Inherited IDs and fresh-ID requests for one category of one version."""

    category: EntityCategory
    inherited: Mapping[Address, EntityId] = field(default_factory=dict["Address", "EntityId"])
    fresh: tuple[Address, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class VersionPlan:
    """Everything needed to build one version's ID table once IDs are reserved."""

    version: Version
    base_address: int
    categories: Mapping[EntityCategory, CategoryPlan]
    diagnostics: tuple[AmbiguityDiagnostic, ...] = ()
    neighbours: tuple[Version, ...] = ()

    def fresh_count(self, category: EntityCategory) -> int:
        plan = self.categories.get(category)
        return 0 if plan is None else len(plan.fresh)

    def inherited_count(self) -> int:
        return sum(len(plan.inherited) for plan in self.categories.values())

    def total_fresh(self) -> int:
        return sum(self.fresh_count(category) for category in CATEGORY_ORDER)

    def materialize(self, ranges: Mapping[EntityCategory, range]) -> IdTable:
        """Combine inherited IDs with the reserved fresh ranges into an ``IdTable``."""

        ids: dict[EntityCategory, dict[Address, EntityId]] = {}
        for category in CATEGORY_ORDER:
            plan = self.categories.get(category)
            if plan is None:
                ids[category] = {}
                continue
            reserved = ranges.get(category, range(0))
            if len(reserved) != len(plan.fresh):
                raise ValueError(
                    f"Reserved {len(reserved)} {category} IDs for {self.version}, "
                    f"needed {len(plan.fresh)}"
                )
            mapping = dict(plan.inherited)
            mapping.update(zip(plan.fresh, reserved, strict=True))
            ids[category] = dict(sorted(mapping.items()))
        return IdTable(version=self.version, base_address=self.base_address, ids=ids)


def plan_bootstrap(node: VersionNode) -> VersionPlan:
    """Plan fresh IDs for every entity, in ascending address order per category."""

    return VersionPlan(
        version=node.version,
        base_address=node.base_address,
        categories={
            category: CategoryPlan(category=category, fresh=tuple(node.addresses(category)))
            for category in CATEGORY_ORDER
        },
    )


def plan_version(
    node: VersionNode,
    neighbours: Sequence[ResolvedNeighbour],
    *,
    policy: InheritancePolicy,
) -> VersionPlan:
    """Plan the ID table of ``node`` from its resolved ``neighbours``."""

    ordered = sorted(neighbours, key=lambda neighbour: (neighbour.version, neighbour.edge.sort_key))
    categories: dict[EntityCategory, CategoryPlan] = {}
    diagnostics: list[AmbiguityDiagnostic] = []
    for category in CATEGORY_ORDER:
        evidence = [
            _edge_evidence(node, neighbour, category, policy=policy) for neighbour in ordered
        ]
        plan, category_diagnostics = _plan_category(node, category, evidence)
        categories[category] = plan
        diagnostics.extend(category_diagnostics)

    return VersionPlan(
        version=node.version,
        base_address=node.base_address,
        categories=categories,
        diagnostics=tuple(diagnostics),
        neighbours=tuple(sorted({neighbour.version for neighbour in ordered})),
    )


def _edge_evidence(
    node: VersionNode,
    neighbour: ResolvedNeighbour,
    category: EntityCategory,
    *,
    policy: InheritancePolicy,
) -> _EvidenceByAddress:
    ours_is_right = neighbour.edge.right == node.version
    records_by_ours: dict[Address, list[tuple[Address, MatchRecord]]] = defaultdict(list)
    records_by_theirs: dict[Address, int] = defaultdict(int)
    for record in neighbour.edge.records_for(category):
        if ours_is_right:
            ours, theirs = record.right_address, record.left_address
        else:
            ours, theirs = record.left_address, record.right_address
        records_by_ours[ours].append((theirs, record))
        records_by_theirs[theirs] += 1

    neighbour_ids = neighbour.table.ids_for(category)
    own_entities = node.entities[category]
    evidence: _EvidenceByAddress = {}
    for ours, matches in records_by_ours.items():
        if ours not in own_entities:
            continue
        theirs_addresses = sorted({theirs for theirs, _ in matches})
        candidate_ids = tuple(
            sorted(
                {neighbour_ids[theirs] for theirs in theirs_addresses if theirs in neighbour_ids}
            )
        )
        hint = _name_hint_match(node, neighbour.node, category, ours, theirs_addresses)

        reason: AmbiguityReason | None
        if len(matches) > 1:
            reason = AmbiguityReason.MERGE
        else:
            theirs, record = matches[0]
            if records_by_theirs[theirs] > 1:
                reason = AmbiguityReason.SPLIT
            else:
                reason = policy.rejection(record)

        if reason is not None:
            evidence[ours] = _Reject(
                neighbour=neighbour.version,
                reason=reason,
                candidate_ids=candidate_ids,
                name_hint_match=hint,
            )
        elif candidate_ids:
            evidence[ours] = _Inherit(
                neighbour=neighbour.version,
                entity_id=candidate_ids[0],
                name_hint_match=hint,
            )
    return evidence


def _plan_category(
    node: VersionNode,
    category: EntityCategory,
    evidence_by_neighbour: Sequence[_EvidenceByAddress],
) -> tuple[CategoryPlan, list[AmbiguityDiagnostic]]:
    inherited: dict[Address, EntityId] = {}
    fresh: list[Address] = []
    diagnostics: list[AmbiguityDiagnostic] = []

    def flag(address: Address, reason: AmbiguityReason, found: Sequence[_Evidence]) -> None:
        candidates: set[EntityId] = set()
        for item in found:
            if isinstance(item, _Inherit):
                candidates.add(item.entity_id)
            else:
                candidates.update(item.candidate_ids)
        diagnostics.append(
            AmbiguityDiagnostic(
                version=node.version,
                category=category,
                address=address,
                reason=reason,
                neighbours=tuple(sorted({item.neighbour for item in found})),
                candidate_ids=tuple(sorted(candidates)),
                name_hint_match=any(item.name_hint_match for item in found),
            )
        )
        fresh.append(address)

    found_by_address: dict[Address, list[_Evidence]] = {}
    for address in node.addresses(category):
        found = [item for evidence in evidence_by_neighbour if (item := evidence.get(address))]
        found_by_address[address] = found
        if not found:
            fresh.append(address)
            continue
        rejects = [item for item in found if isinstance(item, _Reject)]
        if rejects:
            flag(address, rejects[0].reason, found)
            continue
        implied = {item.entity_id for item in found if isinstance(item, _Inherit)}
        if len(implied) > 1:
            flag(address, AmbiguityReason.CONFLICT, found)
            continue
        inherited[address] = implied.pop()

    addresses_by_id: dict[EntityId, list[Address]] = defaultdict(list)
    for address, entity_id in inherited.items():
        addresses_by_id[entity_id].append(address)
    for addresses in addresses_by_id.values():
        if len(addresses) < 2:
            continue
        for address in addresses:
            del inherited[address]
            flag(address, AmbiguityReason.COLLISION, found_by_address[address])

    fresh.sort()
    diagnostics.sort(key=lambda diagnostic: diagnostic.address)
    return CategoryPlan(category=category, inherited=inherited, fresh=tuple(fresh)), diagnostics


def _name_hint_match(
    node: VersionNode,
    neighbour: VersionNode,
    category: EntityCategory,
    ours: Address,
    theirs_addresses: Sequence[Address],
) -> bool:
    own_meta = node.meta_for(category, ours)
    if own_meta is None or own_meta.name_hash is None:
        return False
    for theirs in theirs_addresses:
        meta = neighbour.meta_for(category, theirs)
        if meta is not None and meta.name_hash == own_meta.name_hash:
            return True
    return False
