"""Report types produced by the propagation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from addrlibgen.domain.model import VersionStatus

if TYPE_CHECKING:
    from addrlibgen.domain.model import (
        Address,
        AmbiguityReason,
        EntityCategory,
        EntityId,
        IdTable,
        Version,
    )


@dataclass(frozen=True, slots=True, kw_only=True)
class AmbiguityDiagnostic:
    """One entity that received a fresh ID because the evidence was unsafe.

    ``neighbours`` lists the resolved versions whose edges contributed the
    evidence; ``candidate_ids`` are the IDs the entity could have inherited.
    ``name_hint_match`` is true when a candidate shares the entity's name hint,
    which flags the case for a closer human look.
    """

    version: Version
    category: EntityCategory
    address: Address
    reason: AmbiguityReason
    neighbours: tuple[Version, ...] = ()
    candidate_ids: tuple[EntityId, ...] = ()
    name_hint_match: bool = False

    def describe(self) -> str:
        neighbours = ", ".join(str(version) for version in self.neighbours) or "-"
        candidates = ", ".join(str(entity_id) for entity_id in self.candidate_ids) or "-"
        hint = " (name hint matches a candidate)" if self.name_hint_match else ""
        return (
            f"{self.version} {self.category} 0x{self.address:X}: {self.reason} "
            f"via {neighbours}; candidates {candidates}{hint}"
        )


@dataclass(slots=True, kw_only=True)
class VersionOutcome:
    """Final state of one version after propagation."""

    version: Version
    status: VersionStatus
    depth: int | None = None
    neighbours: tuple[Version, ...] = ()
    inherited: int = 0
    fresh: int = 0
    error: str | None = None


@dataclass(slots=True)
class ResolutionReport:
    """Aggregate result of one propagation run."""

    outcomes: dict[Version, VersionOutcome] = field(
        default_factory=dict["Version", "VersionOutcome"]
    )
    diagnostics: list[AmbiguityDiagnostic] = field(
        default_factory=list["AmbiguityDiagnostic"]
    )
    tables: dict[Version, IdTable] = field(default_factory=dict["Version", "IdTable"])
    bootstrap: Version | None = None

    def add_outcome(self, outcome: VersionOutcome) -> None:
        self.outcomes[outcome.version] = outcome

    def status_of(self, version: Version) -> VersionStatus | None:
        outcome = self.outcomes.get(version)
        return None if outcome is None else outcome.status

    def versions_with(self, status: VersionStatus) -> tuple[Version, ...]:
        return tuple(
            sorted(
                version
                for version, outcome in self.outcomes.items()
                if outcome.status is status
            )
        )

    def resolved_tables(self) -> dict[Version, IdTable]:
        """Tables produced by this run, excluding anchors read from disk."""

        return {
            version: self.tables[version]
            for version in self.versions_with(VersionStatus.RESOLVED)
            if version in self.tables
        }

    def diagnostics_for(self, version: Version) -> tuple[AmbiguityDiagnostic, ...]:
        return tuple(diagnostic for diagnostic in self.diagnostics if diagnostic.version == version)
