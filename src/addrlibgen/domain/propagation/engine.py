"""Frontier-synchronous propagation of IDs across the version graph.

The engine walks the graph breadth-first from the anchors. All versions at
depth k are planned (in parallel when ``workers`` > 1) against neighbours
resolved at depths below k, then fresh IDs are reserved for them in version
order and their tables are attached before depth k + 1 starts.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, TypeAlias

from addrlibgen.domain.errors import InvariantViolation
from addrlibgen.domain.model import CATEGORY_ORDER, VersionStatus

from .counter import GlobalIdCounter
from .policy import InheritancePolicy
from .report import ResolutionReport, VersionOutcome
from .resolve import ResolvedNeighbour, plan_bootstrap, plan_version

if TYPE_CHECKING:
    from collections.abc import Sequence

    from addrlibgen.domain.model import IdTable, Version, VersionNode

    from .graph import VersionGraph
    from .resolve import VersionPlan


log = getLogger(__name__)

_PlanJob: TypeAlias = "tuple[VersionNode, list[ResolvedNeighbour]]"


@dataclass(slots=True)
class PropagationEngine:
    """Resolve every reachable version of a graph."""

    policy: InheritancePolicy = field(default_factory=InheritancePolicy)
    workers: int = 1

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1: {self.workers}")

    def resolve(self, graph: VersionGraph) -> ResolutionReport:
        """Assign or inherit IDs for every version reachable from an anchor.

        Resolved tables are attached to their graph nodes as well as returned
        in the report.
        """

        report = ResolutionReport()
        resolved: dict[Version, IdTable] = {}
        failed: set[Version] = set()
        anchors = graph.anchors
        counter = GlobalIdCounter.seeded_from(
            node.id_table for node in anchors if node.id_table is not None
        )

        if anchors:
            for node in anchors:
                if node.id_table is None:
                    continue
                resolved[node.version] = node.id_table
                report.tables[node.version] = node.id_table
                report.add_outcome(
                    VersionOutcome(
                        version=node.version,
                        status=VersionStatus.ALREADY_ANCHOR,
                        depth=0,
                    )
                )
            frontier = [node.version for node in anchors]
        elif len(graph):
            node = graph.nodes[0]
            log.info("No existing bins; bootstrapping identifiers from version %s", node.version)
            report.bootstrap = node.version
            frontier = self._finish_level(
                graph, [plan_bootstrap(node)], 0, counter, resolved, report
            )
        else:
            frontier = []

        depth = 0
        while frontier:
            depth += 1
            candidates = sorted(
                {
                    neighbour
                    for version in frontier
                    for neighbour in graph.neighbours(version)
                    if neighbour not in resolved and neighbour not in failed
                }
            )
            if not candidates:
                break
            log.info(
                "Resolving frontier depth %s: %s",
                depth,
                ", ".join(str(version) for version in candidates),
            )
            plans = self._plan_level(graph, candidates, resolved, depth, report)
            frontier = self._finish_level(graph, plans, depth, counter, resolved, report)
            failed.update(
                version
                for version in candidates
                if report.status_of(version) is VersionStatus.FAILED
            )

        for node in graph.nodes:
            if node.version not in report.outcomes:
                report.add_outcome(
                    VersionOutcome(version=node.version, status=VersionStatus.UNREACHABLE)
                )

        log.info(
            "Propagation finished: anchors=%s, resolved=%s, unreachable=%s, failed=%s, "
            "diagnostics=%s",
            len(report.versions_with(VersionStatus.ALREADY_ANCHOR)),
            len(report.versions_with(VersionStatus.RESOLVED)),
            len(report.versions_with(VersionStatus.UNREACHABLE)),
            len(report.versions_with(VersionStatus.FAILED)),
            len(report.diagnostics),
        )
        log.debug("Next free IDs: %s", counter.snapshot())
        return report

    def _plan_level(
        self,
        graph: VersionGraph,
        candidates: Sequence[Version],
        resolved: dict[Version, IdTable],
        depth: int,
        report: ResolutionReport,
    ) -> list[VersionPlan]:
        jobs: list[_PlanJob] = []
        for version in candidates:
            node = graph.node_for(version)
            if node is None:
                continue
            neighbours: list[ResolvedNeighbour] = []
            for edge in graph.edges_for(version):
                other = edge.other(version)
                neighbour_node = graph.node_for(other)
                if other in resolved and neighbour_node is not None:
                    neighbours.append(
                        ResolvedNeighbour(node=neighbour_node, table=resolved[other], edge=edge)
                    )
            jobs.append((node, neighbours))

        def plan(job: _PlanJob) -> VersionPlan | InvariantViolation:
            node, neighbours = job
            try:
                return plan_version(node, neighbours, policy=self.policy)
            except InvariantViolation as exc:
                return exc

        if self.workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=min(self.workers, len(jobs))) as pool:
                outcomes = list(pool.map(plan, jobs))
        else:
            outcomes = [plan(job) for job in jobs]

        plans: list[VersionPlan] = []
        for (node, _), outcome in zip(jobs, outcomes, strict=True):
            if isinstance(outcome, InvariantViolation):
                self._record_failure(node.version, depth, outcome, report)
                continue
            plans.append(outcome)
        return plans

    def _finish_level(
        self,
        graph: VersionGraph,
        plans: Sequence[VersionPlan],
        depth: int,
        counter: GlobalIdCounter,
        resolved: dict[Version, IdTable],
        report: ResolutionReport,
    ) -> list[Version]:
        finished: list[Version] = []
        for plan in sorted(plans, key=lambda item: item.version):
            ranges = {
                category: counter.reserve(category, plan.fresh_count(category))
                for category in CATEGORY_ORDER
            }
            try:
                table = plan.materialize(ranges)
                table.validate()
                node = graph.node_for(plan.version)
                if node is not None:
                    node.attach_id_table(table)
            except InvariantViolation as exc:
                self._record_failure(plan.version, depth, exc, report)
                continue

            resolved[plan.version] = table
            report.tables[plan.version] = table
            report.diagnostics.extend(plan.diagnostics)
            report.add_outcome(
                VersionOutcome(
                    version=plan.version,
                    status=VersionStatus.RESOLVED,
                    depth=depth,
                    neighbours=plan.neighbours,
                    inherited=plan.inherited_count(),
                    fresh=plan.total_fresh(),
                )
            )
            log.debug(
                "Resolved %s at depth %s: inherited=%s, fresh=%s, diagnostics=%s",
                plan.version,
                depth,
                plan.inherited_count(),
                plan.total_fresh(),
                len(plan.diagnostics),
            )
            finished.append(plan.version)
        return finished

    @staticmethod
    def _record_failure(
        version: Version,
        depth: int,
        exc: InvariantViolation,
        report: ResolutionReport,
    ) -> None:
        log.error("Resolution of %s failed: %s", version, exc)
        report.add_outcome(
            VersionOutcome(
                version=version,
                status=VersionStatus.FAILED,
                depth=depth,
                error=str(exc),
            )
        )


def resolve(
    graph: VersionGraph,
    *,
    policy: InheritancePolicy | None = None,
    workers: int = 1,
) -> ResolutionReport:
    """Propagate IDs through ``graph`` with a one-off engine."""

    engine = PropagationEngine(policy=policy or InheritancePolicy(), workers=workers)
    return engine.resolve(graph)
