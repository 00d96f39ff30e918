"""Application orchestration entry points."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, TypeVar

from addrlibgen.adapters.bins import discover_bins, read_bin, write_bin
from addrlibgen.adapters.diffs import build_diff_edge, discover_diff_reports, parse_diff_report
from addrlibgen.adapters.idaexport import discover_export_directories, load_export_directory
from addrlibgen.config import get_generator_config
from addrlibgen.domain.errors import (
    BinWriteError,
    DanglingEdgeError,
    IngestionError,
    InvariantViolation,
)
from addrlibgen.domain.model import Version, VersionNode, VersionStatus
from addrlibgen.domain.propagation import PropagationEngine, build_version_graph

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from concurrent.futures import Future
    from pathlib import Path

    from addrlibgen.adapters.diffs import DiffReport
    from addrlibgen.config import GeneratorConfig
    from addrlibgen.domain.model import DiffEdge, IdTable
    from addrlibgen.domain.propagation import ResolutionReport, VersionGraph


log = getLogger(__name__)

_T = TypeVar("_T")


@dataclass(slots=True, kw_only=True)
class RunSummary:
    """What one run read, resolved and wrote."""

    report: ResolutionReport
    written: list[Path] = field(default_factory=list["Path"])
    warnings: list[str] = field(default_factory=list[str])
    output_failures: dict[Version, str] = field(default_factory=dict["Version", str])
    exports: int = 0
    diffs: int = 0
    bins: int = 0
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        """True when at least one version resolved and its output was not lost.

        Failures of single versions are reported but do not fail the run while
        another version resolved cleanly.
        """

        return any(
            version not in self.output_failures
            for version in self.report.versions_with(VersionStatus.RESOLVED)
        )


def generate_version_bins(
    root_dir: Path,
    *,
    config: GeneratorConfig | None = None,
    dry_run: bool = False,
) -> RunSummary:
    """Read every input below ``root_dir`` and write the missing version bins.

    Unreadable export directories and diff reports are skipped with a warning.
    An unreadable bin, or inputs that cannot form one graph, abort the run.
    """

    effective_config = config or get_generator_config()
    export_dirs = discover_export_directories(root_dir)
    diff_paths = discover_diff_reports(root_dir)
    bin_paths = discover_bins(root_dir)
    log.info(
        "Starting bin generation in %s: exports=%s, diffs=%s, bins=%s, workers=%s",
        root_dir,
        len(export_dirs),
        len(diff_paths),
        len(bin_paths),
        effective_config.workers,
    )

    warnings: list[str] = []
    with ThreadPoolExecutor(max_workers=effective_config.workers) as pool:
        export_futures = _submit_all(pool, load_export_directory, export_dirs)
        diff_futures = _submit_all(pool, parse_diff_report, diff_paths)
        bin_futures = _submit_all(pool, read_bin, bin_paths)

        tables = [future.result() for future in bin_futures.values()]
        nodes, failed_exports = _collect_exports(export_futures, warnings)
        reports = _collect_diffs(diff_futures, failed_exports, warnings)

    graph = build_version_graph(
        [
            *nodes,
            *(
                VersionNode.from_id_table(table, source=str(path))
                for path, table in zip(bin_paths, tables, strict=True)
            ),
        ]
    )
    graph = graph.with_edges(_translate_diffs(graph, reports))

    engine = PropagationEngine(policy=effective_config.policy(), workers=effective_config.workers)
    report = engine.resolve(graph)

    summary = RunSummary(
        report=report,
        warnings=warnings,
        exports=len(nodes),
        diffs=len(reports),
        bins=len(tables),
        dry_run=dry_run,
    )
    for version in report.versions_with(VersionStatus.FAILED):
        outcome = report.outcomes[version]
        summary.output_failures[version] = outcome.error or "resolution failed"

    resolved = report.resolved_tables()
    if dry_run:
        log.info("Dry run: %s bin(s) would be written", len(resolved))
    else:
        _write_bins(root_dir, resolved, effective_config.workers, summary)

    log.info(
        "Finished bin generation: written=%s, warnings=%s, failures=%s",
        len(summary.written),
        len(summary.warnings),
        len(summary.output_failures),
    )
    return summary


def _submit_all(
    pool: ThreadPoolExecutor,
    task: Callable[[Path], _T],
    paths: Sequence[Path],
) -> dict[Path, Future[_T]]:
    return {path: pool.submit(task, path) for path in paths}


def _collect_exports(
    futures: dict[Path, Future[VersionNode]],
    warnings: list[str],
) -> tuple[list[VersionNode], set[Version]]:
    nodes: list[VersionNode] = []
    failed: set[Version] = set()
    for path, future in futures.items():
        try:
            nodes.append(future.result())
        except IngestionError as exc:
            log.warning("Skipping export directory: %s", exc)
            warnings.append(str(exc))
            failed.add(Version.parse(path.name))
    return nodes, failed


def _collect_diffs(
    futures: dict[Path, Future[DiffReport]],
    failed_exports: set[Version],
    warnings: list[str],
) -> list[DiffReport]:
    reports: list[DiffReport] = []
    for path, future in futures.items():
        try:
            report = future.result()
        except IngestionError as exc:
            log.warning("Skipping diff report: %s", exc)
            warnings.append(str(exc))
            continue
        broken = sorted(
            version for version in (report.left, report.right) if version in failed_exports
        )
        if broken:
            message = (
                f"Skipping diff report {path}: export of "
                f"{', '.join(str(version) for version in broken)} failed to load"
            )
            log.warning(message)
            warnings.append(message)
            continue
        reports.append(report)
    return reports


def _translate_diffs(graph: VersionGraph, reports: Sequence[DiffReport]) -> list[DiffEdge]:
    edges: list[DiffEdge] = []
    for report in reports:
        left = graph.node_for(report.left)
        right = graph.node_for(report.right)
        if left is None or right is None:
            missing = tuple(
                version
                for version, node in ((report.left, left), (report.right, right))
                if node is None
            )
            raise DanglingEdgeError(left=report.left, right=report.right, missing=missing)
        translation = build_diff_edge(report, left, right)
        edges.append(translation.edge)
    return edges


def _write_bins(
    root_dir: Path,
    tables: dict[Version, IdTable],
    workers: int,
    summary: RunSummary,
) -> None:
    if not tables:
        return
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            version: pool.submit(write_bin, root_dir, table) for version, table in tables.items()
        }
        for version, future in futures.items():
            try:
                summary.written.append(future.result())
            except (BinWriteError, InvariantViolation) as exc:
                log.error("Could not write bin for %s: %s", version, exc)  # noqa: TRY400
                summary.output_failures[version] = str(exc)
