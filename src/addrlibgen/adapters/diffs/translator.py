"""Adapt a parsed diff report into a ``DiffEdge`` between two version nodes."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from addrlibgen.domain.errors import IngestionError
from addrlibgen.domain.model import CATEGORY_ORDER, DiffEdge, MatchRecord

if TYPE_CHECKING:
    from addrlibgen.domain.model import EntityCategory, VersionNode

    from .parser import DiffReport
    from .schema import DiffMatchRecordModel

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiffTranslation:
    edge: DiffEdge
    dropped: int = 0
    duplicates: int = 0


def build_diff_edge(report: DiffReport, left: VersionNode, right: VersionNode) -> DiffTranslation:
    """Keep the rows whose addresses exist, in one category, on both sides.

    Rows without a category take the first category (in the fixed category
    order) that owns the left address. Repeated rows count once.
    """

    if left.version != report.left or right.version != report.right:
        raise IngestionError(
            f"Diff {report.left} -> {report.right} does not connect "
            f"{left.version} and {right.version}",
            path=report.path,
        )

    records: list[MatchRecord] = []
    seen: set[MatchRecord] = set()
    dropped = 0
    duplicates = 0
    for row in report.rows:
        category = _row_category(row, left, right)
        if category is None:
            dropped += 1
            continue
        record = MatchRecord(
            category=category,
            left_address=row.left_address,
            right_address=row.right_address,
            confidence=row.confidence,
            kind=row.kind,
        )
        if record in seen:
            duplicates += 1
            continue
        seen.add(record)
        records.append(record)

    if dropped:
        log.warning(
            "Dropped %s of %s rows of diff %s -> %s: addresses unknown to the exports",
            dropped,
            len(report.rows),
            report.left,
            report.right,
        )
    edge = DiffEdge(
        left=left.version,
        right=right.version,
        records=tuple(records),
        source=str(report.path) if report.path is not None else None,
    )
    return DiffTranslation(edge=edge, dropped=dropped, duplicates=duplicates)


def _row_category(
    row: DiffMatchRecordModel,
    left: VersionNode,
    right: VersionNode,
) -> EntityCategory | None:
    if row.category is not None:
        candidates: tuple[EntityCategory, ...] = (row.category,)
    else:
        candidates = tuple(
            category for category in CATEGORY_ORDER if row.left_address in left.entities[category]
        )[:1]
    for category in candidates:
        if row.left_address in left.entities[category] and (
            row.right_address in right.entities[category]
        ):
            return category
    return None
