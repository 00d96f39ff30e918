"""Run-scoped source of fresh entity IDs."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from addrlibgen.domain.model import CATEGORY_ORDER, EntityCategory

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from addrlibgen.domain.model import EntityId, IdTable


class GlobalIdCounter:
    """Next free ID per category.

    IDs are handed out as contiguous ranges. The counter only moves forward,
    so an ID is never issued twice within a run, and seeding from every
    existing bin carries that guarantee across runs.
    """

    __slots__ = ("_lock", "_next_ids")

    def __init__(self, next_ids: Mapping[EntityCategory, EntityId] | None = None) -> None:
        seeds = dict(next_ids or {})
        for category, value in seeds.items():
            if value < 0:
                raise ValueError(f"Next ID for {category} must be non-negative: {value}")
        self._next_ids: dict[EntityCategory, EntityId] = {
            category: seeds.get(category, 0) for category in CATEGORY_ORDER
        }
        self._lock = threading.Lock()

    @classmethod
    def seeded_from(cls, tables: Iterable[IdTable]) -> GlobalIdCounter:
        """Start one past the largest ID found in ``tables`` for each category."""

        next_ids = dict.fromkeys(CATEGORY_ORDER, 0)
        for table in tables:
            for category in CATEGORY_ORDER:
                largest = table.max_id(category)
                if largest is not None:
                    next_ids[category] = max(next_ids[category], largest + 1)
        return cls(next_ids)

    def reserve(self, category: EntityCategory, count: int) -> range:
        """Atomically claim ``count`` consecutive IDs."""

        if count < 0:
            raise ValueError(f"Cannot reserve a negative number of IDs: {count}")
        with self._lock:
            start = self._next_ids[category]
            self._next_ids[category] = start + count
        return range(start, start + count)

    def snapshot(self) -> dict[EntityCategory, EntityId]:
        with self._lock:
            return dict(self._next_ids)
