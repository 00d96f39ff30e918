from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from addrlibgen.domain.propagation import GlobalIdCounter
from tests.support.builders import FUNCTION, GLOBAL, STRING, make_table


def test_seeded_counter_starts_after_largest_existing_id() -> None:
    counter = GlobalIdCounter.seeded_from(
        [
            make_table("1.0", functions={0x1100: 4}, globals_={0x1200: 1}),
            make_table("1.1", functions={0x1100: 9}),
        ]
    )

    next_ids = counter.snapshot()
    assert next_ids[FUNCTION] == 10
    assert next_ids[GLOBAL] == 2
    assert next_ids[STRING] == 0


def test_reserve_hands_out_contiguous_ranges() -> None:
    counter = GlobalIdCounter()

    assert counter.reserve(FUNCTION, 3) == range(0, 3)
    assert counter.reserve(FUNCTION, 0) == range(3, 3)
    assert counter.reserve(FUNCTION, 1) == range(3, 4)
    assert counter.reserve(GLOBAL, 2) == range(0, 2)
    assert counter.snapshot()[FUNCTION] == 4


def test_reserve_rejects_negative_counts() -> None:
    with pytest.raises(ValueError, match="negative"):
        GlobalIdCounter().reserve(FUNCTION, -1)


def test_concurrent_reservations_never_overlap() -> None:
    counter = GlobalIdCounter()

    with ThreadPoolExecutor(max_workers=8) as pool:
        ranges = list(pool.map(lambda _: counter.reserve(FUNCTION, 5), range(200)))

    issued = [entity_id for reserved in ranges for entity_id in reserved]
    assert sorted(issued) == list(range(1000))
