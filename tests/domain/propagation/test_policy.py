from __future__ import annotations

import pytest

from addrlibgen.domain.model import AmbiguityReason, MatchKind
from addrlibgen.domain.propagation import InheritancePolicy
from tests.support.builders import match


def test_identical_records_always_inherit() -> None:
    policy = InheritancePolicy(modified_min_confidence=1.0)

    assert policy.rejection(match(1, 2, confidence=0.1)) is None


def test_modified_records_below_threshold_are_rejected() -> None:
    policy = InheritancePolicy(modified_min_confidence=0.5)

    low = match(1, 2, kind=MatchKind.MODIFIED, confidence=0.4)
    high = match(1, 2, kind=MatchKind.MODIFIED, confidence=0.5)

    assert policy.rejection(low) is AmbiguityReason.LOW_CONFIDENCE
    assert policy.rejection(high) is None


def test_ambiguous_records_never_inherit() -> None:
    assert InheritancePolicy().rejection(match(1, 2, kind=MatchKind.AMBIGUOUS)) is (
        AmbiguityReason.AMBIGUOUS_KIND
    )


def test_threshold_must_lie_in_unit_interval() -> None:
    with pytest.raises(ValueError, match="modified_min_confidence"):
        InheritancePolicy(modified_min_confidence=-0.1)
