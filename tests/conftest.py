from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's ``ADDRLIBGEN_*`` settings out of the tests."""

    for name in list(os.environ):
        if name.startswith("ADDRLIBGEN_"):
            monkeypatch.delenv(name)
