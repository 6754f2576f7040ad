from __future__ import annotations

import itertools
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "state.json"


@pytest.fixture
def make_ids() -> Callable[[str], Callable[[], str]]:
    """Build deterministic id factories: ``make_ids("emp")() -> "emp-1"``."""

    def factory(prefix: str = "id") -> Callable[[], str]:
        counter = itertools.count(1)
        return lambda: f"{prefix}-{next(counter)}"

    return factory
