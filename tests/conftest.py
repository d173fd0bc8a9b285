from __future__ import annotations

import itertools
import random

import pytest

from bracket_maker.models import Entrant


@pytest.fixture
def counter_ids():
    """Return a factory of deterministic id generators."""

    def factory(prefix: str = "id"):
        counter = itertools.count(1)
        return lambda: f"{prefix}{next(counter)}"

    return factory


@pytest.fixture
def ids(counter_ids):
    return counter_ids("m")


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_entrants():
    def factory(*names: str) -> list[Entrant]:
        return [Entrant(id=name.lower(), name=name) for name in names]

    return factory
