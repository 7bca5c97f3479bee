"""Shared fixtures for spatial cipher tests."""

import itertools
import pytest

from params import Point, Axis, ParameterSet


@pytest.fixture
def params():
    """The reference parameter tuple used in the usage example."""
    return ParameterSet(Point(1.0, 2.0, 3.0), Axis(0.0, 1.0, 0.0), 10, 0.1)


@pytest.fixture
def counting_random():
    """Deterministic random source: each call returns the next counter value's bytes."""
    counter = itertools.count(1)

    def random_bytes(n):
        return next(counter).to_bytes(n, "big")

    return random_bytes
