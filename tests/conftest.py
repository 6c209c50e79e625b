"""Shared fixtures: sample tracks and a clean slate of singletons per test."""
import asyncio

import pytest

from railcurve.config import AppConfig, set_config
from railcurve.services import close_driver
from railcurve.store import close_store


SQUARE = [(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)]

DEFAULT_TRACK = [
    (125.0, 150.0),
    (200.0, 350.0),
    (100.0, 540.0),
    (450.0, 450.0),
    (470.0, 100.0),
]

# Three coincident points: the tangent vanishes exactly at t = 1
DEGENERATE = [(0.0, 0.0), (0.0, 0.0), (0.0, 0.0), (10.0, 0.0), (10.0, 10.0)]


@pytest.fixture(autouse=True)
def reset_singletons():
    set_config(AppConfig())
    close_driver()
    asyncio.run(close_store())
    yield
    set_config(None)
    close_driver()
    asyncio.run(close_store())


@pytest.fixture
def square():
    return list(SQUARE)


@pytest.fixture
def default_track():
    return list(DEFAULT_TRACK)


@pytest.fixture
def degenerate():
    return list(DEGENERATE)
