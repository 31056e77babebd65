"""Pytest configuration for candela tests."""

import logging

import pytest

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)8s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

# Set the engine and scheduler loggers to DEBUG level
logging.getLogger("candela.engine").setLevel(logging.DEBUG)
logging.getLogger("candela.scheduler").setLevel(logging.DEBUG)


class FakeClock:
    """Wall and monotonic clocks that only move when told to."""

    def __init__(self, wall: float = 1_700_000_000.0, mono: float = 5_000.0) -> None:
        self.wall = wall
        self.mono = mono

    def time(self) -> float:
        return self.wall

    def monotonic(self) -> float:
        return self.mono

    def advance(self, seconds: float) -> None:
        self.wall += seconds
        self.mono += seconds


@pytest.fixture
def clock():
    """A controllable clock for the transition engine."""
    return FakeClock()
