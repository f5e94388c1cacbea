"""Pytest configuration and fixtures for the flappy simulation tests."""

import os
import random

# headless pygame for anything that touches a Surface or the mixer
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest

from src.flappy.config import DEFAULT_TUNABLES


FRAME_MS = DEFAULT_TUNABLES.ideal_frame_ms   # exactly one tick


class FakeStore:
    """In-memory best score store that records every write."""

    def __init__(self, value: int = 0):
        self.value = value
        self.writes = []

    def load(self) -> int:
        return self.value

    def save(self, value: int) -> None:
        self.writes.append(value)
        self.value = value


@pytest.fixture
def seeded_rng():
    """Provide a deterministic RNG for tests."""
    return random.Random(42)


@pytest.fixture
def cfg():
    return DEFAULT_TUNABLES
