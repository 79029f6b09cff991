"""Shared fixtures for the projection tests."""
import pytest


class SequenceSource:
    """Uniform source that replays a fixed sequence, cycling when exhausted."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def random(self):
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


@pytest.fixture
def sequence_source():
    """Factory for deterministic uniform sources."""
    return SequenceSource
