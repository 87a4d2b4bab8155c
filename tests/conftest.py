"""Shared fixtures for the convenient_cf tests."""

import pytest

from .helpers import FakeChild, RecordingSpawner


@pytest.fixture
def make_spawner():
    def factory(*args, **kwargs) -> RecordingSpawner:
        return RecordingSpawner(FakeChild(*args, **kwargs))
    return factory
