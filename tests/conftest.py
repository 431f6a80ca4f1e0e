"""Shared fixtures for tracscope tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from tracscope import __version__
from tracscope.models.config import TrackerConfig, TrackerLimits
from tracscope.tracker.engine import SwapTracker
from tracscope.tracker.state import TrackerState

from tests.factories import T0
from tests.mocks import ManualClock


def pytest_configure(config):
    """Add tracker info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Tracker Version"] = __version__
    meta["History Capacity"] = str(TrackerLimits().history_capacity)
    meta["Rolling Minutes"] = str(TrackerLimits().rolling_minutes)


def make_test_config(**overrides) -> TrackerConfig:
    """Build a TrackerConfig suitable for testing."""
    defaults = dict(
        host="127.0.0.1",
        port=0,
        broadcast_interval=0.05,
        error_backoff=0,
    )
    defaults.update(overrides)
    return TrackerConfig(**defaults)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture
def clock():
    """Manual epoch-ms clock starting at T0."""
    return ManualClock(T0)


@pytest.fixture
def tracker(clock):
    """SwapTracker driven by the manual clock."""
    return SwapTracker(clock=clock)


@pytest.fixture
def state():
    """Bare TrackerState for component-level tests."""
    return TrackerState.create(T0)
