"""Swap tracker - the aggregation engine instance behind ingest() and snapshot()."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from tracscope.models.config import TrackerLimits
from tracscope.models.snapshots import DashboardSnapshot
from tracscope.tracker.dispatcher import EventDispatcher
from tracscope.tracker.projector import SnapshotProjector
from tracscope.tracker.state import TrackerState

log = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class SwapTracker:
    """Owns all aggregation state for one process.

    ``ingest`` is the only mutation entry point. It and ``snapshot`` share
    one lock, so a snapshot always sees whole events. Construct one per
    process (or per test) and hand it to both the source and the server.
    """

    def __init__(
        self,
        limits: TrackerLimits | None = None,
        clock: Clock = wall_clock_ms,
    ) -> None:
        self._limits = limits or TrackerLimits()
        self._clock = clock
        self._lock = threading.RLock()
        self.state = TrackerState.create(clock(), self._limits)
        self._dispatcher = EventDispatcher(self.state)
        self._projector = SnapshotProjector(self.state, self._limits)

    def now(self) -> int:
        return self._clock()

    def ingest(self, raw: Any) -> bool:
        """Feed one decoded sidechannel message. Never raises."""
        with self._lock:
            return self._dispatcher.ingest(raw, self._clock())

    def ingest_many(self, messages) -> int:
        """Feed a batch; returns how many were applied."""
        applied = 0
        for msg in messages:
            if self.ingest(msg):
                applied += 1
        return applied

    def snapshot(self) -> DashboardSnapshot:
        with self._lock:
            return self._projector.snapshot(self._clock())
