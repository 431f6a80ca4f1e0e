"""In-memory aggregation engine: registry, buckets, history, dispatch, projection."""

from tracscope.tracker.buckets import RollingBucketIndex
from tracscope.tracker.dispatcher import EventDispatcher
from tracscope.tracker.engine import SwapTracker
from tracscope.tracker.history import HistoryBuffer
from tracscope.tracker.projector import SnapshotProjector
from tracscope.tracker.registry import PeerRegistry
from tracscope.tracker.state import TrackerState

__all__ = [
    "EventDispatcher",
    "HistoryBuffer",
    "PeerRegistry",
    "RollingBucketIndex",
    "SnapshotProjector",
    "SwapTracker",
    "TrackerState",
]
