"""Data models for the tracscope tracker."""

from tracscope.models.events import DEFAULT_PAIR, EventKind, SwapEvent, parse_event
from tracscope.models.records import (
    IngestStats,
    MinuteBucket,
    Peer,
    RfqRecord,
    SwapRecord,
    Totals,
)
from tracscope.models.config import SimulationConfig, TrackerConfig, TrackerLimits
from tracscope.models.snapshots import (
    BucketSnapshot,
    DashboardSnapshot,
    IngestSnapshot,
    PeerSnapshot,
    SwapSnapshot,
    TotalsSnapshot,
)

__all__ = [
    "DEFAULT_PAIR", "EventKind", "SwapEvent", "parse_event",
    "IngestStats", "MinuteBucket", "Peer", "RfqRecord", "SwapRecord", "Totals",
    "SimulationConfig", "TrackerConfig", "TrackerLimits",
    "BucketSnapshot", "DashboardSnapshot", "IngestSnapshot", "PeerSnapshot",
    "SwapSnapshot", "TotalsSnapshot",
]
