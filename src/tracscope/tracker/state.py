"""Aggregation state shared by the dispatcher and the projector."""

from __future__ import annotations

from dataclasses import dataclass, field

from tracscope.models.config import TrackerLimits
from tracscope.models.records import IngestStats, RfqRecord, SwapRecord, Totals
from tracscope.tracker.buckets import RollingBucketIndex
from tracscope.tracker.history import HistoryBuffer
from tracscope.tracker.registry import PeerRegistry


@dataclass
class TrackerState:
    started_at: int  # epoch ms
    peers: PeerRegistry
    buckets: RollingBucketIndex
    swaps: HistoryBuffer[SwapRecord]
    rfqs: HistoryBuffer[RfqRecord]
    totals: Totals = field(default_factory=Totals)
    stats: IngestStats = field(default_factory=IngestStats)

    @classmethod
    def create(cls, started_at: int, limits: TrackerLimits | None = None) -> TrackerState:
        limits = limits or TrackerLimits()
        return cls(
            started_at=started_at,
            peers=PeerRegistry(limits.peer_active_window),
            buckets=RollingBucketIndex(limits.rolling_minutes),
            swaps=HistoryBuffer(limits.history_capacity),
            rfqs=HistoryBuffer(limits.history_capacity),
        )
