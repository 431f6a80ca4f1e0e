"""JSON-serializable snapshot models for the dashboard / HTTP bridge."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _camelize(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {_camel(k): _camelize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_camelize(v) for v in obj]
    return obj


def _to_dict(obj: Any) -> dict:
    """Recursively convert a dataclass to a plain dict with dashboard (camelCase) keys."""
    return _camelize(asdict(obj))


@dataclass
class TotalsSnapshot:
    rfq_requests: int = 0
    rfq_accepted: int = 0
    rfq_rejected: int = 0
    rfq_fill_rate: str = "0.0%"
    swaps_success: int = 0
    swaps_refund: int = 0
    volume_btc: str = "0.00000000"
    volume_usdt: str = "0.00"


@dataclass
class PeerSnapshot:
    id: str
    first_seen: int
    last_seen: int
    rfqs: int
    swaps: int


@dataclass
class SwapSnapshot:
    """A settled swap as seen by the dashboard feed."""

    ts: int
    peer_id: str
    amount_sats: str  # exact integer, as a string
    amount_btc: str  # "0.00150000"
    amount_usdt: str  # "12.50"
    settlement_ms: int | None = None
    tx_id_lightning: str | None = None
    tx_id_solana: str | None = None


@dataclass
class BucketSnapshot:
    """One minute of the sparkline series."""

    ts: int
    swaps: int
    rfqs: int
    volume_btc: str


@dataclass
class IngestSnapshot:
    events_applied: int = 0
    events_dropped: int = 0
    handler_errors: int = 0


@dataclass
class DashboardSnapshot:
    """Complete tracker state in one serializable object."""

    version: str
    snapshot_at: int  # epoch ms
    uptime_ms: int

    totals: TotalsSnapshot

    active_peer_count: int
    total_peer_count: int
    top_peers: list[PeerSnapshot] = field(default_factory=list)
    recent_swaps: list[SwapSnapshot] = field(default_factory=list)

    # Sparkline data, oldest first
    buckets: list[BucketSnapshot] = field(default_factory=list)

    ingest: IngestSnapshot = field(default_factory=IngestSnapshot)

    def to_dict(self) -> dict:
        return _to_dict(self)
