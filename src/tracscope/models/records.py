"""In-memory state records owned by the aggregation engine."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Peer:
    """A swap network peer as observed on the sidechannel."""

    peer_id: str
    first_seen: int  # epoch ms
    last_seen: int  # epoch ms, never decreases
    rfq_count: int = 0
    swap_count: int = 0


@dataclass
class MinuteBucket:
    """Aggregates for one wall-clock minute."""

    bucket_start: int  # epoch ms, truncated to the minute
    swap_count: int = 0
    rfq_count: int = 0
    settled_volume_sats: int = 0


@dataclass(frozen=True)
class SwapRecord:
    """A settled swap retained in the recent-swaps feed."""

    timestamp: int
    peer_id: str
    amount_sats: int
    amount_usdt_micro: int
    settlement_ms: int | None = None
    tx_id_lightning: str | None = None
    tx_id_solana: str | None = None


@dataclass(frozen=True)
class RfqRecord:
    """An RFQ request or response retained in the RFQ feed."""

    timestamp: int
    peer_id: str
    side: str  # "request" | "response"
    pair: str
    amount_sats: int = 0
    quoted_rate: str | None = None


@dataclass
class Totals:
    """Process-lifetime counters. Volumes are integer base units."""

    rfq_requests: int = 0
    rfq_accepted: int = 0
    rfq_rejected: int = 0
    swaps_success: int = 0
    swaps_refund: int = 0
    volume_btc_sats: int = 0
    volume_usdt_micro: int = 0


@dataclass
class IngestStats:
    """Dispatcher diagnostics."""

    events_applied: int = 0
    events_dropped: int = 0
    handler_errors: int = 0
