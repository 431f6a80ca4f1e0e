"""Snapshot projector - builds dashboard snapshots from tracker state."""

from __future__ import annotations

from tracscope import __version__
from tracscope.models.config import TrackerLimits
from tracscope.models.records import Peer, SwapRecord, Totals
from tracscope.models.snapshots import (
    BucketSnapshot,
    DashboardSnapshot,
    IngestSnapshot,
    PeerSnapshot,
    SwapSnapshot,
    TotalsSnapshot,
)
from tracscope.tracker.state import TrackerState

SATS_DECIMALS = 8
USDT_MICRO_DECIMALS = 6


def format_units(value: int, decimals: int, places: int) -> str:
    """Render an integer amount of base units as a fixed-point decimal string.

    ``value`` is in units of 10**-decimals. Rounds half up when ``places`` is
    smaller than ``decimals``. Integer arithmetic only.
    """
    if places < decimals:
        scale = 10 ** (decimals - places)
        value = (value + scale // 2) // scale
    elif places > decimals:
        value *= 10 ** (places - decimals)
    whole, frac = divmod(value, 10 ** places)
    if places == 0:
        return str(whole)
    return f"{whole}.{frac:0{places}d}"


def btc_str(sats: int) -> str:
    return format_units(sats, SATS_DECIMALS, 8)


def usdt_str(micro: int) -> str:
    return format_units(micro, USDT_MICRO_DECIMALS, 2)


def fill_rate_str(accepted: int, requests: int) -> str:
    """accepted / requests as a percentage with one decimal, "0.0%" with no requests."""
    if requests <= 0:
        return "0.0%"
    tenths = (accepted * 2000 + requests) // (2 * requests)
    return f"{tenths // 10}.{tenths % 10}%"


def _totals_snapshot(t: Totals) -> TotalsSnapshot:
    return TotalsSnapshot(
        rfq_requests=t.rfq_requests,
        rfq_accepted=t.rfq_accepted,
        rfq_rejected=t.rfq_rejected,
        rfq_fill_rate=fill_rate_str(t.rfq_accepted, t.rfq_requests),
        swaps_success=t.swaps_success,
        swaps_refund=t.swaps_refund,
        volume_btc=btc_str(t.volume_btc_sats),
        volume_usdt=usdt_str(t.volume_usdt_micro),
    )


def _peer_snapshot(p: Peer) -> PeerSnapshot:
    return PeerSnapshot(
        id=p.peer_id,
        first_seen=p.first_seen,
        last_seen=p.last_seen,
        rfqs=p.rfq_count,
        swaps=p.swap_count,
    )


def _swap_snapshot(s: SwapRecord) -> SwapSnapshot:
    return SwapSnapshot(
        ts=s.timestamp,
        peer_id=s.peer_id,
        amount_sats=str(s.amount_sats),
        amount_btc=btc_str(s.amount_sats),
        amount_usdt=usdt_str(s.amount_usdt_micro),
        settlement_ms=s.settlement_ms,
        tx_id_lightning=s.tx_id_lightning,
        tx_id_solana=s.tx_id_solana,
    )


class SnapshotProjector:
    """Read-only view over a TrackerState. Never mutates it."""

    def __init__(self, state: TrackerState, limits: TrackerLimits | None = None) -> None:
        self._state = state
        self._limits = limits or TrackerLimits()

    def snapshot(self, now: int) -> DashboardSnapshot:
        state = self._state
        stats = state.stats
        return DashboardSnapshot(
            version=__version__,
            snapshot_at=now,
            uptime_ms=max(0, now - state.started_at),
            totals=_totals_snapshot(state.totals),
            active_peer_count=state.peers.active_count(now),
            total_peer_count=state.peers.total_count(),
            top_peers=[_peer_snapshot(p) for p in state.peers.ranked(self._limits.top_peers)],
            recent_swaps=[_swap_snapshot(s) for s in state.swaps.latest(self._limits.recent_swaps)],
            buckets=[
                BucketSnapshot(
                    ts=b.bucket_start,
                    swaps=b.swap_count,
                    rfqs=b.rfq_count,
                    volume_btc=btc_str(b.settled_volume_sats),
                )
                for b in state.buckets
            ],
            ingest=IngestSnapshot(
                events_applied=stats.events_applied,
                events_dropped=stats.events_dropped,
                handler_errors=stats.handler_errors,
            ),
        )
