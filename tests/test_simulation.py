"""Synthetic event generator and simulation loop."""

from __future__ import annotations

import asyncio

import pytest

from tracscope.models.config import SimulationConfig
from tracscope.models.events import EventKind, parse_event
from tracscope.simulation import SyntheticEventGenerator, run_simulation
from tracscope.tracker.engine import SwapTracker

from tests.factories import T0


def test_seeded_stream_is_reproducible():
    a = list(SyntheticEventGenerator(["x", "y"], seed=42).seed_history(20))
    b = list(SyntheticEventGenerator(["x", "y"], seed=42).seed_history(20))
    assert a == b


def test_every_message_parses():
    gen = SyntheticEventGenerator(["x", "y", "z"], seed=1)
    messages = list(gen.seed_history(50)) + [m for _ in range(20) for m in gen.trickle()]
    for msg in messages:
        event = parse_event(msg, T0)
        assert event is not None
        assert event.peer_id in {"x", "y", "z"}


def test_round_shape():
    gen = SyntheticEventGenerator(["solo"], seed=5)
    kinds = [m["type"] for m in gen.seed_history(100)]
    requests = kinds.count(EventKind.RFQ_REQUEST.value)
    settles = kinds.count(EventKind.SWAP_SETTLE.value)
    rejects = kinds.count(EventKind.RFQ_REJECT.value)
    assert requests == 100
    assert settles + rejects == 100
    assert settles > rejects


def test_amounts_in_range():
    gen = SyntheticEventGenerator(["p"], seed=9)
    for msg in gen.seed_history(200):
        if msg["type"] == "swap_settle":
            assert 10_000 <= msg["amountSats"] < 510_000
            assert 0 <= msg["amountUsdtMicro"] < 50_000_000
            assert 1200 <= msg["settlementMs"] < 9200


def test_trickle_uses_single_peer():
    gen = SyntheticEventGenerator(["a", "b", "c", "d"], seed=3)
    for _ in range(10):
        peers = {m["peerId"] for m in gen.trickle()}
        assert len(peers) == 1


def test_requires_peers():
    with pytest.raises(ValueError):
        SyntheticEventGenerator([])


async def test_run_simulation_seeds_and_trickles():
    tracker = SwapTracker()
    cfg = SimulationConfig(enabled=True, seed_events=10, interval=0.01, seed=1)
    stop = asyncio.Event()

    task = asyncio.create_task(run_simulation(tracker, cfg, stop))
    await asyncio.sleep(0.1)
    stop.set()
    await asyncio.wait_for(task, timeout=1)

    snap = tracker.snapshot()
    assert snap.totals.rfq_requests > 10
    assert snap.total_peer_count > 0
