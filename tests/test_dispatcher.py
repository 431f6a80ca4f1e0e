"""Dispatcher: per-kind effects, noise filtering and failure isolation."""

from __future__ import annotations

import logging

import pytest

from tracscope.models.events import EventKind
from tracscope.tracker.buckets import MINUTE_MS
from tracscope.tracker.dispatcher import EventDispatcher

from tests.factories import (
    T0,
    make_hello,
    make_rfq_accept,
    make_rfq_reject,
    make_rfq_request,
    make_rfq_response,
    make_swap_init,
    make_swap_refund,
    make_swap_settle,
)


@pytest.fixture
def dispatcher(state):
    return EventDispatcher(state)


def test_peer_hello_only_touches_peer(dispatcher, state):
    assert dispatcher.ingest(make_hello("alice"), T0)
    assert "alice" in state.peers
    assert state.totals.rfq_requests == 0
    assert len(state.buckets) == 0
    assert len(state.rfqs) == len(state.swaps) == 0


def test_rfq_request_effects(dispatcher, state):
    dispatcher.ingest(make_rfq_request("alice", amount_sats=42_000), T0 + 1_000)

    assert state.peers.get("alice").rfq_count == 1
    assert state.totals.rfq_requests == 1
    bucket = state.buckets.current_bucket(T0 + 1_000)
    assert bucket.rfq_count == 1
    assert bucket.swap_count == 0

    (record,) = list(state.rfqs)
    assert record.side == "request"
    assert record.amount_sats == 42_000
    assert record.pair == "BTC/USDT"


def test_rfq_response_appends_without_counters(dispatcher, state):
    dispatcher.ingest(make_rfq_response("bob", quoted_rate="93001.10"), T0)
    (record,) = list(state.rfqs)
    assert record.side == "response"
    assert record.quoted_rate == "93001.10"
    assert state.totals.rfq_requests == 0
    assert len(state.buckets) == 0
    assert state.peers.get("bob").rfq_count == 0


def test_accept_reject_refund_init_counters(dispatcher, state):
    dispatcher.ingest(make_rfq_accept(), T0)
    dispatcher.ingest(make_rfq_accept(), T0)
    dispatcher.ingest(make_rfq_reject(), T0)
    dispatcher.ingest(make_swap_refund(), T0)
    dispatcher.ingest(make_swap_init(), T0)

    t = state.totals
    assert (t.rfq_accepted, t.rfq_rejected, t.swaps_refund) == (2, 1, 1)
    assert t.swaps_success == 0
    assert len(state.buckets) == 0
    assert len(state.swaps) == 0


def test_swap_settle_effects(dispatcher, state):
    dispatcher.ingest(
        make_swap_settle("carol", amount_sats=150_000, amount_usdt_micro=139_125_000,
                         txIdLightning="ln1"),
        T0 + 2_000,
    )
    dispatcher.ingest(make_swap_settle("carol", amount_sats=50_000, amount_usdt_micro=1), T0 + 3_000)

    assert state.peers.get("carol").swap_count == 2
    t = state.totals
    assert t.swaps_success == 2
    assert t.volume_btc_sats == 200_000
    assert t.volume_usdt_micro == 139_125_001

    (bucket,) = list(state.buckets)
    assert bucket.swap_count == 2
    assert bucket.settled_volume_sats == 200_000

    first = list(state.swaps)[0]
    assert first.amount_sats == 150_000
    assert first.tx_id_lightning == "ln1"
    assert first.settlement_ms == 4200


def test_bucket_uses_ingestion_time_not_event_time(dispatcher, state):
    late = make_swap_settle(ts=T0 - 10 * MINUTE_MS)
    dispatcher.ingest(late, T0 + 5 * MINUTE_MS)
    (bucket,) = list(state.buckets)
    assert bucket.bucket_start == T0 + 5 * MINUTE_MS
    # Record keeps the embedded timestamp
    assert list(state.swaps)[0].timestamp == T0 - 10 * MINUTE_MS


def test_unknown_kind_changes_nothing(dispatcher, state):
    assert not dispatcher.ingest({"type": "unknown_future_event", "peerId": "alice"}, T0)
    assert len(state.peers) == 0
    assert state.totals == type(state.totals)()
    assert len(state.buckets) == 0
    assert state.stats.events_dropped == 1
    assert state.stats.handler_errors == 0


def test_missing_peer_id_dropped(dispatcher, state):
    assert not dispatcher.ingest({"type": "swap_settle", "amountSats": 5}, T0)
    assert state.totals.swaps_success == 0
    assert len(state.peers) == 0


def test_bad_field_logged_and_state_untouched(dispatcher, state, caplog):
    dispatcher.ingest(make_swap_settle("alice", amount_sats=1_000), T0)
    with caplog.at_level(logging.ERROR, logger="tracscope.tracker.dispatcher"):
        assert not dispatcher.ingest(make_swap_settle("bob", amount_sats="lots"), T0)

    assert "swap_settle" in caplog.text
    assert state.stats.handler_errors == 1
    assert state.totals.swaps_success == 1
    assert state.totals.volume_btc_sats == 1_000
    assert "bob" not in state.peers
    assert len(state.swaps) == 1


def test_handler_exception_isolated(dispatcher, state, monkeypatch, caplog):
    def boom(event, now):
        raise RuntimeError("boom")

    monkeypatch.setitem(dispatcher._handlers, EventKind.RFQ_ACCEPT, boom)
    with caplog.at_level(logging.ERROR):
        assert not dispatcher.ingest(make_rfq_accept(), T0)
    assert "rfq_accept" in caplog.text
    assert state.stats.handler_errors == 1

    # Later events still apply
    assert dispatcher.ingest(make_rfq_reject(), T0)
    assert state.totals.rfq_rejected == 1


def test_missing_handler_rejected_at_construction(state):
    class Incomplete(EventDispatcher):
        def _handler_table(self):
            table = super()._handler_table()
            del table[EventKind.SWAP_REFUND]
            return table

    with pytest.raises(TypeError, match="swap_refund"):
        Incomplete(state)


def test_stats_counted(dispatcher, state):
    dispatcher.ingest(make_hello(), T0)
    dispatcher.ingest({"type": "nope", "peerId": "x"}, T0)
    dispatcher.ingest(make_swap_settle(amount_sats=-5), T0)
    assert state.stats.events_applied == 1
    assert state.stats.events_dropped == 1
    assert state.stats.handler_errors == 1
