"""Event dispatcher - routes each event kind to the state it updates."""

from __future__ import annotations

import logging
from typing import Any, Callable

from tracscope.models.events import EventKind, SwapEvent, parse_event
from tracscope.models.records import RfqRecord, SwapRecord
from tracscope.tracker.state import TrackerState

log = logging.getLogger(__name__)

Handler = Callable[[SwapEvent, int], None]


class EventDispatcher:
    """Applies events to a TrackerState.

    Every EventKind must have a handler; building a dispatcher with a kind
    left out fails immediately. Field coercion happens in ``parse_event``
    before any handler runs, so a rejected event never leaves a partial
    update behind.
    """

    def __init__(self, state: TrackerState) -> None:
        self._state = state
        self._handlers = self._handler_table()
        missing = set(EventKind) - set(self._handlers)
        if missing:
            raise TypeError(f"No handler for event kinds: {sorted(k.value for k in missing)}")

    def _handler_table(self) -> dict[EventKind, Handler]:
        return {
            EventKind.PEER_HELLO: self._on_peer_hello,
            EventKind.RFQ_REQUEST: self._on_rfq_request,
            EventKind.RFQ_RESPONSE: self._on_rfq_response,
            EventKind.RFQ_ACCEPT: self._on_rfq_accept,
            EventKind.RFQ_REJECT: self._on_rfq_reject,
            EventKind.SWAP_INIT: self._on_swap_init,
            EventKind.SWAP_SETTLE: self._on_swap_settle,
            EventKind.SWAP_REFUND: self._on_swap_refund,
        }

    def ingest(self, raw: Any, now: int) -> bool:
        """Apply one wire message. Returns True if state changed; never raises."""
        stats = self._state.stats
        try:
            event = parse_event(raw, now)
        except ValueError as exc:
            stats.handler_errors += 1
            log.error("Handler error for %s: %s", raw.get("type"), exc)
            return False

        if event is None:
            stats.events_dropped += 1
            log.debug("Dropped message: %.120r", raw)
            return False

        try:
            self._handlers[event.kind](event, now)
        except Exception as exc:
            stats.handler_errors += 1
            log.error("Handler error for %s: %s", event.kind.value, exc)
            return False

        stats.events_applied += 1
        return True

    # ── Handlers ───────────────────────────────────────────

    def _on_peer_hello(self, event: SwapEvent, now: int) -> None:
        self._state.peers.touch(event.peer_id, now)

    def _on_rfq_request(self, event: SwapEvent, now: int) -> None:
        state = self._state
        peer = state.peers.touch(event.peer_id, now)
        peer.rfq_count += 1
        state.totals.rfq_requests += 1
        state.buckets.current_bucket(now).rfq_count += 1
        state.rfqs.append(RfqRecord(
            timestamp=event.timestamp,
            peer_id=event.peer_id,
            side="request",
            pair=event.pair,
            amount_sats=event.amount_sats,
        ))

    def _on_rfq_response(self, event: SwapEvent, now: int) -> None:
        self._state.peers.touch(event.peer_id, now)
        self._state.rfqs.append(RfqRecord(
            timestamp=event.timestamp,
            peer_id=event.peer_id,
            side="response",
            pair=event.pair,
            quoted_rate=event.quoted_rate,
        ))

    def _on_rfq_accept(self, event: SwapEvent, now: int) -> None:
        self._state.peers.touch(event.peer_id, now)
        self._state.totals.rfq_accepted += 1

    def _on_rfq_reject(self, event: SwapEvent, now: int) -> None:
        self._state.peers.touch(event.peer_id, now)
        self._state.totals.rfq_rejected += 1

    def _on_swap_init(self, event: SwapEvent, now: int) -> None:
        self._state.peers.touch(event.peer_id, now)

    def _on_swap_settle(self, event: SwapEvent, now: int) -> None:
        state = self._state
        peer = state.peers.touch(event.peer_id, now)
        peer.swap_count += 1

        totals = state.totals
        totals.swaps_success += 1
        totals.volume_btc_sats += event.amount_sats
        totals.volume_usdt_micro += event.amount_usdt_micro

        bucket = state.buckets.current_bucket(now)
        bucket.swap_count += 1
        bucket.settled_volume_sats += event.amount_sats

        state.swaps.append(SwapRecord(
            timestamp=event.timestamp,
            peer_id=event.peer_id,
            amount_sats=event.amount_sats,
            amount_usdt_micro=event.amount_usdt_micro,
            settlement_ms=event.settlement_ms,
            tx_id_lightning=event.tx_id_lightning,
            tx_id_solana=event.tx_id_solana,
        ))

    def _on_swap_refund(self, event: SwapEvent, now: int) -> None:
        self._state.peers.touch(event.peer_id, now)
        self._state.totals.swaps_refund += 1
