"""Synthetic event generator for demos and environments without a live sidechannel."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Iterator

from tracscope.models.config import SimulationConfig
from tracscope.models.events import DEFAULT_PAIR, EventKind
from tracscope.tracker.engine import SwapTracker

log = logging.getLogger(__name__)


class SyntheticEventGenerator:
    """Produces wire-format messages with plausible RFQ/swap ratios.

    Roughly three in four seeded RFQs end in a settled swap and the rest are
    rejected; the live trickle settles about seven in ten.
    """

    def __init__(self, peers: list[str], seed: int | None = None) -> None:
        if not peers:
            raise ValueError("at least one peer id is required")
        self._peers = list(peers)
        self._rng = random.Random(seed)

    def _peer(self) -> str:
        return self._rng.choice(self._peers)

    def _sats(self) -> int:
        return self._rng.randrange(10_000, 510_000)

    def _settle(self, peer_id: str) -> dict:
        return {
            "type": EventKind.SWAP_SETTLE.value,
            "peerId": peer_id,
            "amountSats": self._sats(),
            "amountUsdtMicro": self._rng.randrange(0, 50_000_000),
            "settlementMs": self._rng.randrange(1200, 9200),
        }

    def seed_history(self, rounds: int) -> Iterator[dict]:
        """A burst of mixed traffic from random peers."""
        for _ in range(rounds):
            yield {"type": EventKind.PEER_HELLO.value, "peerId": self._peer()}
            yield {
                "type": EventKind.RFQ_REQUEST.value,
                "peerId": self._peer(),
                "amountSats": self._sats(),
                "pair": DEFAULT_PAIR,
            }
            yield {
                "type": EventKind.RFQ_RESPONSE.value,
                "peerId": self._peer(),
                "quotedRate": f"{92_000 + self._rng.random() * 2_000:.2f}",
            }
            if self._rng.random() > 0.25:
                yield {"type": EventKind.RFQ_ACCEPT.value, "peerId": self._peer()}
                yield {"type": EventKind.SWAP_INIT.value, "peerId": self._peer()}
                yield self._settle(self._peer())
            else:
                yield {"type": EventKind.RFQ_REJECT.value, "peerId": self._peer()}

    def trickle(self) -> Iterator[dict]:
        """One live round: a single peer requests, then settles or rejects."""
        peer_id = self._peer()
        yield {
            "type": EventKind.RFQ_REQUEST.value,
            "peerId": peer_id,
            "amountSats": self._sats(),
            "pair": DEFAULT_PAIR,
        }
        if self._rng.random() > 0.3:
            yield {"type": EventKind.RFQ_ACCEPT.value, "peerId": peer_id}
            yield self._settle(peer_id)
        else:
            yield {"type": EventKind.RFQ_REJECT.value, "peerId": peer_id}


async def run_simulation(
    tracker: SwapTracker,
    cfg: SimulationConfig,
    stop: asyncio.Event,
) -> None:
    """Seed the tracker, then trickle events every ``cfg.interval`` seconds until stopped."""
    gen = SyntheticEventGenerator(cfg.peers, cfg.seed)
    log.info("Simulation mode active - generating synthetic events")
    applied = tracker.ingest_many(gen.seed_history(cfg.seed_events))
    log.info("Seeded %d synthetic events", applied)

    while not stop.is_set():
        try:
            await asyncio.wait_for(stop.wait(), timeout=cfg.interval)
        except asyncio.TimeoutError:
            tracker.ingest_many(gen.trickle())
