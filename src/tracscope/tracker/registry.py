"""Peer registry - first/last seen bookkeeping and the live peer set."""

from __future__ import annotations

import logging

from tracscope.models.records import Peer

log = logging.getLogger(__name__)

ACTIVE_WINDOW_MS = 5 * 60_000


class PeerRegistry:
    """Every peer ever observed, plus the subset seen recently.

    Peer records are never removed; the process keeps historical counters
    for its whole lifetime. The active set is pruned on every touch, so it
    is only as fresh as the most recent event from any peer. Use
    ``active_count(now)`` for a query-time answer.
    """

    def __init__(self, active_window_ms: int = ACTIVE_WINDOW_MS) -> None:
        self._window = active_window_ms
        self._peers: dict[str, Peer] = {}  # insertion order = registration order
        self._active: set[str] = set()

    def __len__(self) -> int:
        return len(self._peers)

    def __contains__(self, peer_id: object) -> bool:
        return peer_id in self._peers

    def get(self, peer_id: str) -> Peer | None:
        return self._peers.get(peer_id)

    def touch(self, peer_id: str, now: int) -> Peer:
        """Record activity from a peer and refresh the active set."""
        peer = self._peers.get(peer_id)
        if peer is None:
            peer = Peer(peer_id=peer_id, first_seen=now, last_seen=now)
            self._peers[peer_id] = peer
            log.debug("New peer %s", peer_id)
        elif now > peer.last_seen:
            peer.last_seen = now
        self._active.add(peer_id)
        self.prune(now)
        return peer

    def prune(self, now: int) -> int:
        """Drop peers idle for longer than the window from the active set."""
        stale = [pid for pid in self._active if self._is_stale(pid, now)]
        for pid in stale:
            self._active.discard(pid)
        if stale:
            log.debug("Expired %d inactive peers", len(stale))
        return len(stale)

    def active_count(self, now: int | None = None) -> int:
        """Size of the active set; with ``now``, evaluated at query time without pruning."""
        if now is None:
            return len(self._active)
        return sum(1 for pid in self._active if not self._is_stale(pid, now))

    def total_count(self) -> int:
        return len(self._peers)

    def is_active(self, peer_id: str) -> bool:
        return peer_id in self._active

    def ranked(self, limit: int) -> list[Peer]:
        """Peers by swap count, descending; ties keep registration order."""
        return sorted(self._peers.values(), key=lambda p: p.swap_count, reverse=True)[:limit]

    def _is_stale(self, peer_id: str, now: int) -> bool:
        return now - self._peers[peer_id].last_seen > self._window
