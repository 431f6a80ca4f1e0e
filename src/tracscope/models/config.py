"""Configuration models for the tracker daemon."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class TrackerLimits:
    """Memory and time-window bounds of the aggregation engine."""

    history_capacity: int = 500  # entries per ring buffer
    rolling_minutes: int = 60  # minute buckets retained
    peer_active_window: int = 5 * 60_000  # ms of silence before a peer is inactive
    top_peers: int = 10
    recent_swaps: int = 50


@dataclass
class SimulationConfig:
    """Synthetic event generator settings."""

    enabled: bool = False
    seed_events: int = 40  # history burst at startup
    interval: float = 3.0  # seconds between live trickle batches
    seed: int | None = None
    peers: list[str] = field(
        default_factory=lambda: ["peer_alice", "peer_bob", "peer_carol", "peer_dave", "peer_eve"]
    )


@dataclass
class TrackerConfig:
    """Complete tracker configuration."""

    # Daemon
    log_level: str = "info"
    error_backoff: int = 5  # seconds before reopening a failed source

    # Sidechannel
    channel: str = "tracscope-swap-analytics-v1"
    bootstrap_key: str = ""
    source: str = ""  # "-" for stdin, or a path to a JSON-lines file / FIFO

    # Dashboard server
    host: str = "127.0.0.1"
    port: int = 7842
    broadcast_interval: float = 3.0  # seconds between SSE pushes
    dashboard_path: str = ""  # optional HTML file served at /

    limits: TrackerLimits = field(default_factory=TrackerLimits)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
