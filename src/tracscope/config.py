"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from tracscope.models.config import SimulationConfig, TrackerConfig, TrackerLimits

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


def _as_bool(value) -> bool:
    """TOML booleans pass through; quoted values like "false" are parsed."""
    if isinstance(value, str):
        return _flag(value)
    return bool(value)


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "TRACSCOPE_",
) -> TrackerConfig:
    """Load tracker configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (TRACSCOPE_PORT, etc.)
        2. TOML config file
        3. Defaults from TrackerConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = TrackerConfig()

    # ── Tracker section ────────────────────────────────────
    tracker = raw.get("tracker", {})
    if v := tracker.get("log_level"):
        cfg.log_level = str(v)
    if v := tracker.get("error_backoff"):
        cfg.error_backoff = int(v)
    cfg.limits = TrackerLimits(
        history_capacity=int(tracker.get("history_capacity", 500)),
        rolling_minutes=int(tracker.get("rolling_minutes", 60)),
        peer_active_window=int(tracker.get("peer_active_seconds", 300)) * 1000,
        top_peers=int(tracker.get("top_peers", 10)),
        recent_swaps=int(tracker.get("recent_swaps", 50)),
    )

    # ── Source section ─────────────────────────────────────
    source = raw.get("source", {})
    if v := source.get("path"):
        cfg.source = str(v)
    if v := source.get("channel"):
        cfg.channel = str(v)
    if v := source.get("bootstrap_key"):
        cfg.bootstrap_key = str(v)

    # ── Server section ─────────────────────────────────────
    server = raw.get("server", {})
    if v := server.get("host"):
        cfg.host = str(v)
    if v := server.get("port"):
        cfg.port = int(v)
    if v := server.get("broadcast_interval"):
        cfg.broadcast_interval = float(v)
    if v := server.get("dashboard_path"):
        cfg.dashboard_path = str(v)

    # ── Simulation section ─────────────────────────────────
    sim_raw = raw.get("simulation", {})
    defaults = SimulationConfig()
    seed = sim_raw.get("seed")
    cfg.simulation = SimulationConfig(
        enabled=_as_bool(sim_raw.get("enabled", False)),
        seed_events=int(sim_raw.get("seed_events", defaults.seed_events)),
        interval=float(sim_raw.get("interval", defaults.interval)),
        seed=int(seed) if seed is not None else None,
        peers=list(sim_raw.get("peers", defaults.peers)),
    )

    # ── Environment variable overrides (highest priority) ──
    if port := os.environ.get(f"{env_prefix}PORT"):
        cfg.port = int(port)
    if host := os.environ.get(f"{env_prefix}HOST"):
        cfg.host = host
    if src := os.environ.get(f"{env_prefix}SOURCE"):
        cfg.source = src
    if channel := os.environ.get(f"{env_prefix}CHANNEL"):
        cfg.channel = channel
    if key := os.environ.get(f"{env_prefix}BOOTSTRAP_KEY"):
        cfg.bootstrap_key = key
    if level := os.environ.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = level
    if sim := os.environ.get(f"{env_prefix}SIMULATION"):
        cfg.simulation.enabled = _flag(sim)

    # No live feed configured -> demo data
    if not cfg.source and not cfg.bootstrap_key:
        cfg.simulation.enabled = True

    if cfg.dashboard_path:
        cfg.dashboard_path = str(Path(cfg.dashboard_path).expanduser())

    return cfg
