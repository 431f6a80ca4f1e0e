"""CLI entry point for the tracscope tracker."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click
import httpx

from tracscope import __version__
from tracscope.config import load_config
from tracscope.daemon import run_daemon
from tracscope.simulation import SyntheticEventGenerator
from tracscope.source import decode_message
from tracscope.tracker.engine import SwapTracker


def _load(ctx: click.Context):
    """Load config, turning bad values into a CLI error."""
    try:
        return load_config(ctx.obj["config_path"])
    except (ValueError, TypeError) as exc:
        click.echo(f"Error: invalid configuration: {exc}", err=True)
        sys.exit(1)


def _dump(payload: dict, pretty: bool) -> None:
    click.echo(json.dumps(payload, indent=2 if pretty else None))


@click.group()
@click.version_option(__version__, prog_name="tracscope")
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """tracscope - read-only swap analytics for the Intercom sidechannel."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.option("--source", default=None, help="JSON-lines source: '-' for stdin, or a file/FIFO path")
@click.option("--port", type=int, default=None, help="Dashboard port")
@click.option("--simulate", is_flag=True, help="Feed synthetic events instead of a live source")
@click.pass_context
def run(ctx: click.Context, source: str | None, port: int | None, simulate: bool) -> None:
    """Start the tracker and dashboard server."""
    cfg = _load(ctx)
    if source:
        cfg.source = source
        cfg.simulation.enabled = False
    if port:
        cfg.port = port
    if simulate:
        cfg.simulation.enabled = True
    if not ctx.obj["verbose"]:
        logging.getLogger().setLevel(cfg.log_level.upper())

    if cfg.simulation.enabled or not cfg.source:
        click.echo("Starting tracscope (simulation mode)")
    else:
        click.echo(f"Starting tracscope (source: {cfg.source})")
    asyncio.run(run_daemon(cfg))


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show resolved configuration."""
    cfg = _load(ctx)
    click.echo(f"Channel:     {cfg.channel}")
    click.echo(f"Source:      {cfg.source or '(not set)'}")
    click.echo(f"Bootstrap:   {'***configured***' if cfg.bootstrap_key else '(not set)'}")
    click.echo(f"Simulation:  {cfg.simulation.enabled}")
    click.echo(f"Dashboard:   http://{cfg.host}:{cfg.port}")
    click.echo(f"Broadcast:   every {cfg.broadcast_interval:g}s")
    click.echo(f"History:     {cfg.limits.history_capacity} entries per feed")
    click.echo(f"Buckets:     {cfg.limits.rolling_minutes} minutes")
    click.echo(f"Peer window: {cfg.limits.peer_active_window // 1000}s")


@cli.command()
@click.option("--url", default=None, help="Tracker base URL (default: from config)")
@click.option("--pretty", is_flag=True, help="Indent JSON output")
@click.pass_context
def snapshot(ctx: click.Context, url: str | None, pretty: bool) -> None:
    """Fetch the current snapshot from a running tracker."""
    cfg = _load(ctx)
    base = (url or f"http://{cfg.host}:{cfg.port}").rstrip("/")
    try:
        r = httpx.get(f"{base}/api/snapshot", timeout=5)
        r.raise_for_status()
    except httpx.HTTPError as exc:
        click.echo(f"Error: could not fetch snapshot from {base}: {exc}", err=True)
        sys.exit(1)
    _dump(r.json(), pretty)


# ── Offline ────────────────────────────────────────────


@cli.command()
@click.option("-n", "--rounds", type=int, default=40, help="Number of synthetic RFQ rounds")
@click.option("--seed", type=int, default=None, help="Random seed for a reproducible stream")
@click.option("--pretty", is_flag=True, help="Indent JSON output")
@click.pass_context
def simulate(ctx: click.Context, rounds: int, seed: int | None, pretty: bool) -> None:
    """Aggregate a synthetic event stream and print the resulting snapshot."""
    cfg = _load(ctx)
    tracker = SwapTracker(cfg.limits)
    gen = SyntheticEventGenerator(cfg.simulation.peers, seed)
    applied = tracker.ingest_many(gen.seed_history(rounds))
    logging.getLogger(__name__).info("Applied %d synthetic events", applied)
    _dump(tracker.snapshot().to_dict(), pretty)


@cli.command()
@click.argument("path", type=click.File("rb"))
@click.option("--pretty", is_flag=True, help="Indent JSON output")
@click.pass_context
def replay(ctx: click.Context, path, pretty: bool) -> None:
    """Aggregate a recorded JSON-lines capture and print the resulting snapshot."""
    cfg = _load(ctx)
    tracker = SwapTracker(cfg.limits)
    applied = 0
    for line in path:
        msg = decode_message(line)
        if msg is not None and tracker.ingest(msg):
            applied += 1
    logging.getLogger(__name__).info("Applied %d recorded events", applied)
    _dump(tracker.snapshot().to_dict(), pretty)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
