"""Main daemon - wires tracker, event source and dashboard server together."""

from __future__ import annotations

import asyncio
import logging
import signal

from tracscope.api.server import DashboardServer
from tracscope.models.config import TrackerConfig
from tracscope.simulation import run_simulation
from tracscope.source import JsonLinesSource, open_source
from tracscope.tracker.engine import SwapTracker

log = logging.getLogger(__name__)


class TrackerDaemon:
    """Read-only swap analytics daemon.

    Feeds sidechannel messages (or synthetic ones in simulation mode) into a
    SwapTracker and serves its snapshots to dashboard clients.
    """

    def __init__(self, cfg: TrackerConfig, tracker: SwapTracker | None = None) -> None:
        self._cfg = cfg
        self._stop = asyncio.Event()
        self.tracker = tracker or SwapTracker(cfg.limits)
        self.server = DashboardServer(
            self.tracker,
            host=cfg.host,
            port=cfg.port,
            broadcast_interval=cfg.broadcast_interval,
            dashboard_path=cfg.dashboard_path or None,
        )

    @property
    def simulation_mode(self) -> bool:
        return self._cfg.simulation.enabled or not self._cfg.source

    async def start(self) -> None:
        """Start the server and run the ingestion loop until stopped."""
        log.info("Starting tracscope daemon")
        log.info("  Channel: %s", self._cfg.channel)
        log.info("  Source: %s", self._cfg.source or "(none)")
        log.info("  Simulation: %s", self.simulation_mode)

        if self._cfg.bootstrap_key and not self._cfg.source:
            log.warning(
                "Bootstrap key set but no source configured; "
                "pipe the sidechannel bridge into --source. Falling back to simulation."
            )

        await self.server.start()
        try:
            if self.simulation_mode:
                await run_simulation(self.tracker, self._cfg.simulation, self._stop)
            else:
                await self._source_loop()
        finally:
            await self.server.stop()
            log.info("Daemon shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop gracefully."""
        log.info("Stop requested")
        self._stop.set()

    async def _source_loop(self) -> None:
        """Read the configured source, reopening it after EOF or errors."""
        while not self._stop.is_set():
            reopen = True
            try:
                source = await open_source(self._cfg.source)
                reopen = source.reopenable
                try:
                    await self._consume_until_stopped(source)
                finally:
                    source.close()
            except asyncio.CancelledError:
                log.info("Source loop cancelled")
                break
            except Exception as exc:
                log.error("Source error: %s", exc, exc_info=True)

            if self._stop.is_set():
                break
            if not reopen:
                # stdin and regular files are read once; keep serving snapshots
                await self._stop.wait()
                break
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._cfg.error_backoff)
            except asyncio.TimeoutError:
                pass

    async def _consume_until_stopped(self, source: JsonLinesSource) -> None:
        consume = asyncio.create_task(self.consume(source))
        stop_wait = asyncio.create_task(self._stop.wait())
        try:
            await asyncio.wait({consume, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (consume, stop_wait):
                task.cancel()
            await asyncio.gather(consume, stop_wait, return_exceptions=True)
        if consume.done() and not consume.cancelled() and consume.exception():
            raise consume.exception()

    async def consume(self, source: JsonLinesSource) -> int:
        """Ingest every message from ``source`` until EOF. Returns messages read."""
        log.info("Reading sidechannel messages from %s", source.name)
        count = 0
        async for msg in source:
            self.tracker.ingest(msg)
            count += 1
        return count


async def run_daemon(cfg: TrackerConfig) -> None:
    """Entry point for running the daemon."""
    daemon = TrackerDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
