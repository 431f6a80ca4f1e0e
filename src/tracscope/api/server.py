"""Dashboard HTTP server - snapshot JSON endpoint and SSE stream."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from aiohttp import web

from tracscope import __version__
from tracscope.tracker.engine import SwapTracker

log = logging.getLogger(__name__)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

# Frames buffered per SSE client before it is considered too slow
_CLIENT_QUEUE_SIZE = 8


def _sse_frame(payload: dict) -> bytes:
    return f"data: {json.dumps(payload)}\n\n".encode("utf-8")


class DashboardServer:
    """Serves tracker snapshots over HTTP.

    Routes:
        GET /api/snapshot   latest snapshot as JSON
        GET /events         Server-Sent Events, one snapshot per broadcast interval
        GET /healthz        liveness probe
        GET /               dashboard HTML, if a dashboard file is configured
    """

    def __init__(
        self,
        tracker: SwapTracker,
        host: str = "127.0.0.1",
        port: int = 7842,
        broadcast_interval: float = 3.0,
        dashboard_path: str | Path | None = None,
    ) -> None:
        self._tracker = tracker
        self._host = host
        self._port = port
        self._interval = broadcast_interval
        self._dashboard_path = Path(dashboard_path).expanduser() if dashboard_path else None
        self._clients: set[asyncio.Queue] = set()
        self._broadcast_task: asyncio.Task | None = None
        self._runner: web.AppRunner | None = None
        self.app = self.build_app()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/snapshot", self.handle_snapshot)
        app.router.add_get("/events", self.handle_events)
        app.router.add_get("/healthz", self.handle_health)
        app.router.add_get("/", self.handle_dashboard)
        app.router.add_get("/index.html", self.handle_dashboard)
        app.on_startup.append(self._on_startup)
        app.on_shutdown.append(self._on_shutdown)
        return app

    # ── Lifecycle ──────────────────────────────────────────

    async def start(self) -> None:
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        log.info("Dashboard: http://%s:%d", self._host, self._port)
        log.info("Snapshot API: http://%s:%d/api/snapshot", self._host, self._port)

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

    async def _on_startup(self, app: web.Application) -> None:
        self._broadcast_task = asyncio.create_task(self._broadcast_loop())

    async def _on_shutdown(self, app: web.Application) -> None:
        if self._broadcast_task is not None:
            self._broadcast_task.cancel()
            try:
                await self._broadcast_task
            except asyncio.CancelledError:
                pass
            self._broadcast_task = None
        # Wake every SSE handler so it can return
        for queue in list(self._clients):
            if queue.full():
                # Drop the oldest pending frame to make room for the sentinel
                queue.get_nowait()
            queue.put_nowait(None)

    # ── Broadcast ──────────────────────────────────────────

    async def _broadcast_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.broadcast()

    def broadcast(self) -> int:
        """Queue the current snapshot for every SSE client. Returns clients reached."""
        if not self._clients:
            return 0
        frame = _sse_frame(self._tracker.snapshot().to_dict())
        reached = 0
        for queue in list(self._clients):
            try:
                queue.put_nowait(frame)
                reached += 1
            except asyncio.QueueFull:
                log.debug("SSE client lagging, skipped frame")
        return reached

    # ── Handlers ───────────────────────────────────────────

    async def handle_snapshot(self, request: web.Request) -> web.Response:
        return web.json_response(self._tracker.snapshot().to_dict(), headers=CORS_HEADERS)

    async def handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "version": __version__})

    async def handle_events(self, request: web.Request) -> web.StreamResponse:
        resp = web.StreamResponse(
            status=200,
            headers={
                "Content-Type": "text/event-stream",
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                **CORS_HEADERS,
            },
        )
        await resp.prepare(request)

        queue: asyncio.Queue = asyncio.Queue(maxsize=_CLIENT_QUEUE_SIZE)
        self._clients.add(queue)
        log.debug("SSE client connected (%d total)", len(self._clients))
        try:
            await resp.write(b": connected\n\n")
            await resp.write(_sse_frame(self._tracker.snapshot().to_dict()))
            while True:
                frame = await queue.get()
                if frame is None:
                    break
                await resp.write(frame)
        except (ConnectionResetError, ConnectionError) as exc:
            log.debug("SSE client dropped: %s", exc)
        finally:
            self._clients.discard(queue)
            log.debug("SSE client disconnected (%d total)", len(self._clients))
        return resp

    async def handle_dashboard(self, request: web.Request) -> web.Response:
        if self._dashboard_path is None:
            raise web.HTTPNotFound(text="Not found")
        try:
            html = await asyncio.to_thread(self._dashboard_path.read_text, "utf-8")
        except OSError as exc:
            log.error("Dashboard file unreadable: %s", exc)
            return web.Response(
                status=500,
                text="Dashboard not found. Check dashboard_path in the config.",
            )
        return web.Response(text=html, content_type="text/html", charset="utf-8")
