"""Daemon wiring: source consumption, simulation mode and shutdown."""

from __future__ import annotations

import asyncio
import json

from tracscope.daemon import TrackerDaemon
from tracscope.models.config import SimulationConfig
from tracscope.source import JsonLinesSource

from tests.conftest import make_test_config
from tests.factories import make_rfq_accept, make_rfq_request, make_swap_settle
from tests.mocks import ListLineReader


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout=timeout)


async def test_consume_ingests_every_message(tracker):
    daemon = TrackerDaemon(make_test_config(source="-"), tracker=tracker)
    lines = [
        json.dumps(make_rfq_request("a")).encode(),
        b"garbage\n",
        json.dumps(make_rfq_accept("a")).encode(),
        json.dumps(make_swap_settle("a")).encode(),
    ]
    source = JsonLinesSource(ListLineReader(lines), name="test")

    assert await daemon.consume(source) == 3
    assert source.lines_read == 4
    totals = tracker.snapshot().totals
    assert totals.rfq_requests == 1
    assert totals.swaps_success == 1


async def test_simulation_mode_when_no_source():
    assert TrackerDaemon(make_test_config()).simulation_mode
    assert not TrackerDaemon(make_test_config(source="-")).simulation_mode
    forced = make_test_config(source="-", simulation=SimulationConfig(enabled=True))
    assert TrackerDaemon(forced).simulation_mode


async def test_file_source_read_once(tmp_path):
    capture = tmp_path / "capture.jsonl"
    capture.write_text(
        "\n".join(json.dumps(m) for m in (make_rfq_request("a"), make_swap_settle("b"))) + "\n",
        encoding="utf-8",
    )
    daemon = TrackerDaemon(make_test_config(source=str(capture)))
    task = asyncio.create_task(daemon.start())

    await _wait_for(lambda: daemon.tracker.state.stats.events_applied == 2)
    # EOF on a regular file does not reopen it
    await asyncio.sleep(0.1)
    assert daemon.tracker.state.stats.events_applied == 2

    await daemon.stop()
    await asyncio.wait_for(task, timeout=2)
    assert daemon.tracker.snapshot().total_peer_count == 2


async def test_missing_source_keeps_running(tmp_path):
    cfg = make_test_config(source=str(tmp_path / "absent.jsonl"), error_backoff=0.05)
    daemon = TrackerDaemon(cfg)
    task = asyncio.create_task(daemon.start())
    await asyncio.sleep(0.1)
    assert not task.done()

    await daemon.stop()
    await asyncio.wait_for(task, timeout=2)


async def test_simulation_start_stop():
    sim = SimulationConfig(enabled=True, seed_events=10, interval=0.05, seed=3)
    daemon = TrackerDaemon(make_test_config(simulation=sim))
    task = asyncio.create_task(daemon.start())

    await _wait_for(lambda: daemon.tracker.state.totals.rfq_requests > 10)

    await daemon.stop()
    await asyncio.wait_for(task, timeout=2)
    assert daemon.server.client_count == 0


async def test_stop_interrupts_large_file(tmp_path):
    total = 50_000
    capture = tmp_path / "large.jsonl"
    capture.write_text((json.dumps(make_rfq_request("a")) + "\n") * total, encoding="utf-8")
    daemon = TrackerDaemon(make_test_config(source=str(capture)))
    task = asyncio.create_task(daemon.start())

    await _wait_for(lambda: daemon.tracker.state.stats.events_applied > 0)
    await daemon.stop()
    await asyncio.wait_for(task, timeout=2)
    assert daemon.tracker.state.stats.events_applied < total


class _BlockingReader:
    """A line reader that never returns."""

    async def readline(self) -> bytes:
        await asyncio.Event().wait()
        return b""


async def test_consume_until_stopped_leaves_no_tasks():
    daemon = TrackerDaemon(make_test_config(source="-"))
    before = asyncio.all_tasks()
    source = JsonLinesSource(_BlockingReader(), name="blocked")

    async def _stop_soon():
        await asyncio.sleep(0.05)
        await daemon.stop()

    stopper = asyncio.create_task(_stop_soon())
    await asyncio.wait_for(daemon._consume_until_stopped(source), timeout=2)
    await stopper
    assert asyncio.all_tasks() == before
