"""Tests for the minute tick pipeline."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from websync.tasks.scheduler import create_tick_queue, emit_tick
from websync.tasks.tick_processor import TickProcessor

DB_URL = "https://app.example.com/backup/db"
SITE_URL = "https://site.example.com/"
AT_1205 = datetime(2026, 10, 17, 12, 5, tzinfo=timezone.utc)


def _station(make_settings, make_station, **overrides):
    values = {
        "backups": [{"description": "db", "url": DB_URL, "interval": "d", "time": 725}],
        "urls": [{"description": "site", "url": SITE_URL}],
        "url_uptime_settings": {"interval_minutes": 5, "downtime_tolerance": 1},
    }
    values.update(overrides)
    return make_station(make_settings(**values))


class TestEmitTick:
    async def test_truncates_to_minute(self):
        queue = create_tick_queue(4)

        assert await emit_tick(queue, AT_1205 + timedelta(seconds=42, microseconds=7))

        assert queue.get_nowait() == AT_1205

    async def test_full_queue_drops_tick(self):
        queue = create_tick_queue(1)

        assert await emit_tick(queue, AT_1205)
        assert not await emit_tick(queue, AT_1205 + timedelta(minutes=1))
        assert queue.qsize() == 1


class TestProcess:
    async def test_runs_due_backup_and_uptime(self, make_settings, make_station, server):
        server.add("GET", DB_URL, content=b"dump")
        server.add("GET", SITE_URL)
        station = _station(make_settings, make_station)
        processor = TickProcessor(station, create_tick_queue(4))

        assert await processor.process(AT_1205)

        assert len(station.backups.get_target("db").log) == 1
        assert station.uptime.targets[0].is_ok is True

    async def test_duplicate_minute_is_skipped(self, make_settings, make_station, server):
        server.add("GET", DB_URL, content=b"dump")
        server.add("GET", SITE_URL)
        station = _station(make_settings, make_station)
        processor = TickProcessor(station, create_tick_queue(4))

        assert await processor.process(AT_1205)
        assert not await processor.process(AT_1205 + timedelta(seconds=30))
        assert not await processor.process(AT_1205 - timedelta(minutes=1))

        assert len(station.backups.get_target("db").log) == 1
        assert len(server.requests_to(SITE_URL)) == 1

    async def test_disabled_backups_skip_download(self, make_settings, make_station, server):
        server.add("GET", SITE_URL)
        station = _station(make_settings, make_station, backups_enabled=False)
        processor = TickProcessor(station, create_tick_queue(4))

        await processor.process(AT_1205)

        assert server.requests_to(DB_URL) == []
        assert len(server.requests_to(SITE_URL)) == 1

    async def test_uptime_only_on_its_interval(self, make_settings, make_station, server):
        server.add("GET", SITE_URL)
        station = _station(make_settings, make_station)
        processor = TickProcessor(station, create_tick_queue(4))

        await processor.process(datetime(2026, 10, 17, 9, 3, tzinfo=timezone.utc))

        assert server.requests == []

    async def test_new_day_resets_quota(self, make_settings, make_station):
        station = _station(make_settings, make_station)
        processor = TickProcessor(station, create_tick_queue(4))
        await processor.process(datetime(2026, 10, 17, 23, 58, tzinfo=timezone.utc))
        station.state.warnings_sent = 3

        await processor.process(datetime(2026, 10, 18, 0, 1, tzinfo=timezone.utc))

        assert station.state.warnings_sent == 0


class TestRunLoop:
    async def test_loop_survives_failing_tick(self, make_settings, make_station):
        station = _station(make_settings, make_station)
        queue = create_tick_queue(4)
        processor = TickProcessor(station, queue)
        processor.process = AsyncMock(side_effect=[RuntimeError("boom"), True])

        task = asyncio.create_task(processor.run())
        await queue.put(AT_1205)
        await queue.put(AT_1205 + timedelta(minutes=1))
        await asyncio.wait_for(queue.join(), timeout=1)

        assert processor.is_running
        assert processor.process.await_count == 2

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        assert not processor.is_running
