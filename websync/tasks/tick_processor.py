# tasks/tick_processor.py
import asyncio
import logging
from datetime import datetime
from typing import Optional

from websync.deps import Station

logger = logging.getLogger(__name__)


class TickProcessor:
    """Single consumer of the tick queue.

    Ticks are handled strictly one at a time, so backups, uptime sweeps and
    the shared counters never see concurrent writers from this side. A tick
    for a minute that was already handled is ignored.
    """

    def __init__(self, station: Station, queue: asyncio.Queue):
        self.station = station
        self.queue = queue
        self.last_tick: Optional[datetime] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def run(self) -> None:
        self._running = True
        logger.info("Tick processor started")
        try:
            while True:
                tick = await self.queue.get()
                try:
                    await self.process(tick)
                except Exception as e:
                    logger.exception(f"Error while processing tick {tick.isoformat()}: {e}")
                finally:
                    self.queue.task_done()
        finally:
            self._running = False
            logger.info("Tick processor stopped")

    async def process(self, tick: datetime) -> bool:
        """Run whatever is due at ``tick``. Returns False for a duplicate minute."""
        minute = tick.replace(second=0, microsecond=0)
        if self.last_tick is not None and minute <= self.last_tick:
            logger.debug(f"Skipping already processed tick {minute.isoformat()}")
            return False
        self.last_tick = minute

        station = self.station
        async with station.lock:
            station.state.roll_over(minute)

            if station.backups_enabled:
                await station.backups.run_due(minute)

            if station.uptime.is_due(minute):
                await station.uptime.check_all(minute)
        return True
