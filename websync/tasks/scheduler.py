# tasks/scheduler.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from websync.clock import utc_now

logger = logging.getLogger(__name__)

TICK_JOB_ID = "minute_tick"


def create_scheduler() -> AsyncIOScheduler:
    return AsyncIOScheduler(timezone=timezone.utc)


def create_tick_queue(maxsize: int) -> asyncio.Queue:
    return asyncio.Queue(maxsize=maxsize)


async def emit_tick(queue: asyncio.Queue, now: Optional[datetime] = None) -> bool:
    """Queue the current UTC minute. A full queue drops the tick."""
    tick = (now or utc_now()).replace(second=0, microsecond=0)
    try:
        queue.put_nowait(tick)
    except asyncio.QueueFull:
        logger.warning(f"Tick queue full, dropping tick {tick.isoformat()}")
        return False
    return True


def schedule_jobs(scheduler: AsyncIOScheduler, queue: asyncio.Queue) -> None:
    # One tick at second 0 of every UTC minute
    scheduler.add_job(
        emit_tick,
        trigger=CronTrigger(second=0, timezone=timezone.utc),
        args=[queue],
        id=TICK_JOB_ID,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=30,
    )
    logger.info("Minute tick job scheduled")
