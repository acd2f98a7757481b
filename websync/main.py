# main.py
from fastapi import FastAPI
import asyncio
import logging
import sys

import uvicorn

from websync.config import get_settings
from websync.deps import create_station
from websync.logging_config import setup_logging
from websync.middleware.error_handler import ErrorHandlerMiddleware
from websync.routers.audit_route import router as audit_router
from websync.routers.backup_route import router as backup_router
from websync.routers.health import router as health_router
from websync.routers.uptime_route import router as uptime_router
from websync.tasks.scheduler import create_scheduler, create_tick_queue, schedule_jobs
from websync.tasks.tick_processor import TickProcessor

logger = logging.getLogger(__name__)


app = FastAPI(
    title="WebSync Station",
    description="Scheduled backups, uptime monitoring and throttled warnings",
    version="1.0.0"
)


@app.on_event("startup")
async def startup():
    try:
        settings = get_settings()
    except Exception as e:
        logger.critical(f"Failed to load configuration: {str(e)}")
        sys.exit(1)

    setup_logging(log_level="DEBUG" if settings.debug else "INFO", log_file=settings.log_file)
    logger.info("Starting WebSync Station...")

    try:
        app.state.station = create_station(settings)
    except Exception as e:
        logger.critical(f"Critical startup failure: {str(e)}")
        sys.exit(1)

    station = app.state.station
    queue = create_tick_queue(settings.tick_queue_size)

    processor = TickProcessor(station, queue)
    station.processor = processor
    app.state.processor_task = asyncio.create_task(processor.run())
    app.state.processor_task.add_done_callback(
        lambda t: logger.error(f"Tick processor failed: {t.exception()}") if not t.cancelled() and t.exception() else None
    )

    app.state.scheduler = create_scheduler()
    schedule_jobs(app.state.scheduler, queue)
    app.state.scheduler.start()
    logger.info(
        f"Station started: {len(station.backups.targets)} backup targets, "
        f"{len(station.uptime.targets)} uptime urls, backups {'enabled' if station.backups_enabled else 'disabled'}"
    )


@app.on_event("shutdown")
async def shutdown():
    logger.info("Starting station shutdown...")

    try:
        if hasattr(app.state, 'scheduler'):
            app.state.scheduler.shutdown(wait=False)
            logger.info("Scheduler shutdown completed")
    except Exception as e:
        logger.error(f"Error shutting down scheduler: {str(e)}")

    task = getattr(app.state, 'processor_task', None)
    if task is not None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Tick processor stopped")

    logger.info("Station shutdown completed")


app.add_middleware(ErrorHandlerMiddleware)

app.include_router(health_router)
app.include_router(backup_router)
app.include_router(uptime_router)
app.include_router(audit_router)


def run():
    try:
        settings = get_settings()
    except Exception as e:
        setup_logging()
        logger.critical(f"Failed to load configuration: {str(e)}")
        sys.exit(1)

    setup_logging(log_level="DEBUG" if settings.debug else "INFO", log_file=settings.log_file)
    uvicorn.run("websync.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
