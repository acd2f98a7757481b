from fastapi import APIRouter, Depends, HTTPException
from datetime import datetime, timezone
from websync.deps import Station, get_station
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"], prefix="/api/v1")

@router.get("/health", summary="Health Check", description="Check that the tick pipeline is alive and report station counters")
async def health_check(station: Station = Depends(get_station)):
    processor_running = station.processor is not None and station.processor.is_running
    last_tick = station.processor.last_tick if station.processor else None

    down = [t.description for t in station.uptime.targets if t.is_ok is False]
    if not processor_running:
        overall_status = "unhealthy"
    elif down:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    response = {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "scheduler": {
            "running": processor_running,
            "last_tick": last_tick.isoformat() if last_tick else None,
        },
        "backups_enabled": station.backups_enabled,
        "warnings": {
            "sent_today": station.state.warnings_sent,
            "daily_max": station.state.daily_max,
            "uptime_fails": station.state.uptime_fails,
        },
        "urls": {t.description: t.is_ok for t in station.uptime.targets},
        "urls_down": down,
    }

    if overall_status == "unhealthy":
        logger.warning("Health check: tick processor is not running")
        raise HTTPException(status_code=503, detail=response)

    return response
