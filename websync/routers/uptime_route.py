from fastapi import APIRouter, Depends

from websync.deps import Station, get_station
from websync.schemas.station_schema import UptimeStatusOut, UptimeTargetOut

router = APIRouter(prefix="/api/uptime", tags=["Uptime"])


def _status(station: Station) -> UptimeStatusOut:
    monitor = station.uptime
    return UptimeStatusOut(
        interval_minutes=monitor.interval_minutes,
        downtime_tolerance=monitor.downtime_tolerance,
        uptime_fails=station.state.uptime_fails,
        targets=[
            UptimeTargetOut(description=t.description, url=t.url, is_ok=t.is_ok)
            for t in monitor.targets
        ],
    )


@router.get("", response_model=UptimeStatusOut)
async def uptime_status(station: Station = Depends(get_station)):
    return _status(station)


@router.post("/check", response_model=UptimeStatusOut)
async def check_now(station: Station = Depends(get_station)):
    """Check all URLs now, with the same warning rules as a scheduled sweep"""
    async with station.lock:
        await station.uptime.check_all()
    return _status(station)
