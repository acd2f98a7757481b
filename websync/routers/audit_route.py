from fastapi import APIRouter, Depends, Query

from websync.deps import Station, get_station
from websync.schemas.station_schema import AuditLogOut

router = APIRouter(prefix="/api/audit", tags=["Audit"])


@router.get("", response_model=AuditLogOut)
async def audit_log(
    limit: int = Query(default=50, ge=1, le=1000),
    station: Station = Depends(get_station),
):
    return AuditLogOut(total=len(station.audit_log), lines=station.audit_log.latest_lines(limit))
