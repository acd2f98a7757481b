# routers/backup_route.py
# Operator endpoints for backup targets: listing retained artifacts, toggling
# automatic backups, running a backup on demand and restoring an artifact.

from fastapi import APIRouter, Depends, HTTPException

from websync.clock import utc_now
from websync.deps import Station, get_station
from websync.schemas.station_schema import (
    BackupListOut,
    BackupTargetOut,
    BackupToggleIn,
)
from websync.services.backup_service import BackupTarget
from websync.services.schedule import describe_wait, minutes_until_due


router = APIRouter(prefix="/api/backups", tags=["Backups"])


def _get_target(station: Station, description: str) -> BackupTarget:
    target = station.backups.get_target(description)
    if target is None:
        raise HTTPException(status_code=404, detail=f"Unknown backup target: {description}")
    return target


# Every target with its retained records and the wait until its next run
@router.get("", response_model=BackupListOut)
async def list_backups(station: Station = Depends(get_station)):
    """List backup targets"""
    now = utc_now()
    targets = []
    for target in station.backups.targets:
        cfg = target.config
        wait = minutes_until_due(cfg.time, cfg.interval, now)
        targets.append(
            BackupTargetOut(
                description=cfg.description,
                url=cfg.url,
                restore=cfg.restore,
                max=cfg.max,
                interval=cfg.interval,
                time=cfg.time,
                minutes_until_due=wait,
                next_backup_in=describe_wait(wait),
                records=list(target.log.records),
            )
        )
    return BackupListOut(enabled=station.backups_enabled, targets=targets)


@router.put("/enabled")
async def set_backups_enabled(payload: BackupToggleIn, station: Station = Depends(get_station)):
    """Turn automatic backups on or off"""
    async with station.lock:
        station.backups_enabled = payload.enabled
        station.audit_log.append(f"Automatic backups {'enabled' if payload.enabled else 'disabled'}")
    return {"status": "success", "enabled": station.backups_enabled}


# Runs outside the schedule; failures take the same warning path as scheduled ones
@router.post("/{description}/run")
async def run_backup(description: str, station: Station = Depends(get_station)):
    """Run one backup now"""
    target = _get_target(station, description)
    async with station.lock:
        success = await station.backups.attempt_backup(target)
    if not success:
        raise HTTPException(status_code=502, detail=f"Backup of {description} failed, see audit log")
    return {"status": "success", "latest": target.log.records[-1] if target.log.records else None}


@router.post("/{description}/restore/{filename}")
async def restore_backup(description: str, filename: str, station: Station = Depends(get_station)):
    """Push a retained artifact to the target's restore route"""
    target = _get_target(station, description)
    record = target.log.find(filename)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No backup named {filename} for {description}")

    async with station.lock:
        result = await station.restore.restore(target, record)
    if not result.success:
        raise HTTPException(status_code=502, detail=result.message)
    return {"status": "success", "message": result.message}
