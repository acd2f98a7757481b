import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from fastapi import Request

from websync.config import Settings
from websync.repos.audit_log import AUDIT_LOG_FILENAME, AuditLog
from websync.services.backup_service import BackupEngine, BackupTarget
from websync.services.email_service import EmailSender
from websync.services.http_gateway import HttpGateway
from websync.services.restore_service import RestoreService
from websync.services.uptime_service import UptimeMonitor, UptimeTarget
from websync.services.warning_service import WarningDispatcher, WarningState

if TYPE_CHECKING:
    from websync.tasks.tick_processor import TickProcessor

WELCOME_MESSAGE = (
    "Welcome to WebSync Station. If this is your first time using the station "
    "remember to edit config.toml and then restart."
)


@dataclass
class Station:
    """Everything the tick processor and the operator API share.

    Mutations happen either inside the tick processor or under ``lock``.
    """

    settings: Settings
    audit_log: AuditLog
    state: WarningState
    gateway: HttpGateway
    warnings: WarningDispatcher
    backups: BackupEngine
    uptime: UptimeMonitor
    restore: RestoreService
    backups_enabled: bool = True
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    processor: Optional["TickProcessor"] = None


def create_station(
    settings: Settings,
    gateway: Optional[HttpGateway] = None,
    email_sender: Optional[EmailSender] = None,
) -> Station:
    data_dir = Path(settings.data_dir)
    gateway = gateway or HttpGateway()
    email_sender = email_sender or EmailSender(settings.smtp)

    audit_log = AuditLog.load(data_dir / AUDIT_LOG_FILENAME)
    if len(audit_log) == 0:
        audit_log.append(WELCOME_MESSAGE)

    state = WarningState(daily_max=settings.warning_settings.daily_max)
    warnings = WarningDispatcher(settings, state, audit_log, gateway, email_sender)
    targets = [BackupTarget.load(config, data_dir) for config in settings.backups]
    urls = [UptimeTarget(description=u.description, url=u.url) for u in settings.urls]

    return Station(
        settings=settings,
        audit_log=audit_log,
        state=state,
        gateway=gateway,
        warnings=warnings,
        backups=BackupEngine(settings, targets, gateway, audit_log, warnings),
        uptime=UptimeMonitor(settings, urls, state, audit_log, gateway, warnings),
        restore=RestoreService(settings, gateway, audit_log),
        backups_enabled=settings.backups_enabled,
    )


def get_station(request: Request) -> Station:
    return request.app.state.station
