# services/restore_service.py
import logging
from dataclasses import dataclass

from websync.auth.jwt import resolve_bearer
from websync.config import Settings
from websync.repos.audit_log import AuditLog
from websync.schemas.station_schema import BackupRecord
from websync.services.backup_service import BackupTarget
from websync.services.http_gateway import GatewayError, HttpGateway

logger = logging.getLogger(__name__)


@dataclass
class RestoreResult:
    success: bool
    message: str


class RestoreService:
    """Pushes a retained artifact back to its target's restore route.

    Restores are operator-triggered, so failures only reach the audit trail and
    never count against the warning quota.
    """

    def __init__(self, settings: Settings, gateway: HttpGateway, audit_log: AuditLog):
        self.settings = settings
        self.gateway = gateway
        self.audit_log = audit_log

    async def restore(self, target: BackupTarget, record: BackupRecord) -> RestoreResult:
        logger.info(f"Starting restore of {record.filename} from {target.description}")
        try:
            if not target.config.restore:
                raise ValueError("no restore URL configured")
            path = target.log.file_path(record)
            await self.gateway.upload(target.config.restore, path, token=resolve_bearer(self.settings))
        except (GatewayError, OSError, ValueError) as e:
            message = f"Failed to restore file {record.filename} from {target.description}: {e}"
            logger.error(message)
            self.audit_log.append(message)
            return RestoreResult(success=False, message=message)

        message = f"Successfully restored file {record.filename} from {target.description}"
        self.audit_log.append(message)
        return RestoreResult(success=True, message=message)
