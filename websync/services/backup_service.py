# services/backup_service.py
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from websync.auth.jwt import resolve_bearer
from websync.config import BackupTargetConfig, Settings
from websync.repos.audit_log import AuditLog
from websync.repos.retention_log import RETENTION_LOG_FILENAME, RetentionLog
from websync.services.filenames import FilenameError
from websync.services.http_gateway import GatewayError, HttpGateway
from websync.services.schedule import is_backup_due
from websync.services.warning_service import WarningDispatcher

logger = logging.getLogger(__name__)


@dataclass
class BackupTarget:
    config: BackupTargetConfig
    log: RetentionLog
    last_ok: Optional[bool] = None

    @property
    def description(self) -> str:
        return self.config.description

    @classmethod
    def load(cls, config: BackupTargetConfig, data_dir: Path) -> "BackupTarget":
        return cls(config=config, log=RetentionLog.load(Path(data_dir) / config.description))


class BackupEngine:
    def __init__(
        self,
        settings: Settings,
        targets: List[BackupTarget],
        gateway: HttpGateway,
        audit_log: AuditLog,
        dispatcher: WarningDispatcher,
    ):
        self.settings = settings
        self.targets = targets
        self.gateway = gateway
        self.audit_log = audit_log
        self.dispatcher = dispatcher

    def get_target(self, description: str) -> Optional[BackupTarget]:
        for target in self.targets:
            if target.description == description:
                return target
        return None

    def due_targets(self, now: datetime) -> List[BackupTarget]:
        return [t for t in self.targets if is_backup_due(t.config.time, t.config.interval, now)]

    async def run_due(self, now: datetime) -> int:
        """Back up every target due at ``now``, one after another. Returns the success count."""
        due = self.due_targets(now)
        if due:
            logger.info(f"{len(due)} backup(s) due: {', '.join(t.description for t in due)}")
        succeeded = 0
        for target in due:
            if await self.attempt_backup(target):
                succeeded += 1
        return succeeded

    async def attempt_backup(self, target: BackupTarget) -> bool:
        url = target.config.url
        logger.info(f"Attempting backup of {url}")

        try:
            result = await self.gateway.download(
                url,
                target.log.folder,
                token=resolve_bearer(self.settings),
                reserved=(RETENTION_LOG_FILENAME,),
            )
        except (GatewayError, FilenameError, OSError) as e:
            target.last_ok = False
            await self._report_failure(target, e)
            return False

        try:
            target.log.append(result.filename, result.size)
        except OSError as e:
            target.last_ok = False
            logger.error(f"Could not update retention log for {target.description}: {e}")
            self.audit_log.append(f"Backup of {url} saved as {result.filename} but the log could not be written: {e}")
            return False

        target.last_ok = True
        self.evict(target)
        return True

    def evict(self, target: BackupTarget) -> None:
        try:
            result = target.log.evict_over_limit(target.config.max)
        except OSError as e:
            logger.error(f"Could not prune retention log for {target.description}: {e}")
            self.audit_log.append(f"Failed to prune backups for {target.description}: {e}")
            return

        if result.removed:
            logger.info(f"Removed {len(result.removed)} backup(s) over limit from {target.description}")
        for record, error in result.failed:
            self.audit_log.append(f"Failed to delete backup {record.filename} from {target.description}: {error}")

    async def _report_failure(self, target: BackupTarget, error: Exception) -> None:
        message = f"Backup failed for URL: {target.config.url}. Error: {error}"
        logger.error(message)
        self.audit_log.append(message)
        await self.dispatcher.dispatch("Backup failed", message, message)
