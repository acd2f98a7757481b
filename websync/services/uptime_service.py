# services/uptime_service.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from websync.clock import utc_now
from websync.config import Settings
from websync.repos.audit_log import AuditLog
from websync.services.http_gateway import GatewayError, HttpGateway
from websync.services.schedule import is_uptime_due
from websync.services.warning_service import WarningDispatcher, WarningState

logger = logging.getLogger(__name__)


@dataclass
class UptimeTarget:
    description: str
    url: str
    is_ok: Optional[bool] = None  # None until the first sweep


@dataclass
class SweepResult:
    failed: List[str] = field(default_factory=list)
    warning_attempted: bool = False
    warning_sent: bool = False


class UptimeMonitor:
    def __init__(
        self,
        settings: Settings,
        targets: List[UptimeTarget],
        state: WarningState,
        audit_log: AuditLog,
        gateway: HttpGateway,
        dispatcher: WarningDispatcher,
    ):
        self.settings = settings
        self.targets = targets
        self.state = state
        self.audit_log = audit_log
        self.gateway = gateway
        self.dispatcher = dispatcher

    @property
    def interval_minutes(self) -> int:
        return self.settings.url_uptime_settings.interval_minutes

    @property
    def downtime_tolerance(self) -> int:
        return self.settings.url_uptime_settings.downtime_tolerance

    def is_due(self, now: datetime) -> bool:
        return is_uptime_due(self.interval_minutes, now)

    async def check_all(self, now: Optional[datetime] = None) -> SweepResult:
        """Probe every URL once, then warn if failures piled up past the tolerance."""
        now = now or utc_now()
        result = SweepResult()

        for target in self.targets:
            try:
                await self.gateway.probe(target.url)
                target.is_ok = True
            except GatewayError as e:
                logger.warning(f"Uptime check failed for {target.description}: {e}")
                target.is_ok = False
                self.state.uptime_fails += 1
                result.failed.append(target.description)
                self.audit_log.append(f"{target.description} is down")

        if self.state.uptime_fails > self.downtime_tolerance:
            result.warning_attempted = True
            result.warning_sent = await self._warn(now)
            # Reset even when the quota swallowed the warning
            self.state.uptime_fails = 0

        return result

    async def _warn(self, now: datetime) -> bool:
        down = [t.description for t in self.targets if t.is_ok is False]
        log_lines = self.audit_log.latest_lines()

        body = "Uptime check failed for the following URLs:\n"
        body += "".join(f"{description}\n" for description in down)
        body += f"\nThese are the last {len(log_lines)} lines of the internal log:\n"
        body += "\n".join(log_lines)

        description = f"Uptime check failed. URLs down: {', '.join(down)}"
        return await self.dispatcher.dispatch("Uptime check failed", body, description, now=now)
