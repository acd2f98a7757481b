# services/warning_service.py
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from websync.auth.jwt import resolve_bearer
from websync.clock import rfc3339, utc_now
from websync.config import Settings
from websync.repos.audit_log import AuditLog
from websync.schemas.station_schema import WarningPayload
from websync.services.email_service import EmailSender
from websync.services.http_gateway import HttpGateway

logger = logging.getLogger(__name__)


@dataclass
class WarningState:
    """Counters shared by the backup and uptime paths."""

    daily_max: int
    warnings_sent: int = 0
    uptime_fails: int = 0
    quota_day: Optional[date] = None

    def roll_over(self, now: datetime) -> bool:
        """Reset the daily counter when the UTC date changed. Returns True on reset."""
        today = now.astimezone(timezone.utc).date()
        if self.quota_day == today:
            return False
        reset = self.quota_day is not None
        if reset:
            logger.info(f"New UTC day {today}, resetting {self.warnings_sent} sent warnings")
            self.warnings_sent = 0
        self.quota_day = today
        return reset

    def quota_available(self) -> bool:
        return self.warnings_sent < self.daily_max


class WarningDispatcher:
    def __init__(
        self,
        settings: Settings,
        state: WarningState,
        audit_log: AuditLog,
        gateway: HttpGateway,
        email_sender: EmailSender,
    ):
        self.settings = settings
        self.state = state
        self.audit_log = audit_log
        self.gateway = gateway
        self.email_sender = email_sender

    def build_payload(self, description: str, now: datetime) -> WarningPayload:
        return WarningPayload(
            time=rfc3339(now),
            description=description,
            logs=self.audit_log.latest_lines(),
        )

    async def dispatch(self, subject: str, body: str, description: str, now: Optional[datetime] = None) -> bool:
        """Send one warning through every enabled channel.

        Returns True when at least one channel was attempted; only then does
        the daily counter move, once per call.
        """
        now = now or utc_now()
        self.state.roll_over(now)

        if not self.state.quota_available():
            self.audit_log.append("Warning limit exceeded")
            return False

        warnings = self.settings.warning_settings
        attempted = False

        if warnings.use_email:
            attempted = True
            try:
                await run_in_threadpool(self.email_sender.send, warnings.email, subject, body)
            except Exception as e:
                logger.error(f"Failed to send warning email: {e}")
                self.audit_log.append(f"Failed to send warning email: {e}")

        if warnings.send_post_request and warnings.post_request_routes:
            attempted = True
            payload = self.build_payload(description, now).model_dump()
            for route in warnings.post_request_routes:
                try:
                    await self.gateway.post_json(route, payload, token=resolve_bearer(self.settings))
                    logger.info(f"Successfully sent POST warning to {route}")
                except Exception as e:
                    logger.error(f"Failed to send POST warning to {route}: {e}")
                    self.audit_log.append(f"Failed to send POST warning to {route}: {e}")

        if attempted:
            self.state.warnings_sent += 1
        else:
            logger.info(f"No warning channel enabled, dropped warning: {subject}")
        return attempted
