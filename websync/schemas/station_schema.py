from pydantic import BaseModel, Field
from typing import List, Optional


class BackupRecord(BaseModel):
    filename: str
    timestamp: str  # RFC3339
    size: int = Field(default=0, ge=0)


class RetentionLogDocument(BaseModel):
    entries: List[BackupRecord] = []


class AuditLogEntry(BaseModel):
    message: str
    timestamp: str  # RFC3339

    def as_line(self) -> str:
        return f"{self.timestamp} - {self.message}"


class AuditLogDocument(BaseModel):
    entries: List[AuditLogEntry] = []


class WarningPayload(BaseModel):
    time: str
    description: str
    logs: List[str] = []


class BackupTargetOut(BaseModel):
    description: str
    url: str
    restore: str
    max: int
    interval: str
    time: int
    minutes_until_due: int
    next_backup_in: str
    records: List[BackupRecord] = []


class BackupListOut(BaseModel):
    enabled: bool
    targets: List[BackupTargetOut]


class BackupToggleIn(BaseModel):
    enabled: bool


class UptimeTargetOut(BaseModel):
    description: str
    url: str
    is_ok: Optional[bool] = None


class UptimeStatusOut(BaseModel):
    interval_minutes: int
    downtime_tolerance: int
    uptime_fails: int
    targets: List[UptimeTargetOut]


class AuditLogOut(BaseModel):
    total: int
    lines: List[str]
