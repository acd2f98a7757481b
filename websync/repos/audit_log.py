# repos/audit_log.py
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from websync.clock import rfc3339_now
from websync.schemas.station_schema import AuditLogDocument, AuditLogEntry

logger = logging.getLogger(__name__)

AUDIT_LOG_FILENAME = "internal_log.json"
WARNING_LOG_LINES = 50


class AuditLog:
    """Operator-facing diagnostic trail.

    Entries live in memory for the whole process; every append rewrites the
    file with a snapshot of all of them.
    """

    def __init__(self, path: Path, entries: Optional[List[AuditLogEntry]] = None):
        self.path = Path(path)
        self.entries: List[AuditLogEntry] = list(entries or [])

    @classmethod
    def load(cls, path: Path) -> "AuditLog":
        path = Path(path)
        try:
            document = AuditLogDocument.model_validate_json(path.read_text(encoding="utf-8"))
            return cls(path, document.entries)
        except FileNotFoundError:
            return cls(path)
        except (OSError, ValidationError) as e:
            logger.warning(f"Could not read audit log {path}, starting empty: {e}")
            return cls(path)

    def append(self, message: str) -> AuditLogEntry:
        entry = AuditLogEntry(message=message, timestamp=rfc3339_now())
        self.entries.append(entry)
        logger.info(f"Audit: {message}")
        self.save()
        return entry

    def save(self) -> None:
        document = AuditLogDocument(entries=self.entries)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write audit log {self.path}: {e}")

    def latest_lines(self, limit: int = WARNING_LOG_LINES) -> List[str]:
        """Most recent entries first, formatted as ``timestamp - message``."""
        if limit <= 0:
            return []
        return [entry.as_line() for entry in reversed(self.entries[-limit:])]

    def __len__(self) -> int:
        return len(self.entries)
