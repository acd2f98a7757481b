# repos/retention_log.py
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from websync.clock import rfc3339_now
from websync.schemas.station_schema import BackupRecord, RetentionLogDocument

logger = logging.getLogger(__name__)

RETENTION_LOG_FILENAME = "log.json"
# Bounds the file deletes done by a single backup cycle
EVICTION_BATCH = 6


@dataclass
class EvictionResult:
    removed: List[BackupRecord] = field(default_factory=list)
    failed: List[Tuple[BackupRecord, str]] = field(default_factory=list)


class RetentionLog:
    """Oldest-first list of the artifacts kept in one backup folder."""

    def __init__(self, folder: Path, records: Optional[List[BackupRecord]] = None):
        self.folder = Path(folder)
        self.records: List[BackupRecord] = list(records or [])

    @property
    def path(self) -> Path:
        return self.folder / RETENTION_LOG_FILENAME

    @classmethod
    def load(cls, folder: Path) -> "RetentionLog":
        log = cls(folder)
        try:
            document = RetentionLogDocument.model_validate_json(log.path.read_text(encoding="utf-8"))
            log.records = document.entries
        except FileNotFoundError:
            pass
        except (OSError, ValidationError) as e:
            logger.warning(f"Could not read retention log {log.path}, starting empty: {e}")
        return log

    def save(self) -> None:
        self.folder.mkdir(parents=True, exist_ok=True)
        document = RetentionLogDocument(entries=self.records)
        self.path.write_text(document.model_dump_json(indent=2), encoding="utf-8")

    def append(self, filename: str, size: int, timestamp: Optional[str] = None) -> BackupRecord:
        record = BackupRecord(filename=filename, timestamp=timestamp or rfc3339_now(), size=size)
        self.records.append(record)
        self.save()
        return record

    def find(self, filename: str) -> Optional[BackupRecord]:
        for record in self.records:
            if record.filename == filename:
                return record
        return None

    def file_path(self, record: BackupRecord) -> Path:
        name = Path(record.filename).name
        if not name or name != record.filename or name in (".", ".."):
            raise ValueError(f"Invalid backup filename in log: {record.filename!r}")
        return self.folder / name

    def evict_over_limit(self, max_retained: int, batch: int = EVICTION_BATCH) -> EvictionResult:
        """Delete the oldest artifacts until at most ``max_retained`` remain.

        At most ``batch`` deletions are attempted per call. A record whose file
        cannot be deleted stays in the log and the next one is tried.
        """
        result = EvictionResult()
        attempts = 0
        index = 0
        while len(self.records) > max_retained and attempts < batch and index < len(self.records):
            record = self.records[index]
            attempts += 1
            try:
                self.file_path(record).unlink()
            except FileNotFoundError:
                logger.warning(f"Backup file {record.filename} already missing in {self.folder}, dropping record")
            except (OSError, ValueError) as e:
                logger.error(f"File delete failed for {record.filename} in {self.folder}: {e}")
                result.failed.append((record, str(e)))
                index += 1
                continue

            self.records.pop(index)
            result.removed.append(record)
            self.save()
        return result

    def __len__(self) -> int:
        return len(self.records)
