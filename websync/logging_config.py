# logging_config.py
import logging
import logging.config
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FILE_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Chatty third-party loggers; every minute tick would otherwise log a job run
QUIET_LOGGERS = {
    "apscheduler": "WARNING",
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.access": "WARNING",
}


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure station logging: always to stdout, and to a rotating file when
    ``log_file`` is set.

    Args:
        log_level: Level for station loggers (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path of the rotating log file
    """
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "station",
            "stream": "ext://sys.stdout",
        }
    }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "file",
            "filename": log_file,
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
            "encoding": "utf-8",
        }
    handler_names = list(handlers)

    loggers = {
        name: {"handlers": handler_names, "level": level, "propagate": False}
        for name, level in QUIET_LOGGERS.items()
    }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "station": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
                "file": {"format": FILE_LOG_FORMAT, "datefmt": DATE_FORMAT},
            },
            "handlers": handlers,
            "root": {"handlers": handler_names, "level": log_level},
            "loggers": loggers,
        }
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level {log_level}" + (f", writing to {log_file}" if log_file else ""))
