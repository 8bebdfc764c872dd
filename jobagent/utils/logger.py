"""Structured logging for the agent: console lines for operators, JSON lines for the log file."""
import logging
import logging.config
import json
import sys
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from pathlib import Path

ROOT_LOGGER = "jobagent"

# Library loggers routed through the agent's handlers at a fixed level
QUIET_LOGGERS = {"sqlalchemy.engine": "WARNING", "redis": "WARNING"}

CONSOLE_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record; structured fields sit next to the message."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "extra_data", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogger:
    """Keyword arguments become structured fields; ``None`` values are dropped."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log(self, level: int, message: str, **fields):
        exc_info = fields.pop("exc_info", None)
        data = {k: v for k, v in fields.items() if v is not None}
        self.logger.log(level, message, exc_info=exc_info, extra={"extra_data": data})

    def info(self, message: str, **fields):
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields):
        self.log(logging.ERROR, message, **fields)

    def debug(self, message: str, **fields):
        self.log(logging.DEBUG, message, **fields)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True
) -> None:
    """
    Configure the ``jobagent`` logger tree.

    Args:
        log_level: Level for agent loggers and handlers
        log_file: Rotating JSON log file, created with its directory if missing
        enable_console: Write human-readable lines to stdout
    """
    handlers: Dict[str, Dict[str, Any]] = {}
    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "stream": sys.stdout,
            "formatter": "console",
            "level": log_level,
        }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 3,
            "formatter": "json",
            "level": log_level,
        }

    names = list(handlers)
    loggers = {ROOT_LOGGER: {"level": log_level, "handlers": names, "propagate": False}}
    for name, level in QUIET_LOGGERS.items():
        loggers[name] = {"level": level, "handlers": names, "propagate": False}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JSONFormatter},
            "console": {"format": CONSOLE_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
        },
        "handlers": handlers,
        "loggers": loggers,
        "root": {"level": log_level, "handlers": names},
    })


def get_logger(name: str) -> StructuredLogger:
    """Logger under the ``jobagent`` tree; bare names are prefixed."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return StructuredLogger(name)
    return StructuredLogger(f"{ROOT_LOGGER}.{name}")


def log_business_event(
    event_type: str,
    details: Dict[str, Any],
    job_run_id: Optional[int] = None,
    actor_id: Optional[int] = None
) -> None:
    """
    Audit record for a change a job made to tenant data.

    Args:
        event_type: e.g. 'subscription_extended', 'user_location_switched'
        details: Event-specific fields
        job_run_id: Job run record the change was made in, if known
        actor_id: User the change is attributed to (usually the system user)
    """
    get_logger("audit").info(
        f"Business event: {event_type}",
        event_type=event_type,
        job_run_id=job_run_id,
        actor_id=actor_id,
        **details
    )


def log_performance(
    operation: str,
    duration_ms: float,
    additional_data: Optional[Dict[str, Any]] = None
) -> None:
    """Timing record for a job run or a fan-out batch."""
    get_logger("performance").info(
        f"Performance: {operation}",
        operation=operation,
        duration_ms=round(duration_ms, 2),
        **(additional_data or {})
    )
