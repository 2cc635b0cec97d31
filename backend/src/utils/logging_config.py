"""
Logging setup for the CollabCal backend.

Three loggers under the "collabcal" namespace, fetched with get_logger():

- api: startup and shutdown with the loaded settings, main.py exception
  handlers (every 4xx mapped from a service error), requests rejected by the
  X-User-Id header check in middleware/auth.py, and participant removal in
  api/events.py
- services: one INFO line per committed write in the event, participation,
  schedule-sync and task-request services; WARNING when an
  invitation batch or schedule sync leaves users behind; ERROR right before
  a failed commit is re-raised
- db: SQLAlchemyError caught by the application handler

Context goes in `extra`, never in the message text alone. Keys in use:
event_guid, task_guid, user_id, users, failed_user_ids, kind, actions,
created_by, invited_by, responded_by, removed_by, deleted_by,
requested_by, requested_to, plus org_timezone, cycle_weekday and
cycle_time at startup.

COLLABCAL_ENV=production writes one rotating JSON file per logger
(api.log, services.log, db.log) under COLLABCAL_LOG_DIR, with every
`extra` key promoted to a top-level JSON field. Any other environment
prints one plain line per record to stdout. COLLABCAL_LOG_LEVEL sets the
level for all three.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional


LOGGER_NAMESPACE = "collabcal"
LOGGER_NAMES = ["api", "services", "db"]

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fixed keys: timestamp (UTC, ISO 8601), level, logger, message, module,
    function, line, and exception when one is attached. Keys passed through
    `extra` are added alongside; values that are not JSON types (datetimes,
    enums) are written with str().
    """

    # Attributes present on every LogRecord; anything else came from extra={...}
    _RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in self._RESERVED and key not in payload
        )

        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Plain text for development; `extra` fields are not shown.

    [2024-06-10 10:30:45] INFO - collabcal.services - Created event: evt_01j...
    """

    def __init__(self):
        super().__init__(
            fmt="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def _get_log_level() -> int:
    """COLLABCAL_LOG_LEVEL, falling back to INFO for unknown names."""
    level_name = os.environ.get("COLLABCAL_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def _get_log_dir() -> Path:
    """COLLABCAL_LOG_DIR (default ./logs), created if missing."""
    log_dir = Path(os.environ.get("COLLABCAL_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _is_production() -> bool:
    return os.environ.get("COLLABCAL_ENV", "development").lower() == "production"


def _build_handler(logger_name: str, log_dir: Optional[Path]) -> logging.Handler:
    if log_dir is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ConsoleFormatter())
        return handler

    handler = logging.handlers.RotatingFileHandler(
        log_dir / f"{logger_name}.log",
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8"
    )
    handler.setFormatter(JSONFormatter())
    return handler


def configure_logging() -> Dict[str, logging.Logger]:
    """
    (Re)build the api, services and db loggers from the environment.

    Existing handlers are replaced, so calling this twice does not
    duplicate output. The loggers do not propagate to the root logger,
    which uvicorn configures separately.

    Returns:
        Short logger name -> Logger
    """
    level = _get_log_level()
    log_dir = _get_log_dir() if _is_production() else None

    loggers = {}
    for logger_name in LOGGER_NAMES:
        logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{logger_name}")
        logger.setLevel(level)
        logger.propagate = False
        logger.handlers.clear()

        handler = _build_handler(logger_name, log_dir)
        handler.setLevel(level)
        logger.addHandler(handler)

        loggers[logger_name] = logger

    return loggers


_loggers: Optional[Dict[str, logging.Logger]] = None


def get_logger(name: str) -> logging.Logger:
    """
    Return the configured "collabcal.<name>" logger, configuring on first use.

    Raises:
        ValueError: If name is not api, services or db

    Example:
        >>> logger = get_logger("services")
        >>> logger.info("Invited 2 user(s)", extra={"event_guid": "evt_...", "kind": "PARTICIPATION"})
    """
    global _loggers

    if _loggers is None:
        _loggers = configure_logging()

    if name not in _loggers:
        raise ValueError(
            f"Unknown logger name: {name}. "
            f"Valid names: {', '.join(_loggers)}"
        )

    return _loggers[name]


def init_logging() -> Dict[str, logging.Logger]:
    """Reconfigure from the current environment; main.py calls this on import."""
    global _loggers
    _loggers = configure_logging()
    return _loggers
