"""
Logging setup for Trackport.

Configures the root logger with a console handler and an optional rotating
file handler per process context ("api", "cli").
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from trackport.config import settings

STANDARD_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    return logging.Formatter(STANDARD_FORMAT)


def setup_logging(context: str = "api", level: Optional[str] = None) -> None:
    """
    Configure root logging for the given process context.

    Args:
        context: Name of the running process, used for the log file name
        level: Optional level override (defaults to settings.log_level)

    Raises:
        PermissionError: If the log directory cannot be created
    """
    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    # Re-running setup (tests, reloads) must not stack handlers
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = _build_formatter(settings.log_format)

    if settings.log_console_enabled:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        root.addHandler(console)

    if settings.log_file_enabled:
        log_dir = settings.log_directory
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / f"{context}.log",
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
