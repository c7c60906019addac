"""
Logging configuration for profile migration.

Provides structured logging with JSON and colored console output.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
import json
from pathlib import Path
from typing import Optional

LOG_FILE_NAME = "profile-migration.log"


class JSONFormatter(logging.Formatter):
    """JSON log formatter for machine-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter for better readability."""

    COLORS = {
        logging.DEBUG: "\033[36m",    # Cyan
        logging.INFO: "\033[32m",     # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",    # Red
        logging.CRITICAL: "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, "")
        levelname = record.levelname

        record.levelname = f"{color}{levelname}{self.RESET}"
        result = super().format(record)

        # Restore original levelname for other handlers
        record.levelname = levelname

        return result


def setup_logging(
    level: int = logging.INFO,
    json_logs: bool = False,
    log_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Configure logging for a migration run.

    Args:
        level: Logging level (default: INFO)
        json_logs: Use JSON format for file logs
        log_dir: Directory for the log file (creates profile-migration.log)

    Returns:
        Path of the log file, or None when logging to the console only.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    if sys.stderr.isatty():
        console_format = ColoredFormatter("%(levelname)s %(name)s: %(message)s")
    else:
        console_format = logging.Formatter("%(levelname)s %(name)s: %(message)s")

    console_handler.setFormatter(console_format)
    root_logger.addHandler(console_handler)

    if not log_dir:
        return None

    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # File handler with rotation
    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)  # Capture all to file

    if json_logs:
        file_handler.setFormatter(JSONFormatter())
    else:
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(filename)s:%(lineno)d] %(message)s"
        ))

    root_logger.addHandler(file_handler)

    return log_file


class LogContext:
    """
    Context manager for adding context to log messages.

    Example:
        with LogContext(user="jdoe", stage="DATA_APPLIED"):
            logger.info("Copying files")  # Will include user and stage
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self._old_factory = None

    def __enter__(self):
        self._old_factory = logging.getLogRecordFactory()

        context = self.context
        old_factory = self._old_factory

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            merged = dict(getattr(record, "extra_data", {}) or {})
            merged.update(context)
            record.extra_data = merged
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, *args):
        logging.setLogRecordFactory(self._old_factory)
