"""
Logging Configuration — Console output plus a per-run error log.

Provides consistent logging across all modules with:
- Human-readable console output (colored on a TTY) or JSON lines
- An ERROR-level file log per run, with full tracebacks

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: json, text (default: text)

## Usage

    from mirror_backup.logging_config import setup_logging

    setup_logging(error_log=config.error_log_path)  # Call once at startup
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import redact_credentials

# Attributes callers may attach via `extra=` that are worth keeping
EXTRA_FIELDS = ("slug", "attempt", "description")


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Output format:
    {"ts": "...", "level": "...", "logger": "...", "message": "...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact_credentials(record.getMessage()),
        }

        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        if record.exc_info:
            log_entry["exception"] = redact_credentials(self.formatException(record.exc_info))

        return json.dumps(log_entry)


class HumanFormatter(logging.Formatter):
    """
    Human-readable log formatter for the console.

    Output format:
    12:34:56 INFO    [sync           ] Message
    """

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        time_str = datetime.now().strftime("%H:%M:%S")

        level = record.levelname
        if sys.stderr.isatty():
            color = self.COLORS.get(level, "")
            level = f"{color}{level:7}{self.RESET}"
        else:
            level = f"{level:7}"

        module = record.name.split(".")[-1][:15]
        msg = redact_credentials(record.getMessage())

        return f"{time_str} {level} [{module:15}] {msg}"


class ErrorFileFormatter(logging.Formatter):
    """
    Persistent error log format, keeps stack and cause.

    [2026-10-17 09:15:02] ERROR: message
    Traceback ...
    """

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"[{self.formatTime(record, self.datefmt)}] {record.levelname}: "
            f"{redact_credentials(record.getMessage())}"
        )
        if record.exc_info:
            line += "\n" + redact_credentials(self.formatException(record.exc_info))
        return line


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    error_log: Optional[Path] = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
               Defaults to LOG_LEVEL env var or INFO.
        format_type: Output format (json, text).
                     Defaults to LOG_FORMAT env var or text.
        error_log: File receiving ERROR records for this run.
                   Parent directory is created if needed.
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_format = (format_type or os.environ.get("LOG_FORMAT", "text")).lower()

    numeric_level = getattr(logging, log_level, logging.INFO)

    formatter: logging.Formatter
    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = HumanFormatter()

    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Remove existing handlers
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.setLevel(numeric_level)
    root.addHandler(console)

    if error_log is not None:
        error_log.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(error_log, encoding="utf-8")
        file_handler.setFormatter(ErrorFileFormatter())
        file_handler.setLevel(logging.ERROR)
        root.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={log_level}, format={log_format}, error_log={error_log}"
    )
