"""Centralized logging configuration for slugtrail.

Provides:
- Console output (human-readable)
- Optional rotating JSON file output for analysis
- Subject context (subject_type, subject_id, slug) on every record
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from ..config import get_settings

ROOT_LOGGER = "slugtrail"
CONTEXT_FIELDS = ("subject_type", "subject_id", "slug")


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value not in (None, "N/A"):
                log_data[name] = value
        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class SlugLogAdapter(logging.LoggerAdapter):
    """Logger adapter that adds the subject type and, per call, subject id and slug."""

    def __init__(self, logger: logging.Logger, subject_type: str):
        super().__init__(logger, {})
        self.subject_type = subject_type

    def process(self, msg, kwargs):
        extra = kwargs.get("extra", {})
        extra["subject_type"] = self.subject_type
        kwargs["extra"] = extra
        return msg, kwargs


class _ContextFieldsFilter(logging.Filter):
    """Filter that adds default values for context fields."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "N/A")
        return True


def setup_logging(
    log_level: Optional[str] = None,
    logs_dir: Optional[Path] = None,
    enable_json_file: bool = False,
) -> logging.Logger:
    """Set up logging for the slugtrail namespace.

    Args:
        log_level: Console level (DEBUG, INFO, WARNING, ERROR). Defaults to settings.
        logs_dir: Directory for the JSON log file. Defaults to settings.
        enable_json_file: Whether to write a rotating JSON structured log file

    Returns:
        Root logger for the slugtrail namespace
    """
    settings = get_settings()
    log_level = log_level or settings.log_level

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.DEBUG)

    # Remove existing handlers
    root_logger.handlers = []

    # Console handler (human-readable)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, log_level.upper()))
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    console_handler.addFilter(_ContextFieldsFilter())
    root_logger.addHandler(console_handler)

    if enable_json_file:
        logs_dir = logs_dir or settings.logs_dir
        logs_dir.mkdir(parents=True, exist_ok=True)
        date_str = datetime.now().strftime("%Y%m%d")

        json_handler = RotatingFileHandler(
            logs_dir / f"slugtrail_{date_str}.json",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
        )
        json_handler.setLevel(logging.DEBUG)
        json_handler.setFormatter(JsonFormatter())
        json_handler.addFilter(_ContextFieldsFilter())
        root_logger.addHandler(json_handler)

    return root_logger


def get_subject_logger(name: str, subject_type: str) -> SlugLogAdapter:
    """Get a logger adapter bound to a subject type."""
    return SlugLogAdapter(logging.getLogger(name), subject_type)
