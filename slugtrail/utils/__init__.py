"""Utility modules for slugtrail."""

from .logging_config import (
    setup_logging,
    get_subject_logger,
    JsonFormatter,
    SlugLogAdapter,
)

__all__ = [
    "setup_logging",
    "get_subject_logger",
    "JsonFormatter",
    "SlugLogAdapter",
]
