"""Tests for structured logging."""

import json
import logging

from slugtrail.utils.logging_config import JsonFormatter, get_subject_logger, setup_logging


def test_json_formatter_includes_subject_context() -> None:
    records = []

    class Capture(logging.Handler):
        def emit(self, record):
            records.append(record)

    logger = logging.getLogger("slugtrail.test_capture")
    handler = Capture()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        get_subject_logger("slugtrail.test_capture", "Post").info(
            "assigned", extra={"subject_id": 3, "slug": "apple"}
        )
    finally:
        logger.removeHandler(handler)

    payload = json.loads(JsonFormatter().format(records[0]))
    assert payload["message"] == "assigned"
    assert payload["subject_type"] == "Post"
    assert payload["subject_id"] == 3
    assert payload["slug"] == "apple"


def test_setup_logging_writes_json_file(tmp_path) -> None:
    root = setup_logging("WARNING", logs_dir=tmp_path, enable_json_file=True)
    try:
        logging.getLogger("slugtrail.test_file").warning("conflict")
        for handler in root.handlers:
            handler.flush()
    finally:
        for handler in list(root.handlers):
            handler.close()
        root.handlers = []

    (log_file,) = tmp_path.glob("slugtrail_*.json")
    line = json.loads(log_file.read_text().splitlines()[0])
    assert line["message"] == "conflict"
    assert line["level"] == "WARNING"
