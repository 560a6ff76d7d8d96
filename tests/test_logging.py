"""Tests for structured JSON logging."""

import json
import logging
from pathlib import Path

import pytest

from drsync import __version__
from drsync.logging import (
    DrsyncJsonFormatter,
    log_upload_failed,
    setup_logging,
    sync_logger,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_audit_event_written_as_json(tmp_path: Path, restore_root_logger):
    log_file = tmp_path / "logs" / "drsync.log"
    setup_logging("INFO", log_file=log_file, device_id="tablet-7")

    log_upload_failed(sync_logger(), "sub-1", "upload_image", "Connection error: refused", 2)
    for handler in logging.getLogger().handlers:
        handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert record["event"] == "upload_failed"
    assert record["submission_id"] == "sub-1"
    assert record["phase"] == "upload_image"
    assert record["attempt_count"] == 2
    assert record["level"] == "WARNING"
    assert record["logger"] == "drsync.sync"
    assert record["agent_version"] == __version__
    assert record["device_id"] == "tablet-7"
    assert record["timestamp"].endswith("+00:00")


def test_level_filters_records(tmp_path: Path, restore_root_logger):
    log_file = tmp_path / "drsync.log"
    setup_logging("ERROR", log_file=log_file)

    sync_logger().info("Drain started")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_file.read_text(encoding="utf-8") == ""


def test_formatter_uses_current_json_module():
    from pythonjsonlogger.json import JsonFormatter

    assert issubclass(DrsyncJsonFormatter, JsonFormatter)
