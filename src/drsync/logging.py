"""Structured JSON logging for the drsync agent.

Provides audit-friendly logging with contextual fields for submission
lifecycle events, upload attempts and connectivity changes. Photo bytes and
file contents are never logged.

Usage:
    from drsync.logging import setup_logging, sync_logger

    setup_logging("INFO")
    log = sync_logger()
    log.info("drain_started", extra={"trigger": "startup"})
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

from drsync import __version__

# Device identifier included in every record when set
_device_id: str | None = None


class DrsyncJsonFormatter(JsonFormatter):
    """JSON formatter that adds agent context to all log records."""

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict,
    ) -> None:
        """Add standard fields to every log record."""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        log_record["agent_version"] = __version__
        if _device_id:
            log_record["device_id"] = _device_id

        if "message" not in log_record and record.getMessage():
            log_record["message"] = record.getMessage()

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Format time as ISO 8601."""
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return dt.isoformat()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    device_id: str | None = None,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> None:
    """Configure root logger with JSON formatting.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path for rotating file handler
        device_id: Identifier of this device, added to every record
        max_bytes: Max size per log file for rotation
        backup_count: Number of backup files to keep
    """
    global _device_id
    if device_id:
        _device_id = device_id

    formatter = DrsyncJsonFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # JSON to stderr so CLI output on stdout stays parseable
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


@lru_cache(maxsize=32)
def get_logger(name: str) -> logging.Logger:
    """Get a named logger.

    Args:
        name: Logger name (e.g., 'drsync.sync')

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def sync_logger() -> logging.Logger:
    """Get logger for drain and upload events."""
    return get_logger("drsync.sync")


def state_logger() -> logging.Logger:
    """Get logger for submission status changes."""
    return get_logger("drsync.state")


def connectivity_logger() -> logging.Logger:
    """Get logger for reachability changes."""
    return get_logger("drsync.connectivity")


# --- Audit Event Functions ---


def log_submission_created(
    logger: logging.Logger,
    submission_id: str,
    polling_station_code: str,
    online: bool,
) -> None:
    """Log a newly queued submission.

    Args:
        logger: Logger instance
        submission_id: Submission identifier
        polling_station_code: Code of the selected polling station
        online: Whether the device was online at creation time
    """
    logger.info(
        "Submission created",
        extra={
            "event": "submission_created",
            "submission_id": submission_id,
            "polling_station_code": polling_station_code,
            "online": online,
        },
    )


def log_upload_success(
    logger: logging.Logger,
    submission_id: str,
    image_url: str,
    elapsed_ms: float,
) -> None:
    """Log a submission that completed both upload phases.

    Args:
        logger: Logger instance
        submission_id: Submission identifier
        image_url: Remote URL of the uploaded photo
        elapsed_ms: Wall time spent on this record
    """
    logger.info(
        "Upload successful",
        extra={
            "event": "upload_success",
            "submission_id": submission_id,
            "image_url": image_url,
            "elapsed_ms": elapsed_ms,
        },
    )


def log_upload_failed(
    logger: logging.Logger,
    submission_id: str,
    phase: str,
    error: str,
    attempt_count: int,
) -> None:
    """Log a failed upload attempt.

    Args:
        logger: Logger instance
        submission_id: Submission identifier
        phase: Which step failed (read_image, upload_image, submit_metadata)
        error: Error message
        attempt_count: Which attempt this was
    """
    logger.warning(
        "Upload failed",
        extra={
            "event": "upload_failed",
            "submission_id": submission_id,
            "phase": phase,
            "error": error,
            "attempt_count": attempt_count,
        },
    )


def log_state_change(
    logger: logging.Logger,
    submission_id: str,
    old_state: str,
    new_state: str,
) -> None:
    """Log a submission status transition."""
    logger.info(
        "State changed",
        extra={
            "event": "state_change",
            "submission_id": submission_id,
            "old_state": old_state,
            "new_state": new_state,
        },
    )


def log_connectivity_change(logger: logging.Logger, online: bool) -> None:
    """Log a reachability edge.

    Args:
        logger: Logger instance
        online: New reachability state
    """
    logger.info(
        "Connectivity changed",
        extra={
            "event": "connectivity_change",
            "online": online,
        },
    )
