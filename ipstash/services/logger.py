"""Structured JSON logging for scheduled runs."""

import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter

from ipstash.errors import (
    ConfigInvalidError,
    FetchFailedError,
    InvalidIPFormatError,
    IPStashError,
    PublishFailedError,
)
from ipstash.models.run_outcome import RunOutcome


# Global run ID for correlation across log entries
RUN_ID = str(uuid.uuid4())


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter that adds run_id and standardized fields."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record.

        Args:
            log_record: The log record to modify.
            record: The original logging.LogRecord.
            message_dict: Additional fields from the logging call.
        """
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = (
            datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        )
        log_record["run_id"] = RUN_ID
        log_record["level"] = record.levelname
        log_record["logger"] = record.name


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure structured JSON logging for the application.

    Args:
        verbose: Log at DEBUG instead of INFO.

    Returns:
        logging.Logger: Configured root logger.
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    json_handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(message)s",
        timestamp=True,
    )
    json_handler.setFormatter(formatter)
    logger.addHandler(json_handler)

    return logger


def log_ip_resolved(ip: str, source: str, duration_ms: int) -> None:
    """Log the resolved public IP.

    Args:
        ip: Validated IP literal.
        source: Fetch URL, or "static" for an injected literal.
        duration_ms: Resolution time in milliseconds.
    """
    logger = logging.getLogger(__name__)
    logger.info(
        "IP resolved",
        extra={"ip": ip, "source": source, "duration_ms": duration_ms},
    )


def log_propagation(outcome: RunOutcome) -> None:
    """Log the structured result of a successful run."""
    logger = logging.getLogger(__name__)
    message = "Dry run completed" if outcome.is_dry_run() else "Run completed"
    logger.info(
        message,
        extra={
            "ip": outcome.ip,
            "action": outcome.action.value,
            "target": outcome.target,
            "receivers": outcome.receivers,
            "history_size": outcome.history_size,
            "duration_ms": outcome.duration_ms,
        },
    )


def log_run_failure(error: IPStashError) -> None:
    """Log a terminal run error with the context needed to diagnose it.

    Args:
        error: The error that ended the run.
    """
    fields: Dict[str, Any] = {"error_kind": type(error).__name__}
    if isinstance(error, FetchFailedError):
        fields["url"] = error.url
    elif isinstance(error, InvalidIPFormatError):
        fields["raw_value"] = error.raw_value
    elif isinstance(error, PublishFailedError):
        fields["target"] = error.target
    elif isinstance(error, ConfigInvalidError):
        fields["setting"] = error.setting

    logger = logging.getLogger(__name__)
    logger.error(f"Run failed: {error}", extra=fields)
