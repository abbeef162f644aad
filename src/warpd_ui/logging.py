"""
Structured logging for the warpd UI.

Log records are emitted as JSON objects by default so that client-side
IPC failures can be correlated with the daemon's own logs.

Features:
- JSON-formatted log output for machine-readable logs
- Consistent field structure across all log entries
- Plain-text format for interactive use
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from warpd_ui.config import LoggingConfig

ROOT_LOGGER_NAME = "warpd_ui"

# Default log format for plain-text output
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else came in via `extra`
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JSONFormatter(logging.Formatter):
    """
    A logging formatter that outputs log records as JSON objects.

    Each log record is formatted as a JSON object with consistent fields:
    - timestamp: ISO 8601 formatted timestamp in UTC
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - logger: Logger name
    - message: Log message
    - Default fields given at construction (e.g., the daemon socket path)
    - Additional fields from the record's extra dict, which take precedence
    """

    def __init__(self, default_fields: dict[str, Any] | None = None) -> None:
        super().__init__()
        self.default_fields = dict(default_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            JSON-formatted string representation of the log record.
        """
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(self.default_fields)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in record.__dict__.keys() - _RESERVED_ATTRS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def setup_logging(
    config: LoggingConfig | None = None,
    *,
    level: str = "INFO",
    json_format: bool = True,
    log_to_stdout: bool = True,
    default_fields: dict[str, Any] | None = None,
) -> logging.Logger:
    """
    Configure the warpd_ui package logger.

    Args:
        config: Optional LoggingConfig object with logging settings.
            If provided, overrides the keyword parameters.
        level: Default log level if no config is provided.
        json_format: Whether to use JSON formatting (default: True).
        log_to_stdout: Whether to log to stdout (default: True).
            When False, records go to stderr.
        default_fields: Fields added to every JSON record, such as the
            socket path the process talks to.

    Returns:
        The package logger.

    Example:
        >>> from warpd_ui.logging import setup_logging
        >>> logger = setup_logging(level="DEBUG")
        >>> logger.info("UI started", extra={"socket_path": "/tmp/warpd.sock"})
    """
    if config is not None:
        log_level = "DEBUG" if config.debug_mode else config.level.upper()
        json_format = config.json_format
        log_to_stdout = config.log_to_stdout
    else:
        log_level = level.upper()

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout if log_to_stdout else sys.stderr)
    handler.setLevel(getattr(logging, log_level, logging.INFO))

    if json_format:
        handler.setFormatter(JSONFormatter(default_fields))
    else:
        handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: The name for the logger, typically __name__ of the calling module.
            The "warpd_ui." prefix is added automatically if not present.

    Returns:
        A logger that is a child of the package logger.
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)
