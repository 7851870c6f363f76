"""
Structured logging for the update engine.

Log records are emitted as one JSON object per line so that update runs can
be inspected after the fact (which package was resolved to which version,
which folders were backed up or restored, and where a failure happened).

Features:
- JSON-formatted output with a consistent field set
- Structured context via the ``extra`` argument of logging calls
- Bound context fields (package, specifier, folder) via get_context_logger
- Plain-text fallback for interactive use
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from update_engine.config import LoggingConfig

ROOT_LOGGER_NAME = "update_engine"

# Plain-text format used when JSON output is disabled
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_RECORD_KEYS = frozenset(
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
    A logging formatter that renders each record as a JSON object.

    Fields:
    - timestamp: ISO 8601 timestamp in UTC
    - level: Log level name
    - logger: Logger name
    - message: Formatted log message
    - exception: Formatted traceback, when the record carries one
    - any non-None field passed via ``extra``
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            JSON-formatted string representation of the log record.
        """
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_KEYS or value is None:
                continue
            log_entry[key] = value

        return json.dumps(log_entry, default=str)


def setup_logging(
    config: LoggingConfig | None = None,
    *,
    level: str = "INFO",
    json_format: bool = True,
    log_to_stdout: bool = True,
) -> logging.Logger:
    """
    Configure the ``update_engine`` logger hierarchy.

    Args:
        config: Optional LoggingConfig. When given, its values take precedence
            over the keyword arguments.
        level: Log level used when no config is provided.
        json_format: Whether to emit JSON (default) or plain text.
        log_to_stdout: Whether to attach a stdout handler.

    Returns:
        The package root logger.

    Example:
        >>> from update_engine.logging import setup_logging
        >>> logger = setup_logging(level="DEBUG")
        >>> logger.info("Backup created", extra={"backup_root": "/tmp/app/.update_backup"})
    """
    if config is not None:
        level = config.level
        json_format = config.json_format
        log_to_stdout = config.log_to_stdout

    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)

    # Reconfiguring must not stack handlers
    logger.handlers.clear()

    if log_to_stdout:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        if json_format:
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        logger.addHandler(handler)

    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the ``update_engine`` hierarchy.

    Args:
        name: Logger name, typically ``__name__``. The ``update_engine.``
            prefix is added when missing.

    Returns:
        A logger instance.
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that attaches fixed context fields to every record.

    Update operations log the same identifiers (package, specifier, folder)
    on every line they emit; binding them once keeps call sites short.
    Fields passed per call via ``extra`` take precedence over bound ones.

    Example:
        >>> log = get_context_logger(__name__, package="tns-android", specifier="next")
        >>> log.info("Resolved dist-tag", extra={"version": "7.0.0-rc.3"})
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_context_logger(name: str, **context: Any) -> ContextLogger:
    """
    Get a logger that adds ``context`` to every record it emits.

    Args:
        name: Logger name, as for get_logger.
        **context: Fields bound to every record (e.g., package, specifier,
            folder). None values are dropped by JSONFormatter.

    Returns:
        A ContextLogger wrapping ``get_logger(name)``.
    """
    return ContextLogger(get_logger(name), context)
