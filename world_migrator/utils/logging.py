"""
Logging module for the world migration tool
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

LOGGER_NAME = "world_migrator"

_STANDARD_RECORD_ATTRS = frozenset(
    (
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "id",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    )
)


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the structured context attached to a record via ``extra``."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_RECORD_ATTRS
    }


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        data.update(_record_context(record))
        return json.dumps(data, default=str)


class EnhancedFormatter(logging.Formatter):
    """
    Formatter that supports a verbose layout and, when enabled, appends the
    structured context (tag, namespace, class hash...) of each record.
    """

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        verbose: bool = False,
        include_context: bool = False,
    ) -> None:
        if verbose:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
        elif not fmt:
            fmt = "%(asctime)s - %(levelname)s - %(message)s"

        super().__init__(fmt, datefmt, style)  # type: ignore[arg-type]
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        result = super().format(record)

        if self.include_context:
            context = _record_context(record)
            if context:
                pairs = " ".join(f"{k}={v}" for k, v in sorted(context.items()))
                result += f" [{pairs}]"

        return result


def setup_main_log_file(
    output_dir: str, json_format: bool = False
) -> logging.FileHandler:
    """
    Set up a file handler for the run log.

    Args:
        output_dir: The output directory path
        json_format: If True, write one JSON object per record

    Returns:
        The file handler for the main log file
    """
    os.makedirs(output_dir, exist_ok=True)

    log_file = os.path.join(output_dir, "migration.log")

    file_handler = logging.FileHandler(log_file, mode="w")
    file_handler.setLevel(logging.DEBUG)  # Always use DEBUG level for file handlers

    formatter: logging.Formatter
    if json_format:
        formatter = JsonFormatter()
    else:
        formatter = EnhancedFormatter(include_context=True)
    file_handler.setFormatter(formatter)

    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(file_handler)

    logger.info(f"Main log file created at: {log_file}")
    return file_handler


def setup_logger(
    verbose: bool = False,
    output_dir: str | None = None,
    json_format: bool = False,
) -> logging.Logger:
    """
    Set up and return the logger with appropriate formatting.

    Args:
        verbose: If True, set console handler to DEBUG level; otherwise INFO level
        output_dir: Optional output directory for the main log file
        json_format: If True, the log file is written as JSON lines

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Clear any existing handlers to prevent duplicate messages
    if logger.handlers:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(
        EnhancedFormatter(verbose=verbose, include_context=verbose)
    )
    logger.addHandler(console_handler)

    if output_dir:
        setup_main_log_file(output_dir, json_format=json_format)

    return logger


def log_with_context(level: int, message: str, **kwargs: Any) -> None:
    """
    Log a message with additional context information.

    Args:
        level: The logging level (e.g., logging.INFO)
        message: The log message
        **kwargs: Additional context to include in the log record
    """
    # exc_info is a logging keyword, not context
    exc_info = kwargs.pop("exc_info", None)
    extras = {k: v for k, v in kwargs.items() if v is not None}

    logger = logging.getLogger(LOGGER_NAME)
    logger.log(level, message, extra=extras, exc_info=exc_info)


def format_felt(value: int) -> str:
    """Format a felt the way explorers display it (0x-prefixed, 64 hex digits)."""
    return f"{value:#066x}"


def get_logger() -> logging.Logger:
    """Get the world_migrator logger, creating it with defaults if needed."""
    migrator_logger = logging.getLogger(LOGGER_NAME)
    if not migrator_logger.handlers:
        migrator_logger.setLevel(logging.INFO)
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        handler.setFormatter(EnhancedFormatter())
        migrator_logger.addHandler(handler)
    return migrator_logger


# Module logger - will be properly initialized when setup_logger is called
logger = get_logger()
