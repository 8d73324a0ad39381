"""Structured logging configuration for casegraph."""

import logging
import json
import sys
import time
from datetime import datetime, timezone
from typing import Dict, Any, Optional
import threading
from contextlib import contextmanager

import structlog


# Thread-local storage for context
_context = threading.local()

_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "getMessage", "exc_info", "exc_text",
    "stack_info", "taskName",
}


class StructuredFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log string
        """
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if hasattr(_context, "data"):
            log_data.update(_context.data)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    format: str = "json",
    level: str = "INFO",
    log_file: Optional[str] = None
) -> None:
    """Configure structured logging for the application.

    Args:
        format: Log format ("json" or "text")
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if format == "json":
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def get_audit_logger(name: str = "casegraph.audit"):
    """Get a structlog logger whose events become records on a stdlib logger.

    Event keys travel as ``extra`` fields, so the handlers, level and format
    installed by ``setup_logging`` apply to audit events too.

    Args:
        name: Stdlib logger name

    Returns:
        Bound structlog logger
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.render_to_log_kwargs,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def log_event(logger_name: str, event: str, **kwargs) -> None:
    """Log a structured event.

    Args:
        logger_name: Name of the logger to use
        event: Event name/type
        **kwargs: Additional fields to include in the log
    """
    logger = get_logger(logger_name)
    logger.info(event, extra=kwargs)


def log_error(
    logger_name: str,
    event: str,
    error: Exception,
    **kwargs
) -> None:
    """Log a structured error.

    Args:
        logger_name: Name of the logger to use
        event: Event name/type
        error: The exception that occurred
        **kwargs: Additional fields to include in the log
    """
    logger = get_logger(logger_name)
    kwargs["error_type"] = type(error).__name__
    logger.error(f"{event}: {str(error)}", exc_info=True, extra=kwargs)


def log_performance(
    logger_name: str,
    operation: str,
    duration_ms: float,
    **kwargs
) -> None:
    """Log performance metrics.

    Args:
        logger_name: Name of the logger to use
        operation: Operation name
        duration_ms: Duration in milliseconds
        **kwargs: Additional fields to include in the log
    """
    logger = get_logger(logger_name)
    kwargs["duration_ms"] = duration_ms
    logger.info(f"{operation} completed in {duration_ms:.1f}ms", extra=kwargs)


@contextmanager
def log_context(**kwargs):
    """Context manager to add fields to all logs within the context.

    Example:
        with log_context(case_id="case-7"):
            logger.info("Building graph")  # includes case_id
    """
    if not hasattr(_context, "data"):
        _context.data = {}

    old_context = _context.data.copy()
    _context.data.update(kwargs)

    try:
        yield
    finally:
        _context.data = old_context


class Timer:
    """Context manager for timing operations.

    Example:
        with Timer() as timer:
            detector.detect(names, aliases)
        log_performance(__name__, "cluster_detection", timer.duration_ms)
    """

    def __init__(self):
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        self.duration_ms = (self.end_time - self.start_time) * 1000
