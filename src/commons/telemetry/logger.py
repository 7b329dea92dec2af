"""Structured logging with JSON output and correlation ID support."""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, ClassVar

# Correlation ID of the request (or background run) being logged
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Additional key/value context, e.g. upload_id inside a pipeline run.
# ContextVar has no default_factory, so lookups fall back to {}.
log_context_var: ContextVar[dict[str, Any]] = ContextVar("log_context")

# LogRecord attributes that are not user-supplied `extra` fields
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


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: Optional correlation ID. Generated if not provided.

    Returns:
        The correlation ID that was set.
    """
    cid = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(cid)
    return cid


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    try:
        return log_context_var.get().copy()
    except LookupError:
        return {}


def set_log_context(**kwargs: Any) -> None:
    """Merge key/value pairs into the logging context."""
    ctx = get_log_context()
    ctx.update(kwargs)
    log_context_var.set(ctx)


def clear_log_context() -> None:
    """Clear the logging context."""
    log_context_var.set({})


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line, suitable for log shippers."""

    def __init__(self, *, include_path: bool = True) -> None:
        """Initialize the JSON formatter.

        Args:
            include_path: Include file path and line number.
        """
        super().__init__()
        self.include_path = include_path

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        if self.include_path:
            log_data["path"] = f"{record.pathname}:{record.lineno}"

        cid = get_correlation_id()
        if cid:
            log_data["correlation_id"] = cid

        log_data["message"] = record.getMessage()

        context = get_log_context()
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data.update(_extra_fields(record))
        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable text formatter with color support."""

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET: ClassVar[str] = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as colored text."""
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
        color = self.COLORS.get(record.levelname, "")

        parts = [
            timestamp,
            f"{color}{record.levelname:8}{self.RESET}",
            f"[{record.name}]",
        ]

        cid = get_correlation_id()
        if cid:
            parts.append(f"[{cid[:8]}]")

        parts.append(record.getMessage())

        fields = {**get_log_context(), **_extra_fields(record)}
        if fields:
            parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))

        message = " ".join(parts)
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def configure_logging(
    level: str = "INFO",
    format_type: str = "json",
    logger_name: str | None = None,
) -> logging.Logger:
    """Configure and return a logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format_type: Output format ('json' or 'text').
        logger_name: Optional logger name. Defaults to root logger.

    Returns:
        Configured logger instance.
    """
    numeric_level = getattr(logging, level.upper())
    logger = logging.getLogger(logger_name)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        JsonFormatter() if format_type == "json" else TextFormatter()
    )
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger by name (usually ``__name__``)."""
    return logging.getLogger(name)
