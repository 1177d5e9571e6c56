r"""Structured logging utilities for machine-readable log output.

This module provides a JSON log formatter and a context variable holding
the ID of the channel currently being executed, so that every log record
emitted while a channel runs can be traced back to it. The structured
output is opt-in and is enabled by configuring Python's logging system
to use the provided formatter.

Example:
    Enable structured logging for httpchannel:

    ```python
    import logging
    from httpchannel.utils.structured_logging import StructuredFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    logger = logging.getLogger("httpchannel")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    ```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "channel_context",
    "clear_channel_id",
    "get_channel_id",
    "log_structured",
    "set_channel_id",
]

import contextvars
import json
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Generator

# Context variable for the ID of the channel being executed
_channel_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "channel_id", default=None
)

# Attributes every LogRecord has; anything else was passed through ``extra``
_RECORD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "msecs",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "sinfo",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
    }
)


def get_channel_id() -> str | None:
    """Get the ID of the channel being executed in the current context.

    Returns:
        The channel ID, or None if no channel is being executed.

    Example:
        ```pycon
        >>> from httpchannel.utils.structured_logging import get_channel_id
        >>> get_channel_id() is None
        True

        ```
    """
    return _channel_id.get()


def set_channel_id(channel_id: str) -> None:
    """Set the ID of the channel being executed in the current context.

    Args:
        channel_id: The channel ID.

    Example:
        ```pycon
        >>> from httpchannel.utils.structured_logging import (
        ...     clear_channel_id,
        ...     get_channel_id,
        ...     set_channel_id,
        ... )
        >>> set_channel_id("abc")
        >>> get_channel_id()
        'abc'
        >>> clear_channel_id()

        ```
    """
    _channel_id.set(channel_id)


def clear_channel_id() -> None:
    """Clear the channel ID of the current context."""
    _channel_id.set(None)


@contextmanager
def channel_context(channel_id: str) -> Generator[None, None, None]:
    """Set the channel ID for the duration of a block.

    The previous value is restored when the block exits, even if it
    raises.

    Args:
        channel_id: The channel ID.

    Example:
        ```pycon
        >>> from httpchannel.utils.structured_logging import channel_context, get_channel_id
        >>> with channel_context("abc"):
        ...     get_channel_id()
        ...
        'abc'
        >>> get_channel_id() is None
        True

        ```
    """
    token = _channel_id.set(channel_id)
    try:
        yield
    finally:
        _channel_id.reset(token)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Standard fields in the JSON output: ``timestamp`` (ISO 8601),
    ``level``, ``logger``, ``message``, ``module``, ``function``,
    ``line``, ``thread`` and ``process``. ``channel_id`` is added when a
    channel is being executed, ``exception`` when the record carries
    exception info, and any field passed through ``extra`` is kept.

    Example:
        ```pycon
        >>> import logging
        >>> from io import StringIO
        >>> from httpchannel.utils.structured_logging import StructuredFormatter
        >>> stream = StringIO()
        >>> handler = logging.StreamHandler(stream)
        >>> handler.setFormatter(StructuredFormatter())
        >>> logger = logging.getLogger("test_logger")
        >>> logger.addHandler(handler)
        >>> logger.setLevel(logging.INFO)
        >>> logger.info("Transfer done", extra={"http_code": 200})
        >>> '"http_code": 200' in stream.getvalue()
        True

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: The log record to format.

        Returns:
            JSON-formatted log string.
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
            "process": record.process,
        }

        channel_id = get_channel_id()
        if channel_id is not None:
            log_data["channel_id"] = channel_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value

        return json.dumps(log_data, default=str)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: ARG002
        """Format timestamp as ISO 8601 with millisecond precision.

        Args:
            record: The log record.
            datefmt: Ignored, the format is always ISO 8601.

        Returns:
            ISO 8601 formatted timestamp.
        """
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    """Log a message with structured data.

    The extra fields are included in the JSON output when using
    ``StructuredFormatter``.

    Args:
        logger: Logger to use.
        level: Log level (e.g., logging.DEBUG).
        message: Log message.
        **extra: Additional structured fields to include in the log.
    """
    logger.log(level, message, extra=extra)
