from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from httpchannel.utils.structured_logging import (
    StructuredFormatter,
    channel_context,
    clear_channel_id,
    get_channel_id,
    log_structured,
    set_channel_id,
)


@pytest.fixture
def stream_logger() -> tuple[logging.Logger, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("test_structured_logging")
    logger.handlers = [handler]
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    return logger, stream


#########################################
#     Tests for channel ID handling     #
#########################################


def test_get_channel_id_initially_none() -> None:
    clear_channel_id()
    assert get_channel_id() is None


def test_set_and_get_channel_id() -> None:
    set_channel_id("channel-123")
    assert get_channel_id() == "channel-123"
    clear_channel_id()
    assert get_channel_id() is None


def test_channel_context() -> None:
    with channel_context("abc"):
        assert get_channel_id() == "abc"
    assert get_channel_id() is None


def test_channel_context_nested() -> None:
    """Test that the outer channel ID is restored when a nested context
    exits."""
    with channel_context("outer"):
        with channel_context("inner"):
            assert get_channel_id() == "inner"
        assert get_channel_id() == "outer"


def test_channel_context_restores_on_error() -> None:
    with pytest.raises(RuntimeError, match=r"boom"), channel_context("abc"):
        msg = "boom"
        raise RuntimeError(msg)
    assert get_channel_id() is None


#########################################
#     Tests for StructuredFormatter     #
#########################################


def test_structured_formatter_basic_log(stream_logger: tuple[logging.Logger, StringIO]) -> None:
    """Test that StructuredFormatter produces valid JSON."""
    logger, stream = stream_logger
    logger.info("Test message")

    log_data = json.loads(stream.getvalue().strip())
    assert log_data["message"] == "Test message"
    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test_structured_logging"
    assert log_data["timestamp"].endswith("Z")
    assert "channel_id" not in log_data


def test_structured_formatter_with_channel_id(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    with channel_context("channel-456"):
        logger.debug("Attempt 1")

    log_data = json.loads(stream.getvalue().strip())
    assert log_data["channel_id"] == "channel-456"


def test_structured_formatter_extra_fields(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    logger.info("Transfer done", extra={"http_code": 200, "url": "https://example.com"})

    log_data = json.loads(stream.getvalue().strip())
    assert log_data["http_code"] == 200
    assert log_data["url"] == "https://example.com"


def test_structured_formatter_exception(stream_logger: tuple[logging.Logger, StringIO]) -> None:
    logger, stream = stream_logger
    try:
        msg = "bad value"
        raise ValueError(msg)
    except ValueError:
        logger.exception("Failure")

    log_data = json.loads(stream.getvalue().strip())
    assert "ValueError: bad value" in log_data["exception"]


def test_structured_formatter_non_serializable_extra(
    stream_logger: tuple[logging.Logger, StringIO],
) -> None:
    logger, stream = stream_logger
    logger.info("Object", extra={"payload": object()})

    log_data = json.loads(stream.getvalue().strip())
    assert log_data["payload"].startswith("<object object")


####################################
#     Tests for log_structured     #
####################################


def test_log_structured(stream_logger: tuple[logging.Logger, StringIO]) -> None:
    logger, stream = stream_logger
    log_structured(logger, logging.WARNING, "Slow transfer", total_time=3.5)

    log_data = json.loads(stream.getvalue().strip())
    assert log_data["level"] == "WARNING"
    assert log_data["message"] == "Slow transfer"
    assert log_data["total_time"] == 3.5


def test_log_structured_respects_level(stream_logger: tuple[logging.Logger, StringIO]) -> None:
    logger, stream = stream_logger
    logger.setLevel(logging.INFO)
    log_structured(logger, logging.DEBUG, "Hidden")
    assert stream.getvalue() == ""
