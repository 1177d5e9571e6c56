from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import Mock, patch

import httpx
import pytest

from httpchannel.utils.structured_logging import clear_channel_id
from tests.helpers import CountingTransport

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def mock_sleep() -> Generator[Mock, None, None]:
    """Patch time.sleep to make tests run faster."""
    with patch("time.sleep", return_value=None) as mock:
        yield mock


@pytest.fixture
def ok_transport() -> CountingTransport:
    """Create a transport that answers every request with ``200 OK``."""
    return CountingTransport(
        lambda request: httpx.Response(
            200, headers={"Content-Type": "text/plain; charset=utf-8"}, content=b"hello"
        )
    )


@pytest.fixture
def connect_error_transport() -> CountingTransport:
    """Create a transport whose connection always fails (continuable
    error)."""

    def handler(request: httpx.Request) -> httpx.Response:
        msg = "Connection refused"
        raise httpx.ConnectError(msg, request=request)

    return CountingTransport(handler)


@pytest.fixture
def unsupported_protocol_transport() -> CountingTransport:
    """Create a transport that always fails with a terminal error."""

    def handler(request: httpx.Request) -> httpx.Response:
        msg = "Request URL has an unsupported protocol"
        raise httpx.UnsupportedProtocol(msg, request=request)

    return CountingTransport(handler)


@pytest.fixture(autouse=True)
def _reset_channel_id() -> Generator[None, None, None]:
    """Make sure no channel ID leaks from one test to another."""
    yield
    clear_channel_id()
