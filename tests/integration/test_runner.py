r"""Integration tests for TransferRunner against live HTTP endpoints."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from httpchannel import Channel, TransferError, TransferErrorKind
from tests.helpers import HTTPBIN_URL, LIVE_URLS

if TYPE_CHECKING:
    from pathlib import Path


@pytest.mark.parametrize("url", LIVE_URLS)
def test_runner_live_url(url: str) -> None:
    with Channel(url, return_transfer=True) as channel:
        result = channel.exec(max_retries=2)

    assert result.success
    assert result.http_status_code in {200, 301}
    assert result.response_header is not None
    assert result.timings.total > 0.0


def test_runner_get_with_query() -> None:
    with Channel(f"{HTTPBIN_URL}/get", return_transfer=True) as channel:
        channel.set_query({"page": "2"}).set_accept("application/json")
        result = channel.exec()

    assert result.success
    assert result.http_status_code == 200
    assert result.content_type == "application/json"
    assert result.response_body is not None
    assert json.loads(result.response_body)["args"] == {"page": "2"}


def test_runner_post_json() -> None:
    with Channel(f"{HTTPBIN_URL}/post", "POST", return_transfer=True) as channel:
        channel.set_post_fields({"test": "data", "number": 42}, json_encode=True)
        result = channel.exec()

    assert result.success
    assert result.response_body is not None
    assert json.loads(result.response_body)["json"] == {"test": "data", "number": 42}


def test_runner_sends_headers() -> None:
    with Channel(f"{HTTPBIN_URL}/headers", return_transfer=True) as channel:
        channel.add_header({"X-Custom-Header": "custom"}).set_user_agent("httpchannel-tests")
        result = channel.exec()

    assert result.response_body is not None
    headers = json.loads(result.response_body)["headers"]
    assert headers["X-Custom-Header"] == "custom"
    assert headers["User-Agent"] == "httpchannel-tests"


def test_runner_basic_auth() -> None:
    with Channel(f"{HTTPBIN_URL}/basic-auth/user/passwd", return_transfer=True) as channel:
        channel.set_authentication("basic", "user", "passwd")
        result = channel.exec()
    assert result.http_status_code == 200


def test_runner_follows_redirects() -> None:
    with Channel(f"{HTTPBIN_URL}/redirect/2", return_transfer=True) as channel:
        channel.set_follow_location()
        result = channel.exec()

    assert result.http_status_code == 200
    assert result.get_info("redirect_count") == 2


def test_runner_error_status_is_retried() -> None:
    with Channel(f"{HTTPBIN_URL}/status/500") as channel:
        channel.set_fail_on_error()
        result = channel.exec(max_retries=1)

    assert not result.success
    assert result.error_kind is TransferErrorKind.HTTP_RETURNED_ERROR
    assert result.http_status_code == 500


def test_runner_timeout_raises() -> None:
    with Channel(f"{HTTPBIN_URL}/delay/5") as channel:
        channel.set_timeout(1)
        with pytest.raises(TransferError) as exc_info:
            channel.exec(max_retries=0, throw=True)
    assert exc_info.value.error_kind is TransferErrorKind.OPERATION_TIMEDOUT


def test_runner_unresolvable_host() -> None:
    with Channel("https://does-not-exist.invalid/") as channel:
        result = channel.exec(max_retries=0)
    assert not result.success
    assert result.error_kind in {
        TransferErrorKind.COULDNT_RESOLVE_HOST,
        TransferErrorKind.COULDNT_CONNECT,
    }


def test_runner_cookie_file(tmp_path: Path) -> None:
    path = tmp_path / "cookies.txt"
    with Channel(f"{HTTPBIN_URL}/cookies/set?flavor=oat", cookie_file=path) as channel:
        assert channel.exec().success

    with Channel(f"{HTTPBIN_URL}/cookies", return_transfer=True, cookie_file=path) as channel:
        result = channel.exec()
    assert result.response_body is not None
    assert json.loads(result.response_body)["cookies"] == {"flavor": "oat"}
