from __future__ import annotations

import httpx
import pytest

from httpchannel.engine.info import (
    TIME_KEYS,
    TransferTracer,
    build_info,
    format_response_head,
)


def make_tracer(*ticks: float) -> TransferTracer:
    values = iter(ticks)
    return TransferTracer(clock=lambda: next(values))


####################################
#     Tests for TransferTracer     #
####################################


def test_transfer_tracer_phases() -> None:
    tracer = make_tracer(10.0, 10.1, 10.2, 10.3, 10.4, 10.5, 10.6)
    tracer("connection.connect_tcp.started", {})
    tracer("connection.connect_tcp.complete", {})
    tracer("connection.start_tls.complete", {})
    tracer("http11.send_request_headers.started", {})
    tracer("http11.receive_response_headers.complete", {})
    tracer.finish()

    timings = tracer.timings()
    assert timings["namelookup_time"] == pytest.approx(0.1)
    assert timings["connect_time"] == pytest.approx(0.2)
    assert timings["appconnect_time"] == pytest.approx(0.3)
    assert timings["pretransfer_time"] == pytest.approx(0.4)
    assert timings["starttransfer_time"] == pytest.approx(0.5)
    assert timings["total_time"] == pytest.approx(0.6)
    assert timings["redirect_time"] == 0.0


def test_transfer_tracer_missing_phases_are_zero() -> None:
    """Test that the phases that did not happen (e.g. TLS on plain HTTP)
    are reported as 0."""
    tracer = make_tracer(0.0, 1.0)
    tracer.finish()
    timings = tracer.timings()
    assert timings["total_time"] == 1.0
    for key in TIME_KEYS[1:]:
        assert timings[key] == 0.0


def test_transfer_tracer_redirect_time() -> None:
    tracer = make_tracer(0.0, 0.1, 0.4, 0.5)
    tracer("http11.send_request_headers.started", {})
    tracer("http11.send_request_headers.started", {})
    tracer.finish()
    timings = tracer.timings()
    assert timings["redirect_time"] == pytest.approx(0.4)
    assert timings["pretransfer_time"] == pytest.approx(0.4)


@pytest.mark.asyncio
async def test_transfer_tracer_atrace() -> None:
    tracer = make_tracer(0.0, 0.25, 1.0)
    await tracer.atrace("connection.connect_tcp.complete", {})
    tracer.finish()
    assert tracer.timings()["connect_time"] == 0.25


def test_transfer_tracer_offset_unknown_event() -> None:
    assert make_tracer(0.0).offset("unknown") == 0.0


##########################################
#     Tests for format_response_head     #
##########################################


def test_format_response_head() -> None:
    response = httpx.Response(404, headers=[("X-A", "1"), ("X-B", "2")])
    assert format_response_head(response) == b"HTTP/1.1 404 Not Found\r\nX-A: 1\r\nX-B: 2\r\n\r\n"


def test_format_response_head_http2() -> None:
    response = httpx.Response(200, extensions={"http_version": b"HTTP/2"})
    assert format_response_head(response).startswith(b"HTTP/2 200 OK\r\n")


def test_format_response_head_ends_with_empty_line() -> None:
    assert format_response_head(httpx.Response(204)).endswith(b"\r\n\r\n")


################################
#     Tests for build_info     #
################################


def test_build_info_with_response() -> None:
    request = httpx.Request("GET", "https://example.com/final")
    response = httpx.Response(
        200, headers={"Content-Type": "text/plain"}, content=b"0123456789", request=request
    )
    tracer = make_tracer(0.0, 2.0)
    tracer.finish()

    info = build_info(
        url="https://example.com", tracer=tracer, response=response, header_size=42, upload_size=4
    )
    assert info["url"] == "https://example.com/final"
    assert info["http_code"] == 200
    assert info["content_type"] == "text/plain"
    assert info["header_size"] == 42
    assert info["size_download"] == 10.0
    assert info["size_upload"] == 4.0
    assert info["speed_download"] == 5.0
    assert info["speed_upload"] == 2.0
    assert info["redirect_count"] == 0
    assert info["total_time"] == 2.0
    assert info["total_time_us"] == 2_000_000


def test_build_info_without_response() -> None:
    tracer = make_tracer(0.0, 0.5)
    tracer.finish()
    info = build_info(url="https://example.com", tracer=tracer)
    assert info["url"] == "https://example.com"
    assert info["http_code"] == 0
    assert info["content_type"] is None
    assert info["header_size"] == 0
    assert info["size_download"] == 0.0
    assert info["redirect_count"] == 0


def test_build_info_has_every_time_key() -> None:
    tracer = make_tracer(0.0, 0.0)
    tracer.finish()
    info = build_info(url="", tracer=tracer)
    for key in TIME_KEYS:
        assert info[key] == 0.0
        assert info[f"{key}_us"] == 0
    assert info["speed_download"] == 0.0
