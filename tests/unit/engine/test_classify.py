from __future__ import annotations

import socket
import ssl

import httpx
import pytest

from httpchannel.engine.classify import classify_exception
from httpchannel.errors import TransferErrorKind


def chained(exc: Exception, cause: BaseException) -> Exception:
    exc.__cause__ = cause
    return exc


@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (httpx.ConnectTimeout("timed out"), TransferErrorKind.OPERATION_TIMEDOUT),
        (httpx.ReadTimeout("timed out"), TransferErrorKind.OPERATION_TIMEDOUT),
        (httpx.PoolTimeout("timed out"), TransferErrorKind.OPERATION_TIMEDOUT),
        (httpx.ProxyError("bad proxy"), TransferErrorKind.PROXY),
        (httpx.UnsupportedProtocol("ftp"), TransferErrorKind.UNSUPPORTED_PROTOCOL),
        (httpx.InvalidURL("bad url"), TransferErrorKind.URL_MALFORMAT),
        (httpx.ReadError("reset"), TransferErrorKind.READ_ERROR),
        (httpx.WriteError("broken pipe"), TransferErrorKind.SEND_ERROR),
        (httpx.LocalProtocolError("bad header"), TransferErrorKind.BAD_FUNCTION_ARGUMENT),
        (httpx.TooManyRedirects("loop"), TransferErrorKind.TOO_MANY_REDIRECTS),
        (httpx.DecodingError("bad gzip"), TransferErrorKind.BAD_CONTENT_ENCODING),
        (httpx.StreamConsumed(), TransferErrorKind.HTTP_POST_ERROR),
        (ValueError("unrelated"), TransferErrorKind.OTHER),
    ],
)
def test_classify_exception(exc: Exception, kind: TransferErrorKind) -> None:
    assert classify_exception(exc) is kind


def test_classify_remote_protocol_error_nothing_received() -> None:
    exc = httpx.RemoteProtocolError("Server disconnected without sending a response.")
    assert classify_exception(exc) is TransferErrorKind.GOT_NOTHING


def test_classify_remote_protocol_error() -> None:
    exc = httpx.RemoteProtocolError("illegal status line")
    assert classify_exception(exc) is TransferErrorKind.RECV_ERROR


####################################
#     Tests for connect errors     #
####################################


def test_classify_connect_error() -> None:
    exc = httpx.ConnectError("[Errno 111] Connection refused")
    assert classify_exception(exc) is TransferErrorKind.COULDNT_CONNECT


def test_classify_connect_error_dns_cause() -> None:
    exc = chained(httpx.ConnectError("failed"), socket.gaierror(-2, "Name or service not known"))
    assert classify_exception(exc) is TransferErrorKind.COULDNT_RESOLVE_HOST


def test_classify_connect_error_dns_message() -> None:
    exc = httpx.ConnectError("[Errno -3] Temporary failure in name resolution")
    assert classify_exception(exc) is TransferErrorKind.COULDNT_RESOLVE_HOST


def test_classify_connect_error_certificate_cause() -> None:
    exc = chained(httpx.ConnectError("failed"), ssl.SSLCertVerificationError("bad cert"))
    assert classify_exception(exc) is TransferErrorKind.SSL_CACERT


def test_classify_connect_error_certificate_message() -> None:
    exc = httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed")
    assert classify_exception(exc) is TransferErrorKind.SSL_CACERT


def test_classify_connect_error_tls_cause() -> None:
    exc = chained(httpx.ConnectError("failed"), ssl.SSLError("handshake failure"))
    assert classify_exception(exc) is TransferErrorKind.SSL_CONNECT_ERROR


def test_classify_connect_error_context_chain() -> None:
    """Test that the implicit exception context is inspected too."""
    exc = httpx.ConnectError("failed")
    exc.__context__ = OSError("wrapper")
    exc.__context__.__context__ = socket.gaierror(-2, "unknown host")
    assert classify_exception(exc) is TransferErrorKind.COULDNT_RESOLVE_HOST


def test_classify_connect_error_cyclic_chain() -> None:
    exc = httpx.ConnectError("failed")
    other = OSError("other")
    exc.__cause__ = other
    other.__cause__ = exc
    assert classify_exception(exc) is TransferErrorKind.COULDNT_CONNECT
