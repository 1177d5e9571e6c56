r"""Map httpx exceptions to transfer error kinds."""

from __future__ import annotations

__all__ = ["TRANSFER_EXCEPTIONS", "classify_exception"]

import socket
import ssl
from typing import TYPE_CHECKING

import httpx

from httpchannel.errors import TransferErrorKind

if TYPE_CHECKING:
    from collections.abc import Iterator

# Exceptions raised by httpx for a failed transfer. Anything else is a bug
# and propagates to the caller.
TRANSFER_EXCEPTIONS = (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError)

# Checked in order, subclasses first
_EXCEPTION_KINDS: tuple[tuple[type[Exception], TransferErrorKind], ...] = (
    (httpx.TimeoutException, TransferErrorKind.OPERATION_TIMEDOUT),
    (httpx.ProxyError, TransferErrorKind.PROXY),
    (httpx.UnsupportedProtocol, TransferErrorKind.UNSUPPORTED_PROTOCOL),
    (httpx.InvalidURL, TransferErrorKind.URL_MALFORMAT),
    (httpx.ReadError, TransferErrorKind.READ_ERROR),
    (httpx.WriteError, TransferErrorKind.SEND_ERROR),
    (httpx.LocalProtocolError, TransferErrorKind.BAD_FUNCTION_ARGUMENT),
    (httpx.TooManyRedirects, TransferErrorKind.TOO_MANY_REDIRECTS),
    (httpx.DecodingError, TransferErrorKind.BAD_CONTENT_ENCODING),
    (httpx.StreamError, TransferErrorKind.HTTP_POST_ERROR),
)

_RESOLVE_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
)


def classify_exception(exc: BaseException) -> TransferErrorKind:
    """Return the error kind of an exception raised by a transfer.

    Args:
        exc: The exception raised by httpx.

    Returns:
        The matching error kind, or ``TransferErrorKind.OTHER``.

    Example:
        ```pycon
        >>> import httpx
        >>> from httpchannel.engine.classify import classify_exception
        >>> classify_exception(httpx.ReadTimeout("timed out"))
        <TransferErrorKind.OPERATION_TIMEDOUT: 28>
        >>> classify_exception(httpx.ConnectError("Connection refused"))
        <TransferErrorKind.COULDNT_CONNECT: 7>

        ```
    """
    if isinstance(exc, httpx.ConnectError):
        return _classify_connect_error(exc)
    if isinstance(exc, httpx.RemoteProtocolError):
        if "without sending" in str(exc):
            return TransferErrorKind.GOT_NOTHING
        return TransferErrorKind.RECV_ERROR
    for exc_type, kind in _EXCEPTION_KINDS:
        if isinstance(exc, exc_type):
            return kind
    return TransferErrorKind.OTHER


def _classify_connect_error(exc: httpx.ConnectError) -> TransferErrorKind:
    for error in _iter_chain(exc):
        if isinstance(error, socket.gaierror):
            return TransferErrorKind.COULDNT_RESOLVE_HOST
        if isinstance(error, ssl.SSLCertVerificationError):
            return TransferErrorKind.SSL_CACERT
        if isinstance(error, ssl.SSLError):
            return TransferErrorKind.SSL_CONNECT_ERROR

    message = str(exc).lower()
    if any(marker in message for marker in _RESOLVE_FAILURE_MARKERS):
        return TransferErrorKind.COULDNT_RESOLVE_HOST
    if "certificate_verify_failed" in message:
        return TransferErrorKind.SSL_CACERT
    return TransferErrorKind.COULDNT_CONNECT


def _iter_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__
