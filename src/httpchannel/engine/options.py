r"""Request descriptor consumed by the transfer engine."""

from __future__ import annotations

__all__ = [
    "BODY_METHODS",
    "DEFAULT_ACCEPT_ENCODING",
    "HTTP_METHODS",
    "TransferOptions",
    "UNLIMITED_REDIRECTS",
]

import logging
import ssl
import sys
from dataclasses import dataclass, field
from http.cookiejar import MozillaCookieJar
from typing import IO, TYPE_CHECKING, Any

import httpx

from httpchannel.core.config import DEFAULT_MAX_REDIRECTS, DEFAULT_TIMEOUT

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger: logging.Logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")

# Methods whose request carries the configured body
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# Value of ``max_redirects`` meaning that redirects are never limited
UNLIMITED_REDIRECTS = -1

# ``Accept-Encoding`` of the requests that do not set their own
DEFAULT_ACCEPT_ENCODING = "identity"


@dataclass
class TransferOptions:
    """Full configuration of one transfer.

    Attributes:
        url: The URL to request, or ``None`` if not set yet.
        method: The HTTP method.
        headers: The request headers.
        params: The query parameters merged into the URL.
        content: The raw request body.
        data: The form fields of the request body.
        auth: The authentication applied to the request.
        proxy: The proxy the transfer goes through.
        verify_peer: Whether the server certificate is verified.
        verify_host: Whether the server host name is checked against
            its certificate.
        ca_file: Path to a PEM bundle of trusted certificates.
        min_tls_version: The minimum TLS version to negotiate.
        timeout: Maximum seconds the transfer may take, ``None`` for no
            limit.
        follow_redirects: Whether ``Location`` headers are followed.
        max_redirects: Maximum number of redirects followed, or
            ``UNLIMITED_REDIRECTS``.
        fail_on_error: Whether an HTTP status >= 400 fails the transfer.
        return_transfer: Whether the response is captured in memory.
        return_header: Whether the captured response includes the
            header blocks.
        output: The stream the body is written to when the response is
            not captured. The body is discarded if ``None``.
        cookie_file: Path to a Netscape cookie file read before the
            transfer and written after it, or ``None`` to keep cookies
            in memory only.
    """

    url: str | None = None
    method: str = "GET"
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    params: Mapping[str, Any] | None = None
    content: bytes | str | None = None
    data: Mapping[str, Any] | None = None
    auth: httpx.Auth | None = None
    proxy: httpx.Proxy | None = None
    verify_peer: bool = True
    verify_host: bool = True
    ca_file: str | None = None
    min_tls_version: ssl.TLSVersion | None = None
    timeout: float | None = DEFAULT_TIMEOUT
    follow_redirects: bool = False
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    fail_on_error: bool = False
    return_transfer: bool = False
    return_header: bool = True
    output: IO[bytes] | None = None
    cookie_file: Path | None = None

    def has_body(self) -> bool:
        """Indicate whether the request is sent with the configured body."""
        return self.method in BODY_METHODS and (
            self.content is not None or self.data is not None
        )

    def build_verify(self) -> ssl.SSLContext | bool:
        """Build the TLS verification setting passed to httpx.

        Returns:
            ``False`` if the peer is not verified, ``True`` for the
            default verification, or a dedicated ``ssl.SSLContext``
            when a CA bundle, host check or TLS version is customized.
        """
        if not self.verify_peer:
            return False
        if self.ca_file is None and self.verify_host and self.min_tls_version is None:
            return True
        context = ssl.create_default_context(cafile=self.ca_file)
        context.check_hostname = self.verify_host
        if self.min_tls_version is not None:
            context.minimum_version = self.min_tls_version
        return context

    def client_kwargs(self) -> dict[str, Any]:
        """Return the keyword arguments used to create the httpx client."""
        max_redirects = self.max_redirects
        if max_redirects == UNLIMITED_REDIRECTS:
            max_redirects = sys.maxsize
        kwargs: dict[str, Any] = {
            "headers": {"Accept-Encoding": DEFAULT_ACCEPT_ENCODING},
            "timeout": self.timeout,
            "follow_redirects": self.follow_redirects,
            "max_redirects": max_redirects,
            "verify": self.build_verify(),
            "proxy": self.proxy,
            "trust_env": False,
        }
        cookies = self.build_cookie_jar()
        if cookies is not None:
            kwargs["cookies"] = cookies
        return kwargs

    def build_cookie_jar(self) -> MozillaCookieJar | None:
        """Build the cookie jar backed by ``cookie_file``.

        The cookies already stored in the file are loaded, session
        cookies included. A missing file gives an empty jar, and so does
        an unreadable one, with a warning.

        Returns:
            The cookie jar, or ``None`` if no cookie file is set.
        """
        if self.cookie_file is None:
            return None
        jar = MozillaCookieJar(str(self.cookie_file))
        if self.cookie_file.is_file():
            try:
                jar.load(ignore_discard=True, ignore_expires=True)
            except OSError as exc:
                logger.warning(f"Could not load cookies from {self.cookie_file}: {exc}")
        return jar

    def request_kwargs(self) -> dict[str, Any]:
        """Return the keyword arguments used to send the request."""
        kwargs: dict[str, Any] = {
            "method": self.method,
            "url": self.url,
            "headers": self.headers,
            "params": self.params,
        }
        if self.auth is not None:
            kwargs["auth"] = self.auth
        if self.has_body():
            if self.content is not None:
                kwargs["content"] = self.content
            else:
                kwargs["data"] = self.data
        return kwargs
