r"""Configurable handle for one pending HTTP request.

A ``Channel`` holds the full configuration of one request and the
``EasyHandle`` that performs it. It is executed either directly with
``Channel.exec`` (single transfer with retries) or registered into a
``TransferScheduler`` together with other channels.
"""

from __future__ import annotations

__all__ = ["Channel"]

import json
import logging
import ssl
import uuid
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

import httpx

from httpchannel.core.config import DEFAULT_MAX_RETRIES, DEFAULT_PROXY_PORT
from httpchannel.core.validation import validate_timeout
from httpchannel.engine.easy import EasyHandle
from httpchannel.engine.options import HTTP_METHODS, TransferOptions
from httpchannel.exceptions import ChannelConfigError
from httpchannel.runner import TransferRunner

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType
    from typing import Self

    from httpchannel.result import TransferResult

logger: logging.Logger = logging.getLogger(__name__)

PROXY_PROTOCOLS = ("http", "https", "socks5")

AUTH_METHODS = ("none", "basic", "digest")

TLS_VERSIONS: dict[str, ssl.TLSVersion] = {
    "TLSv1_0": ssl.TLSVersion.TLSv1,
    "TLSv1_1": ssl.TLSVersion.TLSv1_1,
    "TLSv1_2": ssl.TLSVersion.TLSv1_2,
    "TLSv1_3": ssl.TLSVersion.TLSv1_3,
}


class Channel:
    r"""One configured, independently addressable pending request.

    Every setter returns the channel so calls can be chained. Invalid
    values raise ``ChannelConfigError`` when the setter is called, never
    during the transfer.

    Args:
        url: The URL to request.
        method: The HTTP method.
        return_transfer: Whether the response is captured in memory and
            returned in the result.
        transport: Optional httpx transport used instead of the network.
        cookie_file: Optional Netscape cookie file the cookies are read
            from and written to.

    Example:
        ```pycon
        >>> import httpx
        >>> from httpchannel import Channel
        >>> transport = httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
        >>> with Channel("https://example.com", transport=transport) as channel:
        ...     result = channel.set_return_transfer(True).exec()
        ...
        >>> result.success, result.response_body
        (True, 'ok')

        ```
    """

    def __init__(
        self,
        url: str | None = None,
        method: str = "GET",
        *,
        return_transfer: bool = False,
        transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None = None,
        cookie_file: str | Path | None = None,
    ) -> None:
        self._id = str(uuid.uuid4())
        self._handle = EasyHandle(TransferOptions(return_transfer=return_transfer), transport)
        self._executed = False
        self._dirty = False
        self._closed = False
        if url is not None:
            self.set_url(url)
        self.set_method(method)
        if cookie_file is not None:
            self.set_cookie_file(cookie_file)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(id={self._id!r}, method={self.method!r}, url={self.url!r})"

    @property
    def id(self) -> str:
        """The process-unique ID of the channel."""
        return self._id

    @property
    def url(self) -> str | None:
        """The configured URL."""
        return self._handle.options.url

    @property
    def method(self) -> str:
        """The configured HTTP method."""
        return self._handle.options.method

    @property
    def options(self) -> TransferOptions:
        """The transfer configuration."""
        return self._handle.options

    @property
    def handle(self) -> EasyHandle:
        """The engine handle performing the transfer."""
        return self._handle

    @property
    def executed(self) -> bool:
        """Whether the transfer was attempted at least once."""
        return self._executed

    @property
    def closed(self) -> bool:
        """Whether the channel was closed."""
        return self._closed

    def mark_executed(self) -> None:
        """Record that an attempt of the transfer was performed."""
        self._executed = True

    ##################
    #     Target     #
    ##################

    def set_url(self, url: str) -> Self:
        """Set the URL to request.

        Raises:
            ChannelConfigError: If the URL is empty or cannot be parsed.
        """
        if not url:
            msg = "url must be a non-empty string"
            raise ChannelConfigError(msg)
        try:
            httpx.URL(url)
        except httpx.InvalidURL as exc:
            msg = f"Invalid url {url!r}: {exc}"
            raise ChannelConfigError(msg) from exc
        self.options.url = url
        return self

    def set_method(self, method: str) -> Self:
        """Set the HTTP method.

        Raises:
            ChannelConfigError: If the method is not supported.
        """
        method = method.upper()
        if method not in HTTP_METHODS:
            msg = f"method must be one of {HTTP_METHODS}, got {method!r}"
            raise ChannelConfigError(msg)
        self.options.method = method
        return self

    def set_query(self, params: Mapping[str, Any] | None) -> Self:
        """Set the query parameters merged into the URL."""
        self.options.params = dict(params) if params is not None else None
        return self

    ###################
    #     Headers     #
    ###################

    def add_header(self, headers: Mapping[str, str]) -> Self:
        """Add request headers, replacing existing values of the same
        names.

        Raises:
            ChannelConfigError: If a header name is empty.
        """
        for name, value in headers.items():
            if not name or not name.strip():
                msg = "header name must be a non-empty string"
                raise ChannelConfigError(msg)
            self.options.headers[name.strip()] = str(value)
        return self

    def remove_header(self, name: str) -> Self:
        """Remove a request header if present."""
        if name in self.options.headers:
            del self.options.headers[name]
        return self

    def reset_headers(self) -> Self:
        """Remove every request header."""
        self.options.headers = httpx.Headers()
        return self

    def set_content_type(self, content_type: str) -> Self:
        return self.add_header({"Content-Type": content_type})

    def set_accept(self, accept: str) -> Self:
        return self.add_header({"Accept": accept})

    def set_user_agent(self, user_agent: str) -> Self:
        return self.add_header({"User-Agent": user_agent})

    def set_encoding(self, *encodings: str) -> Self:
        """Set the accepted content encodings, for example ``"gzip"``.

        Without arguments, the header is removed and the response is
        requested without content encoding (``identity``).
        """
        if not encodings:
            return self.remove_header("Accept-Encoding")
        return self.add_header({"Accept-Encoding": ", ".join(encodings)})

    ################
    #     Body     #
    ################

    def set_post_fields(
        self, fields: Mapping[str, Any] | str | bytes, json_encode: bool = False
    ) -> Self:
        """Set the request body.

        The body is only sent by the methods that carry one (POST, PUT and
        PATCH).

        Args:
            fields: A raw body, or a mapping of form fields.
            json_encode: Whether a mapping is sent as a JSON document
                instead of form fields.

        Raises:
            ChannelConfigError: If the fields cannot be JSON-encoded.
        """
        self.options.content = None
        self.options.data = None
        if isinstance(fields, (str, bytes)):
            self.options.content = fields
            return self
        if json_encode:
            try:
                self.options.content = json.dumps(dict(fields))
            except (TypeError, ValueError) as exc:
                msg = f"post fields cannot be JSON-encoded: {exc}"
                raise ChannelConfigError(msg) from exc
            return self.set_content_type("application/json")
        self.options.data = dict(fields)
        return self

    ########################
    #     Authentication   #
    ########################

    def set_bearer_token(self, token: str) -> Self:
        return self.add_header({"Authorization": f"Bearer {token}"})

    def set_basic_auth(self, username: str, password: str) -> Self:
        return self.set_authentication("basic", username, password)

    def set_authentication(
        self, method: str, username: str | None = None, password: str | None = None
    ) -> Self:
        """Set the authentication scheme.

        Args:
            method: One of ``"none"``, ``"basic"`` or ``"digest"``.
            username: The user name, required unless ``method`` is
                ``"none"``.
            password: The password.

        Raises:
            ChannelConfigError: If the method is unknown or the user name
                is missing.
        """
        method = method.lower()
        if method not in AUTH_METHODS:
            msg = f"authentication method must be one of {AUTH_METHODS}, got {method!r}"
            raise ChannelConfigError(msg)
        if method == "none":
            self.options.auth = None
            return self
        if not username:
            msg = f"{method} authentication requires a username"
            raise ChannelConfigError(msg)
        auth_class = httpx.BasicAuth if method == "basic" else httpx.DigestAuth
        self.options.auth = auth_class(username, password or "")
        return self

    ###################
    #     Capture     #
    ###################

    def set_return_transfer(self, return_transfer: bool, return_header: bool = True) -> Self:
        """Set whether the response is captured in memory.

        Args:
            return_transfer: Whether the response is captured in memory.
            return_header: Whether the captured response includes the
                response header blocks.
        """
        self.options.return_transfer = return_transfer
        self.options.return_header = return_header
        return self

    def set_output(self, stream: IO[bytes] | None) -> Self:
        """Set the stream the body is written to when the response is not
        captured in memory."""
        self.options.output = stream
        return self

    def set_fail_on_error(self, fail_on_error: bool = True) -> Self:
        """Set whether an HTTP status >= 400 fails the transfer."""
        self.options.fail_on_error = fail_on_error
        return self

    ######################
    #     Connection     #
    ######################

    def set_follow_location(self, follow: bool = True) -> Self:
        self.options.follow_redirects = follow
        self._dirty = True
        return self

    def set_max_redirects(self, max_redirects: int) -> Self:
        """Set the maximum number of redirects followed. A negative value
        means no limit."""
        self.options.max_redirects = max(max_redirects, -1)
        self._dirty = True
        return self

    def set_timeout(self, timeout: float) -> Self:
        """Set the maximum number of seconds the transfer may take.

        ``0`` disables the timeout.

        Raises:
            ChannelConfigError: If the timeout is negative.
        """
        try:
            validate_timeout(timeout)
        except ValueError as exc:
            raise ChannelConfigError(str(exc)) from exc
        self.options.timeout = timeout or None
        self._dirty = True
        return self

    def set_verify(self, peer: bool = True, host: bool = True) -> Self:
        """Set whether the server certificate and host name are verified."""
        self.options.verify_peer = peer
        self.options.verify_host = host
        self._dirty = True
        return self

    def set_ca_file(self, path: str | Path) -> Self:
        """Set the PEM bundle of trusted certificates.

        Raises:
            ChannelConfigError: If the file does not exist.
        """
        path = Path(path)
        if not path.is_file():
            msg = f"CA file not found: {path}"
            raise ChannelConfigError(msg)
        self.options.ca_file = str(path)
        self._dirty = True
        return self

    def set_min_tls_version(self, version: str | ssl.TLSVersion | None) -> Self:
        """Set the minimum TLS version negotiated with the server.

        Args:
            version: An ``ssl.TLSVersion``, one of ``"TLSv1_0"``,
                ``"TLSv1_1"``, ``"TLSv1_2"`` or ``"TLSv1_3"``, or
                ``None`` for the default.

        Raises:
            ChannelConfigError: If the version name is unknown.
        """
        if isinstance(version, str):
            if version not in TLS_VERSIONS:
                msg = f"TLS version must be one of {tuple(TLS_VERSIONS)}, got {version!r}"
                raise ChannelConfigError(msg)
            version = TLS_VERSIONS[version]
        self.options.min_tls_version = version
        self._dirty = True
        return self

    def set_proxy(
        self,
        address: str,
        port: int = DEFAULT_PROXY_PORT,
        protocol: str = "http",
        username: str | None = None,
        password: str | None = None,
    ) -> Self:
        """Route the transfer through a proxy.

        Args:
            address: The host name or IP address of the proxy.
            port: The port of the proxy.
            protocol: One of ``"http"``, ``"https"`` or ``"socks5"``.
            username: Optional user name for proxy authentication.
            password: Optional password for proxy authentication.

        Raises:
            ChannelConfigError: If the protocol is unknown or the address
                is empty.
        """
        protocol = protocol.lower()
        if protocol not in PROXY_PROTOCOLS:
            msg = f"proxy protocol must be one of {PROXY_PROTOCOLS}, got {protocol!r}"
            raise ChannelConfigError(msg)
        if not address:
            msg = "proxy address must be a non-empty string"
            raise ChannelConfigError(msg)
        auth = (username, password or "") if username else None
        self.options.proxy = httpx.Proxy(f"{protocol}://{address}:{port}", auth=auth)
        self._dirty = True
        return self

    def clear_proxy(self) -> Self:
        self.options.proxy = None
        self._dirty = True
        return self

    ###################
    #     Cookies     #
    ###################

    def set_cookie_file(self, path: str | Path | None) -> Self:
        """Persist the cookies of the channel in a Netscape cookie file.

        The cookies stored in the file are sent with the request, and the
        cookies received are written back after every transfer. The file
        is created by the first transfer if it does not exist.

        Args:
            path: The cookie file, or ``None`` to keep cookies in memory
                only.

        Raises:
            ChannelConfigError: If the path is empty or is a directory.
        """
        if path is not None:
            if not str(path):
                msg = "cookie file must be a non-empty path"
                raise ChannelConfigError(msg)
            path = Path(path)
            if path.is_dir():
                msg = f"cookie file is a directory: {path}"
                raise ChannelConfigError(msg)
        self.options.cookie_file = path
        self._dirty = True
        return self

    ###################
    #     Execute     #
    ###################

    def prepare(self) -> EasyHandle:
        """Attach the current configuration to the engine handle.

        Returns:
            The engine handle, ready to perform the transfer.

        Raises:
            ChannelConfigError: If the channel is closed or has no URL.
        """
        if self._closed:
            msg = f"Channel {self._id} is closed"
            raise ChannelConfigError(msg)
        if not self.options.url:
            msg = f"Channel {self._id} has no URL"
            raise ChannelConfigError(msg)
        if self._dirty:
            self._handle.reset_client()
            self._dirty = False
        if not self.options.has_body() and (
            self.options.content is not None or self.options.data is not None
        ):
            logger.debug(f"{self.method} request to {self.url} is sent without its body")
        return self._handle

    def exec(self, max_retries: int = DEFAULT_MAX_RETRIES, throw: bool = False) -> TransferResult:
        """Execute the transfer with retries.

        Shortcut for ``TransferRunner(channel).exec(max_retries, throw)``.
        """
        return TransferRunner(self).exec(max_retries=max_retries, throw=throw)

    def close(self) -> None:
        """Release the transport resources of the channel."""
        if self._closed:
            return
        self._closed = True
        self._handle.close()
