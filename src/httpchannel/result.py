r"""Outcome of a transfer.

This module provides the ``TransferResult`` produced once per channel
execution by ``TransferRunner`` and ``TransferScheduler``, the derived
``TransferTimings`` breakdown, and the helper that splits a captured
response into its header and body parts.
"""

from __future__ import annotations

__all__ = ["TransferResult", "TransferTimings", "split_content"]

from dataclasses import dataclass, field
from typing import Any

from httpchannel.errors import TransferErrorKind

_PHASES = ("total", "namelookup", "connect", "appconnect", "pretransfer", "starttransfer", "redirect")


@dataclass(frozen=True)
class TransferTimings:
    """Timing breakdown of a transfer.

    Every phase is an offset from the start of the transfer, in seconds
    and in microseconds. A phase that did not happen is 0.

    Attributes:
        total: Time of the whole transfer.
        namelookup: Time until the host name was resolved.
        connect: Time until the TCP connection was established.
        appconnect: Time until the TLS handshake completed.
        pretransfer: Time until the request started to be sent.
        starttransfer: Time until the response headers were received.
        redirect: Time spent in redirects before the final request.
    """

    total: float = 0.0
    total_us: int = 0
    namelookup: float = 0.0
    namelookup_us: int = 0
    connect: float = 0.0
    connect_us: int = 0
    appconnect: float = 0.0
    appconnect_us: int = 0
    pretransfer: float = 0.0
    pretransfer_us: int = 0
    starttransfer: float = 0.0
    starttransfer_us: int = 0
    redirect: float = 0.0
    redirect_us: int = 0

    @classmethod
    def from_info(cls, info: dict[str, Any]) -> TransferTimings:
        """Build the timing breakdown from transfer statistics.

        Args:
            info: The statistics returned by ``EasyHandle.getinfo``.

        Returns:
            The timing breakdown. Missing statistics are 0.

        Example:
            ```pycon
            >>> from httpchannel.result import TransferTimings
            >>> timings = TransferTimings.from_info({"total_time": 0.25, "total_time_us": 250000})
            >>> timings.total, timings.total_us, timings.connect
            (0.25, 250000, 0.0)

            ```
        """
        values: dict[str, Any] = {}
        for name in _PHASES:
            values[name] = float(info.get(f"{name}_time") or 0.0)
            values[f"{name}_us"] = int(info.get(f"{name}_time_us") or 0)
        return cls(**values)


def split_content(raw: bytes, header_size: int | None) -> tuple[bytes | None, bytes]:
    r"""Split a captured response into its header and body parts.

    Args:
        raw: The captured response.
        header_size: The size of the leading header blocks, or ``None``
            if the capture does not include the headers.

    Returns:
        A tuple ``(header, body)``. The header is stripped of surrounding
        whitespace, and is ``None`` if ``header_size`` is ``None``.

    Example:
        ```pycon
        >>> from httpchannel.result import split_content
        >>> split_content(b"HTTP/1.1 200 OK\r\n\r\nhello", 19)
        (b'HTTP/1.1 200 OK', b'hello')
        >>> split_content(b"hello", None)
        (None, b'hello')

        ```
    """
    if header_size is None:
        return None, raw
    return raw[:header_size].strip(), raw[header_size:]


@dataclass
class TransferResult:
    r"""Outcome of one channel execution.

    Exactly one of these holds: ``success`` is ``True``, ``error_kind`` is
    ``OK`` and ``error_message`` is empty; or ``success`` is ``False``,
    ``error_kind`` is not ``OK`` and ``error_message`` describes the
    failure. ``response_header``, ``response_body`` and
    ``response_content`` are only set when the response was captured in
    memory. ``response_content`` holds the exact body bytes, and
    ``response_body`` decodes them with the response charset (UTF-8 by
    default). Bytes that are not valid in that charset are kept as
    surrogate escapes, so
    ``response_body.encode(charset, "surrogateescape")`` gives the body
    bytes back.

    Attributes:
        id: The ID of the channel.
        url: The URL configured on the channel.
        success: Whether the transfer succeeded.
        response_header: The captured header blocks.
        response_body: The captured body, decoded.
        response_content: The captured body, as received.
        error_kind: The engine error kind.
        error_message: The engine error message.
        info: The raw transfer statistics.
        timings: The timing breakdown derived from ``info``.

    Example:
        ```pycon
        >>> from httpchannel.result import TransferResult
        >>> result = TransferResult.succeeded(
        ...     id="abc",
        ...     url="https://example.com",
        ...     info={"http_code": 200, "header_size": 19},
        ...     content=b"HTTP/1.1 200 OK\r\n\r\nhello",
        ...     header_size=19,
        ... )
        >>> result.success, result.http_status_code
        (True, 200)
        >>> result.response_header, result.response_body
        ('HTTP/1.1 200 OK', 'hello')

        ```
    """

    id: str
    url: str
    success: bool
    error_kind: TransferErrorKind
    error_message: str
    response_header: str | None = None
    response_body: str | None = None
    response_content: bytes | None = None
    info: dict[str, Any] = field(default_factory=dict)
    timings: TransferTimings = field(default_factory=TransferTimings)

    @classmethod
    def succeeded(
        cls,
        *,
        id: str,  # noqa: A002
        url: str,
        info: dict[str, Any],
        content: bytes | None,
        header_size: int | None,
    ) -> TransferResult:
        """Create the result of a successful transfer.

        Args:
            id: The ID of the channel.
            url: The URL configured on the channel.
            info: The transfer statistics.
            content: The captured response, or ``None`` if the response
                was not captured in memory.
            header_size: The size of the leading header blocks in
                ``content``, or ``None`` if ``content`` holds only the
                body.

        Returns:
            The successful result.
        """
        result = cls(
            id=id,
            url=url,
            success=True,
            error_kind=TransferErrorKind.OK,
            error_message="",
            info=dict(info),
            timings=TransferTimings.from_info(info),
        )
        if content is not None:
            header, body = split_content(content, header_size)
            result.response_header = header.decode("latin-1") if header is not None else None
            result.response_body = _decode_body(body, result.charset)
            result.response_content = body
        return result

    @classmethod
    def failed(
        cls,
        *,
        id: str,  # noqa: A002
        url: str,
        info: dict[str, Any],
        error_kind: TransferErrorKind,
        error_message: str,
    ) -> TransferResult:
        """Create the result of a failed transfer.

        Args:
            id: The ID of the channel.
            url: The URL configured on the channel.
            info: The transfer statistics.
            error_kind: The engine error kind. ``OK`` is replaced by
                ``OTHER`` since a failure cannot be OK.
            error_message: The engine error message. The error kind name
                is used if empty.

        Returns:
            The failed result.
        """
        if error_kind is TransferErrorKind.OK:
            error_kind = TransferErrorKind.OTHER
        return cls(
            id=id,
            url=url,
            success=False,
            error_kind=error_kind,
            error_message=error_message or error_kind.name,
            info=dict(info),
            timings=TransferTimings.from_info(info),
        )

    def get_info(self, key: str, default: Any = None) -> Any:
        """Return one transfer statistic.

        Args:
            key: The statistic name, for example ``"http_code"``.
            default: The value returned if the statistic is unknown.

        Returns:
            The statistic value.
        """
        return self.info.get(key, default)

    @property
    def effective_url(self) -> str | None:
        """The URL of the final request, after redirects."""
        return self.info.get("url")

    @property
    def http_status_code(self) -> int | None:
        """The HTTP status code of the final response, 0 if none was
        received."""
        value = self.info.get("http_code")
        return int(value) if value is not None else None

    @property
    def content_type(self) -> str | None:
        """The media type of the response, without its parameters."""
        value = self.info.get("content_type")
        if not value:
            return None
        return value.split(";", 1)[0].strip() or None

    @property
    def charset(self) -> str | None:
        """The charset parameter of the response content type."""
        value = self.info.get("content_type")
        if not value:
            return None
        for parameter in value.split(";")[1:]:
            name, _, charset = parameter.partition("=")
            if name.strip().lower() == "charset" and charset.strip():
                return charset.strip().strip('"')
        return None

    @property
    def latency(self) -> float | None:
        """The total time of the transfer in seconds."""
        value = self.info.get("total_time")
        return float(value) if value is not None else None

    @property
    def redirect_count(self) -> int | None:
        """The number of redirects that were followed."""
        value = self.info.get("redirect_count")
        return int(value) if value is not None else None

    @property
    def content_size(self) -> int | None:
        """The number of body bytes downloaded."""
        value = self.info.get("size_download")
        return int(value) if value is not None else None

    @property
    def upload_speed(self) -> int | None:
        """The average upload speed in bytes per second."""
        value = self.info.get("speed_upload")
        return int(value) if value is not None else None

    @property
    def download_speed(self) -> int | None:
        """The average download speed in bytes per second."""
        value = self.info.get("speed_download")
        return int(value) if value is not None else None


def _decode_body(body: bytes, charset: str | None) -> str:
    try:
        return body.decode(charset or "utf-8", errors="surrogateescape")
    except LookupError:
        return body.decode("utf-8", errors="surrogateescape")
