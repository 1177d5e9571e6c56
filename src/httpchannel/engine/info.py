r"""Post-transfer statistics.

This module records the phase timestamps of a transfer through the
httpx ``trace`` request extension and turns a finished transfer into the
flat statistics mapping exposed by ``EasyHandle.getinfo``.
"""

from __future__ import annotations

__all__ = ["TIME_KEYS", "TransferTracer", "build_info", "format_response_head"]

import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

# Timing keys reported in seconds, each also reported in microseconds
# under the same name with a ``_us`` suffix
TIME_KEYS = (
    "total_time",
    "namelookup_time",
    "connect_time",
    "appconnect_time",
    "pretransfer_time",
    "starttransfer_time",
    "redirect_time",
)


class TransferTracer:
    """Record the timestamps of the phases of one transfer.

    An instance is passed as the ``trace`` extension of an httpx request.
    httpcore calls it with event names such as
    ``connection.connect_tcp.complete`` or
    ``http11.receive_response_headers.complete``. Only the last timestamp
    of each event is kept, except for the request start which is kept
    per hop to measure the time spent in redirects.

    Args:
        clock: The monotonic clock used to take timestamps.

    Example:
        ```pycon
        >>> from httpchannel.engine.info import TransferTracer
        >>> ticks = iter([0.0, 0.5, 1.0])
        >>> tracer = TransferTracer(clock=lambda: next(ticks))
        >>> tracer("connection.connect_tcp.complete", {})
        >>> tracer.finish()
        >>> tracer.timings()["connect_time"]
        0.5
        >>> tracer.timings()["total_time"]
        1.0

        ```
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._events: dict[str, float] = {}
        self._hops: list[float] = []
        self.started: float = clock()
        self.finished: float | None = None

    def __call__(self, event_name: str, info: dict[str, Any]) -> None:  # noqa: ARG002
        self.record(event_name)

    async def atrace(self, event_name: str, info: dict[str, Any]) -> None:  # noqa: ARG002
        """Record an event emitted by the async httpcore backend."""
        self.record(event_name)

    def record(self, event_name: str) -> None:
        """Record the timestamp of an event.

        Args:
            event_name: The full httpcore event name. The leading
                component (``connection``, ``http11``, ``http2``...) is
                dropped.
        """
        now = self._clock()
        _, _, name = event_name.partition(".")
        if name == "send_request_headers.started":
            self._hops.append(now)
        self._events[name] = now

    def finish(self) -> None:
        """Mark the end of the transfer."""
        self.finished = self._clock()

    def offset(self, name: str) -> float:
        """Return the time elapsed between the start of the transfer and an
        event, or ``0.0`` if the event did not happen."""
        timestamp = self._events.get(name)
        if timestamp is None:
            return 0.0
        return max(timestamp - self.started, 0.0)

    def timings(self) -> dict[str, float]:
        """Return the phase timings in seconds.

        Name resolution happens inside the TCP connect in httpcore, so the
        name lookup time is the time at which the connect phase started.
        """
        end = self.finished if self.finished is not None else self._clock()
        redirect = self._hops[-1] - self.started if len(self._hops) > 1 else 0.0
        return {
            "total_time": max(end - self.started, 0.0),
            "namelookup_time": self.offset("connect_tcp.started"),
            "connect_time": self.offset("connect_tcp.complete"),
            "appconnect_time": self.offset("start_tls.complete"),
            "pretransfer_time": self.offset("send_request_headers.started"),
            "starttransfer_time": self.offset("receive_response_headers.complete"),
            "redirect_time": redirect,
        }


def format_response_head(response: httpx.Response) -> bytes:
    r"""Rebuild the raw status line and header block of a response.

    Args:
        response: The response to format.

    Returns:
        The status line and the header lines, each terminated by CRLF,
        followed by the empty line that ends the header block.

    Example:
        ```pycon
        >>> import httpx
        >>> from httpchannel.engine.info import format_response_head
        >>> response = httpx.Response(200, headers={"X-Test": "1"})
        >>> format_response_head(response)
        b'HTTP/1.1 200 OK\r\nX-Test: 1\r\n\r\n'

        ```
    """
    status_line = f"{response.http_version} {response.status_code} {response.reason_phrase}"
    lines = [status_line.rstrip().encode("ascii")]
    lines.extend(name + b": " + value for name, value in response.headers.raw)
    return b"\r\n".join(lines) + b"\r\n\r\n"


def build_info(
    *,
    url: str,
    tracer: TransferTracer,
    response: httpx.Response | None = None,
    header_size: int = 0,
    upload_size: int = 0,
) -> dict[str, Any]:
    """Build the statistics mapping of a finished transfer.

    Args:
        url: The requested URL, used when no response was received.
        tracer: The tracer that recorded the transfer phases.
        response: The final response, or ``None`` if the transfer failed
            before a response was received.
        header_size: The total size of the received header blocks.
        upload_size: The size of the uploaded request body.

    Returns:
        The statistics mapping.
    """
    timings = tracer.timings()
    total = timings["total_time"]
    size_download = len(response.content) if response is not None else 0
    info: dict[str, Any] = {
        "url": str(response.url) if response is not None else url,
        "http_code": response.status_code if response is not None else 0,
        "content_type": response.headers.get("content-type") if response is not None else None,
        "header_size": header_size,
        "size_download": float(size_download),
        "size_upload": float(upload_size),
        "speed_download": size_download / total if total > 0 else 0.0,
        "speed_upload": upload_size / total if total > 0 else 0.0,
        "redirect_count": len(response.history) if response is not None else 0,
    }
    for key in TIME_KEYS:
        info[key] = timings[key]
        info[f"{key}_us"] = round(timings[key] * 1_000_000)
    return info
