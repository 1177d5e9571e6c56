r"""Shared test helpers for the transfer engine, runner and scheduler
tests.

This module contains the test doubles used across multiple test files:
a mock transport that counts the requests it answers, and a scripted
multiplexer that replays perform and wait outcomes so the readiness loop
of the scheduler can be tested step by step.
"""

from __future__ import annotations

__all__ = [
    "HTTPBIN_URL",
    "LIVE_URLS",
    "CountingTransport",
    "ScriptedMultiHandle",
    "make_handle",
]

from typing import TYPE_CHECKING, Any

import httpx

from httpchannel.engine import EasyHandle, TransferMessage, TransferOptions
from httpchannel.errors import MultiStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

# Use httpbin.org for real HTTP testing
HTTPBIN_URL = "https://httpbin.org"

# Reachable endpoints expected to answer with 200 or 301
LIVE_URLS = (
    "https://www.php.net/",
    "https://github.com/",
    "https://packagist.org/",
    "https://www.google.com/",
)


class CountingTransport(httpx.MockTransport):
    """Mock transport that records the requests it receives.

    Args:
        handler: The function building the response of a request.
    """

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self.requests: list[httpx.Request] = []

        def counting_handler(request: httpx.Request) -> Any:
            self.requests.append(request)
            return handler(request)

        super().__init__(counting_handler)

    @property
    def calls(self) -> int:
        """The number of requests received."""
        return len(self.requests)


def make_handle(url: str = "https://example.com", transport: Any = None, **kwargs: Any) -> EasyHandle:
    """Create an ``EasyHandle`` for ``url`` with the given transfer
    options."""
    return EasyHandle(TransferOptions(url=url, **kwargs), transport=transport)


class ScriptedMultiHandle:
    """Multiplexer double replaying scripted perform and wait outcomes.

    Attached handles are performed synchronously when they are added, so
    their outcome is available when the scheduler builds the results.

    Args:
        performs: The ``(status, running)`` tuples returned by the
            successive ``perform`` calls.
        waits: The values returned by the successive ``wait`` calls.
        batches: The number of completion messages released by the
            successive ``info_read`` calls. Every pending message is
            released once the list is exhausted.
        add_status: The status returned by ``add_handle``.
        foreign: Handles reported as completed although they were never
            attached.
    """

    def __init__(
        self,
        performs: Sequence[tuple[MultiStatus, int]],
        waits: Sequence[int] = (),
        batches: Sequence[int] = (),
        add_status: MultiStatus = MultiStatus.OK,
        foreign: Sequence[EasyHandle] = (),
    ) -> None:
        self.performs = list(performs)
        self.waits = list(waits)
        self.batches = list(batches)
        self.add_status = add_status
        self.handles: list[EasyHandle] = []
        self.pending: list[EasyHandle] = list(foreign)
        self.removed: list[EasyHandle] = []
        self.wait_timeouts: list[float] = []
        self.perform_calls = 0
        self.info_read_calls = 0
        self.closed = False

    def __enter__(self) -> ScriptedMultiHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def add_handle(self, handle: EasyHandle) -> MultiStatus:
        if self.add_status != MultiStatus.OK:
            return self.add_status
        handle.perform()
        self.handles.append(handle)
        self.pending.append(handle)
        return MultiStatus.OK

    def perform(self) -> tuple[MultiStatus, int]:
        self.perform_calls += 1
        return self.performs.pop(0)

    def wait(self, timeout: float) -> int:
        self.wait_timeouts.append(timeout)
        return self.waits.pop(0)

    def info_read(self) -> list[TransferMessage]:
        self.info_read_calls += 1
        size = self.batches.pop(0) if self.batches else len(self.pending)
        released, self.pending = self.pending[:size], self.pending[size:]
        return [TransferMessage(handle=handle, result=handle.errno) for handle in released]

    def remove_handle(self, handle: EasyHandle) -> MultiStatus:
        self.removed.append(handle)
        return MultiStatus.OK

    def close(self) -> None:
        self.closed = True
