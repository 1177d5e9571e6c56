r"""Multiplexer driving many transfers from a single thread.

A ``MultiHandle`` owns a private asyncio event loop. Attached
``EasyHandle`` objects run as tasks on that loop, but the loop only runs
when the owner calls ``perform`` (one non-blocking pass) or ``wait``
(blocks until a transfer completes or the timeout expires). Completed
transfers are reported once by ``info_read``.
"""

from __future__ import annotations

__all__ = ["MultiHandle", "TransferMessage"]

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from httpchannel.errors import MultiStatus, TransferErrorKind

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

    from httpchannel.engine.easy import EasyHandle

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferMessage:
    """Completion notification of one transfer.

    Attributes:
        handle: The handle whose transfer completed.
        result: The error kind of the transfer, ``OK`` on success.
    """

    handle: EasyHandle
    result: TransferErrorKind


class MultiHandle:
    r"""Readiness-driven multiplexer over a set of ``EasyHandle``.

    Example:
        ```pycon
        >>> import httpx
        >>> from httpchannel.engine import EasyHandle, MultiHandle, TransferOptions
        >>> transport = httpx.MockTransport(lambda request: httpx.Response(200))
        >>> handle = EasyHandle(TransferOptions(url="https://example.com"), transport=transport)
        >>> with MultiHandle() as multi:
        ...     multi.add_handle(handle)
        ...     while multi.perform()[1]:
        ...         _ = multi.wait(1.0)
        ...     [message.result for message in multi.info_read()]
        ...
        <MultiStatus.OK: 0>
        [<TransferErrorKind.OK: 0>]

        ```
    """

    def __init__(self) -> None:
        self._loop = asyncio.new_event_loop()
        self._pending: list[EasyHandle] = []
        self._tasks: dict[EasyHandle, asyncio.Task[TransferErrorKind]] = {}
        self._reported: set[EasyHandle] = set()
        self._closed = False

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        """Whether the multiplexer is closed."""
        return self._closed

    @property
    def running(self) -> int:
        """The number of started transfers that are not complete yet."""
        return sum(not task.done() for task in self._tasks.values())

    def add_handle(self, handle: EasyHandle) -> MultiStatus:
        """Attach a handle. Its transfer starts on the next ``perform``.

        Args:
            handle: The handle to attach.

        Returns:
            ``OK``, ``ADDED_ALREADY`` if the handle is already attached,
            or ``BAD_HANDLE`` if the multiplexer is closed.
        """
        if self._closed:
            return MultiStatus.BAD_HANDLE
        if handle in self._tasks or handle in self._pending:
            return MultiStatus.ADDED_ALREADY
        self._pending.append(handle)
        return MultiStatus.OK

    def remove_handle(self, handle: EasyHandle) -> MultiStatus:
        """Detach a handle, cancelling its transfer if still running.

        Args:
            handle: The handle to detach.

        Returns:
            ``OK``, ``BAD_EASY_HANDLE`` if the handle is not attached, or
            ``BAD_HANDLE`` if the multiplexer is closed.
        """
        if self._closed:
            return MultiStatus.BAD_HANDLE
        if handle in self._pending:
            self._pending.remove(handle)
            return MultiStatus.OK
        task = self._tasks.pop(handle, None)
        if task is None:
            return MultiStatus.BAD_EASY_HANDLE
        self._reported.discard(handle)
        if not task.done():
            task.cancel()
            self._loop.run_until_complete(asyncio.gather(task, return_exceptions=True))
        return MultiStatus.OK

    def perform(self) -> tuple[MultiStatus, int]:
        """Start the attached transfers and let every transfer progress
        without blocking.

        Returns:
            A tuple ``(status, running)``. ``status`` is
            ``CALL_MULTI_PERFORM`` when new transfers were started by this
            call and should be driven again right away, ``OK`` otherwise,
            or an error status. ``running`` is the number of transfers
            that are not complete yet.
        """
        if self._closed:
            return MultiStatus.BAD_HANDLE, 0

        started = bool(self._pending)
        for handle in self._pending:
            self._tasks[handle] = self._loop.create_task(handle.aperform())
        self._pending.clear()

        try:
            self._loop.run_until_complete(asyncio.sleep(0))
        except RuntimeError as exc:
            # raised when another event loop is running in this thread
            logger.debug(f"Multiplexer loop could not run: {exc}")
            return MultiStatus.INTERNAL_ERROR, self.running

        status = MultiStatus.CALL_MULTI_PERFORM if started else MultiStatus.OK
        return status, self.running

    def wait(self, timeout: float) -> int:
        """Block until at least one transfer completes or the timeout
        expires.

        Args:
            timeout: Maximum number of seconds to block.

        Returns:
            The number of transfers that completed and were not reported
            yet, ``0`` on timeout, or ``-1`` if the wait failed.
        """
        if self._closed:
            return -1
        tasks = {task for handle, task in self._tasks.items() if handle not in self._reported}
        if not tasks:
            return 0
        try:
            done, _ = self._loop.run_until_complete(
                asyncio.wait(tasks, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
            )
        except OSError as exc:
            logger.debug(f"Readiness wait failed: {exc}")
            return -1
        return len(done)

    def info_read(self) -> list[TransferMessage]:
        """Return the completion messages not reported yet.

        Every completed transfer is reported exactly once.

        Returns:
            The completion messages, possibly empty.
        """
        messages = []
        for handle, task in self._tasks.items():
            if handle in self._reported or not task.done() or task.cancelled():
                continue
            self._reported.add(handle)
            messages.append(TransferMessage(handle=handle, result=task.result()))
        return messages

    def close(self) -> None:
        """Cancel the unfinished transfers and close the event loop."""
        if self._closed:
            return
        self._closed = True
        unfinished = [task for task in self._tasks.values() if not task.done()]
        for task in unfinished:
            task.cancel()
        try:
            # the loop cannot run while another event loop runs in this thread
            with contextlib.suppress(RuntimeError):
                if unfinished:
                    self._loop.run_until_complete(
                        asyncio.gather(*unfinished, return_exceptions=True)
                    )
                self._loop.run_until_complete(self._loop.shutdown_asyncgens())
        finally:
            self._loop.close()
            self._pending.clear()
            self._tasks.clear()
            self._reported.clear()
