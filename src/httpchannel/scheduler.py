r"""Concurrent execution of many channels from a single thread.

This module provides ``TransferScheduler``, which registers channels under
their IDs and drives all their transfers concurrently with one
``MultiHandle``. The loop blocks only in the readiness wait of the
multiplexer and collects one ``TransferResult`` per channel as each
transfer completes. Transfers run exactly once under the scheduler, they
are never retried.
"""

from __future__ import annotations

__all__ = ["NOT_FOUND_ID", "TransferScheduler"]

import logging
import time
from typing import TYPE_CHECKING

from httpchannel.core.config import SchedulerConfig
from httpchannel.engine.multi import MultiHandle
from httpchannel.errors import MultiStatus, TransferErrorKind
from httpchannel.exceptions import BatchStartError, DuplicateChannelError
from httpchannel.result import TransferResult

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType
    from typing import Self

    from httpchannel.channel import Channel
    from httpchannel.engine.easy import EasyHandle
    from httpchannel.engine.multi import TransferMessage

logger: logging.Logger = logging.getLogger(__name__)

# Key of the results whose handle does not belong to any registered channel
NOT_FOUND_ID = "not found"


class TransferScheduler:
    r"""Run the transfers of many channels concurrently.

    Registering a channel forces it to capture the response in memory,
    header blocks included.

    Args:
        *channels: The channels to register.
        config: The configuration of the readiness loop. A default
            ``SchedulerConfig`` is used if ``None``.

    Raises:
        ValueError: If a channel ID is empty.
        DuplicateChannelError: If two channels share the same ID.

    Example:
        ```pycon
        >>> import httpx
        >>> from httpchannel import Channel, TransferScheduler
        >>> transport = httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
        >>> channels = [Channel(f"https://example.com/{i}", transport=transport) for i in range(3)]
        >>> with TransferScheduler(*channels) as scheduler:
        ...     results = scheduler.exec()
        ...
        >>> len(results)
        3
        >>> all(result.success for result in results.values())
        True

        ```
    """

    def __init__(self, *channels: Channel, config: SchedulerConfig | None = None) -> None:
        self._config: SchedulerConfig = config or SchedulerConfig()
        self._channels: dict[str, Channel] = {}
        for channel in channels:
            self.add_channel(channel)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._channels

    def __iter__(self) -> Iterator[Channel]:
        return iter(self._channels.values())

    @property
    def config(self) -> SchedulerConfig:
        """The configuration of the readiness loop."""
        return self._config

    @property
    def channel_ids(self) -> list[str]:
        """The IDs of the registered channels, in registration order."""
        return list(self._channels)

    def add_channel(self, channel: Channel) -> Self:
        """Register a channel.

        Args:
            channel: The channel to register.

        Returns:
            The scheduler, so calls can be chained.

        Raises:
            ValueError: If the channel ID is empty.
            DuplicateChannelError: If a channel with the same ID is
                already registered. The registered channel is kept.
        """
        channel_id = channel.id
        if not channel_id:
            msg = "Channel-ID must be a non-empty string."
            raise ValueError(msg)
        if channel_id in self._channels:
            raise DuplicateChannelError(channel_id)
        channel.set_return_transfer(True, return_header=True)
        self._channels[channel_id] = channel
        return self

    def get_channel(self, channel_id: str) -> Channel | None:
        """Return the registered channel with the given ID, if any."""
        return self._channels.get(channel_id)

    def remove_channel(self, channel_id: str) -> Channel | None:
        """Unregister a channel.

        Returns:
            The unregistered channel, or ``None`` if the ID is unknown.
        """
        return self._channels.pop(channel_id, None)

    def exec(self) -> dict[str, TransferResult]:
        """Perform every registered transfer once, concurrently.

        Returns:
            The results keyed by channel ID. A completed transfer that
            cannot be matched to a registered channel is stored under
            ``NOT_FOUND_ID``.

        Raises:
            ValueError: If no channel is registered.
            ChannelConfigError: If a channel cannot be prepared.
            BatchStartError: If the transfers could not be started.
        """
        if not self._channels:
            msg = "No channels registered, add at least one channel before exec()."
            raise ValueError(msg)

        # Snapshot of the registration so that the results keep the ID
        # and URL the transfer was started with
        registered: dict[EasyHandle, tuple[str, str]] = {}
        results: dict[str, TransferResult] = {}

        with MultiHandle() as multi:
            for channel_id, channel in self._channels.items():
                handle = channel.prepare()
                status = multi.add_handle(handle)
                if status != MultiStatus.OK:
                    msg = f"Channel {channel_id} could not be attached: {status.name}"
                    raise BatchStartError(msg, status=status)
                registered[handle] = (channel_id, channel.url or "")
                channel.mark_executed()

            logger.debug(f"Starting {len(registered)} concurrent transfer(s)")
            status, running = self._drive(multi)
            if not running and status != MultiStatus.OK:
                msg = f"The batch of transfers could not be started: {status.name}"
                raise BatchStartError(msg, status=status)

            while running:
                ready = multi.wait(self._config.wait_timeout)
                if ready == -1:
                    time.sleep(self._config.wait_error_sleep)
                    _, running = self._drive(multi)
                    continue
                if ready == 0:
                    logger.debug(f"No transfer completed in {self._config.wait_timeout}s")
                    continue
                _, running = self._drive(multi)
                self._collect(multi, registered, results)

            self._collect(multi, registered, results)

        logger.debug(
            f"Completed {len(results)} transfer(s), "
            f"{sum(result.success for result in results.values())} succeeded"
        )
        return results

    def close(self) -> None:
        """Close every registered channel."""
        for channel in self._channels.values():
            channel.close()

    @staticmethod
    def _drive(multi: MultiHandle) -> tuple[MultiStatus, int]:
        status, running = multi.perform()
        while status == MultiStatus.CALL_MULTI_PERFORM:
            status, running = multi.perform()
        return status, running

    def _collect(
        self,
        multi: MultiHandle,
        registered: dict[EasyHandle, tuple[str, str]],
        results: dict[str, TransferResult],
    ) -> None:
        for message in multi.info_read():
            channel_id, url = registered.get(message.handle, (NOT_FOUND_ID, ""))
            if channel_id == NOT_FOUND_ID:
                logger.warning("Completed transfer does not belong to any registered channel")
            results[channel_id] = self._build_result(channel_id, url, message)
            multi.remove_handle(message.handle)

    @staticmethod
    def _build_result(channel_id: str, url: str, message: TransferMessage) -> TransferResult:
        handle = message.handle
        info = handle.getinfo()
        content = handle.content
        if content is None:
            logger.debug(
                f"Transfer of channel {channel_id} failed with {message.result.name}: "
                f"{handle.errstr}"
            )
            error_kind = message.result
            if error_kind == TransferErrorKind.OK:
                error_kind = TransferErrorKind.OTHER
            return TransferResult.failed(
                id=channel_id,
                url=url,
                info=info,
                error_kind=error_kind,
                error_message=handle.errstr or "The transfer did not capture any content",
            )
        return TransferResult.succeeded(
            id=channel_id,
            url=url,
            info=info,
            content=content,
            header_size=info.get("header_size"),
        )
