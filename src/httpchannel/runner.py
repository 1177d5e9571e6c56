r"""Bounded retry loop around a single transfer.

This module provides ``TransferRunner``, which performs the transfer of
one ``Channel`` up to ``max_retries + 1`` times. Only the continuable
error kinds (host resolution, connection, HTTP error status, read
error, timeout, POST error and TLS connect error) are retried; any other
failure ends the loop on the first attempt.
"""

from __future__ import annotations

__all__ = ["TransferRunner"]

import logging
from typing import TYPE_CHECKING

from httpchannel.core.config import DEFAULT_MAX_RETRIES
from httpchannel.core.validation import validate_max_retries
from httpchannel.errors import TransferErrorKind, is_continuable, to_error_kind
from httpchannel.exceptions import ChannelConfigError, TransferError
from httpchannel.result import TransferResult
from httpchannel.utils.structured_logging import channel_context

if TYPE_CHECKING:
    from httpchannel.channel import Channel
    from httpchannel.engine.easy import EasyHandle

logger: logging.Logger = logging.getLogger(__name__)


class TransferRunner:
    r"""Execute the transfer of one channel with bounded retries.

    Args:
        channel: The channel to execute.

    Example:
        ```pycon
        >>> import httpx
        >>> from httpchannel import Channel, TransferRunner
        >>> transport = httpx.MockTransport(lambda request: httpx.Response(200, text="ok"))
        >>> channel = Channel("https://example.com", return_transfer=True, transport=transport)
        >>> result = TransferRunner(channel).exec(max_retries=2)
        >>> result.success, result.http_status_code, result.response_body
        (True, 200, 'ok')
        >>> channel.close()

        ```
    """

    def __init__(self, channel: Channel) -> None:
        self._channel = channel

    @property
    def channel(self) -> Channel:
        """The channel executed by the runner."""
        return self._channel

    def exec(self, max_retries: int = DEFAULT_MAX_RETRIES, throw: bool = False) -> TransferResult:
        """Perform the transfer until it succeeds, fails with an error
        that is not worth retrying, or the retry budget is exhausted.

        Args:
            max_retries: Maximum number of retries after the first
                attempt. ``0`` means exactly one attempt.
            throw: Whether a final failure raises ``TransferError``
                instead of being returned.

        Returns:
            The result of the last attempt.

        Raises:
            ValueError: If ``max_retries`` is negative.
            ChannelConfigError: If the channel cannot be prepared.
            TransferError: If the transfer finally failed and ``throw``
                is ``True``.
        """
        validate_max_retries(max_retries)
        channel = self._channel
        with channel_context(channel.id):
            handle = channel.prepare()
            url = channel.url or ""
            attempts = 0
            attempts_left = max_retries + 1
            while attempts_left:
                attempts_left -= 1
                attempts += 1
                logger.debug(
                    f"{channel.method} request to {url} "
                    f"(attempt {attempts}/{max_retries + 1})"
                )
                errno = handle.perform()
                channel.mark_executed()

                if errno == TransferErrorKind.OK:
                    logger.debug(
                        f"{channel.method} request to {url} succeeded "
                        f"with status {handle.getinfo('http_code')} after {attempts} attempt(s)"
                    )
                    return self._succeeded(handle)

                error_kind = to_error_kind(errno)
                if is_continuable(error_kind) and attempts_left:
                    logger.debug(
                        f"{channel.method} request to {url} failed with {error_kind.name}, "
                        f"retrying ({attempts_left} attempt(s) left)"
                    )
                    continue

                logger.debug(
                    f"{channel.method} request to {url} failed with {error_kind.name} "
                    f"after {attempts} attempt(s): {handle.errstr}"
                )
                return self._failed(handle, error_kind, throw)

        msg = "Transfer finished without being executed."
        raise ChannelConfigError(msg)

    def _succeeded(self, handle: EasyHandle) -> TransferResult:
        info = handle.getinfo()
        header_size = info.get("header_size") if handle.options.return_header else None
        return TransferResult.succeeded(
            id=self._channel.id,
            url=self._channel.url or "",
            info=info,
            content=handle.content,
            header_size=header_size,
        )

    def _failed(
        self, handle: EasyHandle, error_kind: TransferErrorKind, throw: bool
    ) -> TransferResult:
        result = TransferResult.failed(
            id=self._channel.id,
            url=self._channel.url or "",
            info=handle.getinfo(),
            error_kind=error_kind,
            error_message=handle.errstr,
        )
        if throw:
            raise TransferError(
                channel_id=result.id,
                url=result.url,
                error_kind=result.error_kind,
                message=result.error_message,
                cause=handle.exception,
            ) from handle.exception
        return result
