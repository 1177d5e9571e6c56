r"""Exceptions raised by httpchannel.

Configuration problems and batch start-up failures are raised as
exceptions. Per-transfer outcomes are returned as ``TransferResult``
objects, except when the caller asks the single-transfer runner to raise
on final failure, in which case ``TransferError`` is raised.
"""

from __future__ import annotations

__all__ = [
    "BatchStartError",
    "ChannelConfigError",
    "DuplicateChannelError",
    "HttpChannelError",
    "TransferError",
]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from httpchannel.errors import MultiStatus, TransferErrorKind


class HttpChannelError(Exception):
    """Base class of all the exceptions raised by httpchannel."""


class ChannelConfigError(HttpChannelError, ValueError):
    """Raised when a channel is configured with an invalid value."""


class DuplicateChannelError(HttpChannelError, ValueError):
    """Raised when a channel ID is already registered in a scheduler.

    Args:
        channel_id: The duplicated channel ID.

    Example:
        ```pycon
        >>> from httpchannel.exceptions import DuplicateChannelError
        >>> error = DuplicateChannelError("abc")
        >>> error.channel_id
        'abc'
        >>> str(error)
        "Channel-ID 'abc' is duplicated."

        ```
    """

    def __init__(self, channel_id: str) -> None:
        super().__init__(f"Channel-ID '{channel_id}' is duplicated.")
        self.channel_id = channel_id


class BatchStartError(HttpChannelError, RuntimeError):
    """Raised when the multiplexer could not start a batch of transfers.

    Args:
        message: The error message.
        status: The multiplexer status that caused the failure.
    """

    def __init__(self, message: str, status: MultiStatus | None = None) -> None:
        super().__init__(message)
        self.status = status


class TransferError(HttpChannelError, RuntimeError):
    """Raised when a transfer fails and the caller asked for an exception.

    Args:
        channel_id: The ID of the channel whose transfer failed.
        url: The URL that was requested.
        error_kind: The engine error kind of the final attempt.
        message: The engine error message of the final attempt.
        cause: The original exception that caused the failure, if any.

    Example:
        ```pycon
        >>> from httpchannel.errors import TransferErrorKind
        >>> from httpchannel.exceptions import TransferError
        >>> error = TransferError(
        ...     channel_id="abc",
        ...     url="https://example.com",
        ...     error_kind=TransferErrorKind.COULDNT_CONNECT,
        ...     message="connection refused",
        ... )
        >>> error.error_kind
        <TransferErrorKind.COULDNT_CONNECT: 7>
        >>> str(error)
        'Transfer to https://example.com failed (COULDNT_CONNECT): connection refused'

        ```
    """

    def __init__(
        self,
        channel_id: str,
        url: str,
        error_kind: TransferErrorKind,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(f"Transfer to {url} failed ({error_kind.name}): {message}")
        self.channel_id = channel_id
        self.url = url
        self.error_kind = error_kind
        self.message = message
        self.cause = cause
