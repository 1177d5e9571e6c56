r"""httpchannel - Retrying and concurrent HTTP transfers built on httpx.

This package executes HTTP requests described by configurable channels,
either one at a time with a bounded retry loop or many at once from a
single thread with a readiness-driven scheduler. Every execution
produces a uniform ``TransferResult`` carrying the success flag, the
captured header and body, the error kind and the transfer statistics.

Key Features:
    - Fluent request configuration (method, headers, body, auth, proxy, TLS)
    - Bounded retries of transient transfer errors for single transfers
    - Concurrent execution of many transfers without threads
    - Uniform results with transfer statistics and timing breakdown
    - Stable numeric error kinds shared by every transfer
    - Opt-in JSON structured logging tagged with the channel ID

Example:
    ```pycon
    >>> from httpchannel import Channel, TransferScheduler
    >>> # Execute one request, retrying transient failures up to 3 times
    >>> result = Channel("https://example.com", return_transfer=True).exec(
    ...     max_retries=3
    ... )  # doctest: +SKIP
    >>> # Execute several requests concurrently
    >>> with TransferScheduler(
    ...     Channel("https://example.com"), Channel("https://example.org")
    ... ) as scheduler:  # doctest: +SKIP
    ...     results = scheduler.exec()
    ...

    ```
"""

from __future__ import annotations

__all__ = [
    "BatchStartError",
    "Channel",
    "ChannelConfigError",
    "DuplicateChannelError",
    "HttpChannelError",
    "SchedulerConfig",
    "TransferError",
    "TransferErrorKind",
    "TransferResult",
    "TransferRunner",
    "TransferScheduler",
    "TransferTimings",
    "__version__",
]

from importlib.metadata import PackageNotFoundError, version

from httpchannel.channel import Channel
from httpchannel.core.config import SchedulerConfig
from httpchannel.errors import TransferErrorKind
from httpchannel.exceptions import (
    BatchStartError,
    ChannelConfigError,
    DuplicateChannelError,
    HttpChannelError,
    TransferError,
)
from httpchannel.result import TransferResult, TransferTimings
from httpchannel.runner import TransferRunner
from httpchannel.scheduler import TransferScheduler

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
