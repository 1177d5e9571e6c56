r"""Shared configuration defaults and parameter validation."""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_PROXY_PORT",
    "DEFAULT_TIMEOUT",
    "DEFAULT_WAIT_ERROR_SLEEP",
    "DEFAULT_WAIT_TIMEOUT",
    "SchedulerConfig",
    "validate_max_retries",
    "validate_timeout",
    "validate_wait_params",
]

from httpchannel.core.config import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PROXY_PORT,
    DEFAULT_TIMEOUT,
    DEFAULT_WAIT_ERROR_SLEEP,
    DEFAULT_WAIT_TIMEOUT,
    SchedulerConfig,
)
from httpchannel.core.validation import (
    validate_max_retries,
    validate_timeout,
    validate_wait_params,
)
