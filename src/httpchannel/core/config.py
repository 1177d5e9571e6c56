r"""Configuration dataclass and defaults for transfers and schedulers.

This module provides the default values used by channels, the
single-transfer runner and the scheduler, and a dataclass-based
configuration object for ``TransferScheduler``.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_PROXY_PORT",
    "DEFAULT_TIMEOUT",
    "DEFAULT_WAIT_ERROR_SLEEP",
    "DEFAULT_WAIT_TIMEOUT",
    "SchedulerConfig",
]

from dataclasses import dataclass, replace
from typing import Any

from httpchannel.core.validation import validate_wait_params

# Default maximum number of retry attempts of a single transfer
# Total attempts = max_retries + 1 (initial attempt)
DEFAULT_MAX_RETRIES = 5

# Default timeout in seconds for a whole transfer
DEFAULT_TIMEOUT = 10.0

# Default maximum number of redirects followed when redirects are enabled
DEFAULT_MAX_REDIRECTS = 10

# Default maximum time in seconds the scheduler blocks in one readiness wait
DEFAULT_WAIT_TIMEOUT = 3.0

# Time in seconds the scheduler sleeps after a failed readiness wait (10 µs)
DEFAULT_WAIT_ERROR_SLEEP = 0.00001

# Default port of a proxy configured without an explicit port
DEFAULT_PROXY_PORT = 3128


@dataclass
class SchedulerConfig:
    """Configuration of the readiness loop of ``TransferScheduler``.

    Args:
        wait_timeout: Maximum seconds to block in one readiness wait
            before the running condition is checked again. Must be > 0.
        wait_error_sleep: Seconds to sleep after a failed readiness wait
            before the transfers are driven again. Must be >= 0.

    Example:
        ```pycon
        >>> from httpchannel.core.config import SchedulerConfig
        >>> config = SchedulerConfig()
        >>> config.wait_timeout
        3.0
        >>> merged = config.merge(wait_timeout=1.5)
        >>> merged.wait_timeout
        1.5
        >>> config.wait_timeout  # Original unchanged
        3.0

        ```
    """

    wait_timeout: float = DEFAULT_WAIT_TIMEOUT
    wait_error_sleep: float = DEFAULT_WAIT_ERROR_SLEEP

    def __post_init__(self) -> None:
        """Validate configuration parameters after initialization.

        Raises:
            ValueError: If any parameter fails validation.
        """
        validate_wait_params(
            wait_timeout=self.wait_timeout, wait_error_sleep=self.wait_error_sleep
        )

    def merge(self, **overrides: Any) -> SchedulerConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new SchedulerConfig instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary with the scheduler configuration parameters.

        Example:
            ```pycon
            >>> from httpchannel.core.config import SchedulerConfig
            >>> SchedulerConfig(wait_timeout=1.0).to_dict()
            {'wait_timeout': 1.0, 'wait_error_sleep': 1e-05}

            ```
        """
        return {
            "wait_timeout": self.wait_timeout,
            "wait_error_sleep": self.wait_error_sleep,
        }
