r"""Parameter validation utilities for transfers and schedulers.

This module provides validation functions to ensure that retry, timeout
and wait parameters meet the required constraints before they are used.
"""

from __future__ import annotations

__all__ = ["validate_max_retries", "validate_timeout", "validate_wait_params"]


def validate_max_retries(max_retries: int) -> None:
    """Validate the retry budget of a single transfer.

    Args:
        max_retries: Maximum number of retry attempts. Must be >= 0.
            A value of 0 means only the initial attempt.

    Raises:
        ValueError: If max_retries is negative.

    Example:
        ```pycon
        >>> from httpchannel.core.validation import validate_max_retries
        >>> validate_max_retries(0)
        >>> validate_max_retries(5)
        >>> validate_max_retries(-1)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: max_retries must be >= 0, got -1

        ```
    """
    if max_retries < 0:
        msg = f"max_retries must be >= 0, got {max_retries}"
        raise ValueError(msg)


def validate_timeout(timeout: float | None) -> None:
    """Validate a transfer timeout.

    Args:
        timeout: Maximum seconds a transfer may take, or ``None`` to
            disable the timeout. Must be >= 0 if provided.

    Raises:
        ValueError: If timeout is negative.

    Example:
        ```pycon
        >>> from httpchannel.core.validation import validate_timeout
        >>> validate_timeout(10.0)
        >>> validate_timeout(None)
        >>> validate_timeout(-1)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: timeout must be >= 0, got -1

        ```
    """
    if timeout is not None and timeout < 0:
        msg = f"timeout must be >= 0, got {timeout}"
        raise ValueError(msg)


def validate_wait_params(wait_timeout: float, wait_error_sleep: float) -> None:
    """Validate the readiness-wait parameters of a scheduler.

    Args:
        wait_timeout: Maximum seconds to block in one readiness wait.
            Must be > 0.
        wait_error_sleep: Seconds to sleep after a failed readiness wait.
            Must be >= 0.

    Raises:
        ValueError: If wait_timeout is not positive or wait_error_sleep
            is negative.

    Example:
        ```pycon
        >>> from httpchannel.core.validation import validate_wait_params
        >>> validate_wait_params(wait_timeout=3.0, wait_error_sleep=0.00001)

        ```
    """
    if wait_timeout <= 0:
        msg = f"wait_timeout must be > 0, got {wait_timeout}"
        raise ValueError(msg)
    if wait_error_sleep < 0:
        msg = f"wait_error_sleep must be >= 0, got {wait_error_sleep}"
        raise ValueError(msg)
