r"""Utility functions shared across the package."""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "channel_context",
    "clear_channel_id",
    "get_channel_id",
    "log_structured",
    "set_channel_id",
]

from httpchannel.utils.structured_logging import (
    StructuredFormatter,
    channel_context,
    clear_channel_id,
    get_channel_id,
    log_structured,
    set_channel_id,
)
