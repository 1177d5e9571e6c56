r"""Transfer engine built on httpx.

The engine exposes a small handle-based interface: an ``EasyHandle``
performs one configured transfer and keeps its outcome, and a
``MultiHandle`` drives many ``EasyHandle`` objects concurrently from a
single thread.
"""

from __future__ import annotations

__all__ = [
    "EasyHandle",
    "MultiHandle",
    "TransferMessage",
    "TransferOptions",
    "TransferTracer",
    "classify_exception",
]

from httpchannel.engine.classify import classify_exception
from httpchannel.engine.easy import EasyHandle
from httpchannel.engine.info import TransferTracer
from httpchannel.engine.multi import MultiHandle, TransferMessage
from httpchannel.engine.options import TransferOptions
