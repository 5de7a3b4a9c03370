"""
Utility helpers for the client.

Re-exports:
- hex: quantity/bytes conversion, block identifiers, integer decoding
- retry: fixed-interval retry with bounded jitter
- callbacks: awaitable/callback bridge
"""

from .callbacks import call_when_done
from .hex import decode_integer, format_block, from_hex, to_hex
from .retry import aretry_call, retry_delay

__all__ = [
    # hex
    "to_hex",
    "from_hex",
    "format_block",
    "decode_integer",
    # retry
    "retry_delay",
    "aretry_call",
    # callbacks
    "call_when_done",
]
