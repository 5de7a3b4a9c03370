from __future__ import annotations

import re
from typing import Union

BlockIdentifier = Union[int, str]

# Symbolic block tags understood by Ethereum JSON-RPC nodes.
BLOCK_TAGS = frozenset({"latest", "earliest", "pending", "safe", "finalized"})

_INT_TYPE_RE = re.compile(r"^(u?)int(\d*)$")


def to_hex(value: int) -> str:
    """
    Non-negative integer -> 0x-prefixed quantity string (no leading zeros).

    Example:
        to_hex(0)   -> '0x0'
        to_hex(255) -> '0xff'
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"to_hex expects an int, got {type(value)!r}")
    if value < 0:
        raise ValueError("to_hex expects a non-negative integer")
    return hex(value)


def from_hex(s: str) -> bytes:
    """
    Hex string (optionally '0x' prefixed) -> bytes.

    Odd-length input is left-padded with a zero nibble, since node quantities
    ('0x1') are not byte aligned.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a string")
    if s.startswith(("0x", "0X")):
        s = s[2:]
    if len(s) % 2:
        s = "0" + s
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise ValueError(f"invalid hex string: {e}") from e


def format_block(block: BlockIdentifier) -> str:
    """
    Canonicalize a block identifier for JSON-RPC.

    - int            -> '0x..' quantity
    - decimal string -> '0x..' quantity
    - tag or hex     -> unchanged
    """
    if isinstance(block, bool):
        raise TypeError("block identifier cannot be a bool")
    if isinstance(block, int):
        return to_hex(block)
    if isinstance(block, str):
        if block in BLOCK_TAGS or block.startswith(("0x", "0X")):
            return block
        if block.isdigit():
            return to_hex(int(block))
        return block
    raise TypeError(f"unsupported block identifier: {block!r}")


def decode_integer(type_name: str, encoded: str) -> str:
    """
    Decode an ABI-encoded fixed-width integer into a decimal string.

    `type_name` is a Solidity integer type ('uint256', 'int128', 'uint', ...).
    Signed types are read as two's complement over their bit width.

    Example:
        decode_integer('uint256', '0x' + '00' * 31 + '2a') -> '42'
        decode_integer('int8', '0xff')                      -> '-1'
    """
    m = _INT_TYPE_RE.match(type_name)
    if m is None:
        raise ValueError(f"not an integer type: {type_name!r}")
    unsigned = m.group(1) == "u"
    bits = int(m.group(2) or 256)
    if bits < 8 or bits > 256 or bits % 8:
        raise ValueError(f"invalid integer width in {type_name!r}")

    raw = from_hex(encoded)
    if not raw:
        return "0"
    # ABI words are 32 bytes; the value lives in the low-order bytes.
    value = int.from_bytes(raw, "big") & ((1 << bits) - 1)
    if not unsigned and value >= 1 << (bits - 1):
        value -= 1 << bits
    return str(value)


__all__ = [
    "BlockIdentifier",
    "BLOCK_TAGS",
    "to_hex",
    "from_hex",
    "format_block",
    "decode_integer",
]
