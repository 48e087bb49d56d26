"""
Unsigned LEB128 varint encoding and decoding.

Varints prefix every self-describing structure handled by this package:

- Multihash: [hash code varint][digest length varint][digest]
- CIDv1: [version varint][codec varint][multihash]
- Protobuf: field tags and length prefixes

Each byte carries 7 bits of the value, low-order group first. The MSB is the
continuation flag::

    [C|D D D D D D D]
     ^-- 1 = more bytes follow, 0 = last byte

    300 -> 0b1_0010_1100 -> [0xAC, 0x02]

Only unsigned values are handled. The decoder rejects anything longer than
10 bytes (64-bit values), matching protobuf.

References:
    - https://github.com/multiformats/unsigned-varint
    - https://protobuf.dev/programming-guides/encoding/#varints
"""

from __future__ import annotations

from typing import Final

from peer_id.exceptions import VarintError

__all__ = [
    "MAX_VARINT_BYTES",
    "VarintError",
    "decode_varint",
    "encode_varint",
]

MAX_VARINT_BYTES: Final = 10
"""Longest accepted encoding, enough for any 64-bit value."""


def encode_varint(value: int) -> bytes:
    """
    Encode an unsigned integer as LEB128 varint.

    Args:
        value: Non-negative integer to encode. Maximum: 2^64 - 1.

    Returns:
        Varint-encoded bytes (1 byte for 0-127, up to 10 for 64-bit values).

    Raises:
        ValueError: If value is negative.
    """
    if value < 0:
        raise ValueError("Varint must be non-negative")

    result = bytearray()

    # Emit low 7-bit groups with the continuation bit set.
    while value >= 0x80:
        result.append((value & 0x7F) | 0x80)
        value >>= 7

    # Final group, continuation bit clear.
    result.append(value)

    return bytes(result)


def decode_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """
    Decode a varint from bytes at the given offset.

    Args:
        data: Input bytes containing the varint.
        offset: Starting position in data. Defaults to 0.

    Returns:
        Tuple of (decoded_value, bytes_consumed).

    Raises:
        VarintError: If the input is truncated or longer than 10 bytes.
    """
    result = 0
    shift = 0
    pos = offset

    while True:
        if pos >= len(data):
            raise VarintError("Truncated varint")

        byte = data[pos]
        pos += 1

        result |= (byte & 0x7F) << shift
        shift += 7

        if not (byte & 0x80):
            break

        # 10 bytes carry 70 bits; a continuation past that is malformed.
        if shift >= 7 * MAX_VARINT_BYTES:
            raise VarintError("Varint too long")

    return result, pos - offset
