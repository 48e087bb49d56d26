"""
Minimal protobuf wire codec.

Only what the libp2p key and peer id messages need: varint fields and
length-delimited byte fields. Unknown fields are skipped on decode.

Tag format::

    tag = (field_number << 3) | wire_type

    wire_type 0 = varint
    wire_type 1 = 64-bit fixed
    wire_type 2 = length-delimited (bytes, string, embedded messages)
    wire_type 5 = 32-bit fixed

References:
    - https://protobuf.dev/programming-guides/encoding/
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import IntEnum

from peer_id.exceptions import ProtobufDecodeError, VarintError

from .varint import decode_varint, encode_varint

__all__ = [
    "WireType",
    "encode_bytes_field",
    "encode_varint_field",
    "iter_fields",
]


class WireType(IntEnum):
    """Protobuf wire types."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    FIXED32 = 5


def _tag(field_number: int, wire_type: WireType) -> bytes:
    return encode_varint((field_number << 3) | wire_type)


def encode_varint_field(field_number: int, value: int) -> bytes:
    """Encode `[tag][value varint]`."""
    return _tag(field_number, WireType.VARINT) + encode_varint(value)


def encode_bytes_field(field_number: int, value: bytes) -> bytes:
    """Encode `[tag][length varint][value]`."""
    return _tag(field_number, WireType.LENGTH_DELIMITED) + encode_varint(len(value)) + value


def iter_fields(data: bytes, message_name: str) -> Iterator[tuple[int, WireType, int | bytes]]:
    """
    Walk the fields of an encoded message.

    Fixed-width fields are yielded as raw bytes.

    Args:
        data: Encoded message.
        message_name: Used in error messages.

    Yields:
        (field_number, wire_type, value) in wire order.

    Raises:
        ProtobufDecodeError: On truncation or an unsupported wire type.
    """
    offset = 0
    while offset < len(data):
        try:
            key, consumed = decode_varint(data, offset)
            offset += consumed

            field_number, raw_wire_type = key >> 3, key & 0x07
            if field_number == 0:
                raise ProtobufDecodeError(message_name, "field number 0 is reserved")

            try:
                wire_type = WireType(raw_wire_type)
            except ValueError:
                raise ProtobufDecodeError(
                    message_name, f"unsupported wire type {raw_wire_type}"
                ) from None

            value: int | bytes
            match wire_type:
                case WireType.VARINT:
                    value, consumed = decode_varint(data, offset)
                    offset += consumed
                case WireType.LENGTH_DELIMITED:
                    length, consumed = decode_varint(data, offset)
                    offset += consumed
                    if offset + length > len(data):
                        raise ProtobufDecodeError(message_name, f"truncated field {field_number}")
                    value = bytes(data[offset : offset + length])
                    offset += length
                case WireType.FIXED64 | WireType.FIXED32:
                    width = 8 if wire_type == WireType.FIXED64 else 4
                    if offset + width > len(data):
                        raise ProtobufDecodeError(message_name, f"truncated field {field_number}")
                    value = bytes(data[offset : offset + width])
                    offset += width
        except VarintError as e:
            raise ProtobufDecodeError(message_name, str(e)) from e

        yield field_number, wire_type, value
