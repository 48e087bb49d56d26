"""
Marshaled peer id envelope.

The persisted binary form of an identity::

    message PeerIdProto {
        required bytes id = 1;
        bytes pubKey = 2;
        bytes privKey = 3;
    }

Field presence matters: an absent key field and an empty one are different.
Fields are written in tag order so the encoding is deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass

from peer_id.codec.protobuf import WireType, encode_bytes_field, iter_fields
from peer_id.exceptions import ProtobufDecodeError

__all__ = ["PeerIdEnvelope"]

_MESSAGE_NAME = "PeerIdProto"

_FIELD_ID = 1
_FIELD_PUB_KEY = 2
_FIELD_PRIV_KEY = 3


@dataclass(frozen=True, slots=True)
class PeerIdEnvelope:
    """Id bytes plus optional marshaled public and private keys."""

    id: bytes
    """Multihash bytes of the identity."""

    pub_key: bytes | None = None
    """Marshaled `PublicKey` message, if present."""

    priv_key: bytes | None = None
    """Marshaled `PrivateKey` message, if present."""

    def encode(self) -> bytes:
        """Encode as protobuf wire format, omitting absent fields."""
        out = encode_bytes_field(_FIELD_ID, self.id)
        if self.pub_key is not None:
            out += encode_bytes_field(_FIELD_PUB_KEY, self.pub_key)
        if self.priv_key is not None:
            out += encode_bytes_field(_FIELD_PRIV_KEY, self.priv_key)
        return out

    @classmethod
    def decode(cls, data: bytes) -> PeerIdEnvelope:
        """
        Decode from protobuf wire format.

        Unknown fields are skipped. A repeated field keeps its last value.

        Raises:
            ProtobufDecodeError: If the bytes are malformed or `id` is missing.
        """
        fields: dict[int, bytes] = {}
        for field_number, wire_type, value in iter_fields(data, _MESSAGE_NAME):
            if field_number not in (_FIELD_ID, _FIELD_PUB_KEY, _FIELD_PRIV_KEY):
                continue
            if wire_type != WireType.LENGTH_DELIMITED or not isinstance(value, bytes):
                raise ProtobufDecodeError(
                    _MESSAGE_NAME, f"field {field_number} must be length-delimited"
                )
            fields[field_number] = value

        if _FIELD_ID not in fields:
            raise ProtobufDecodeError(_MESSAGE_NAME, "missing required field 'id'")

        return cls(
            id=fields[_FIELD_ID],
            pub_key=fields.get(_FIELD_PUB_KEY),
            priv_key=fields.get(_FIELD_PRIV_KEY),
        )
