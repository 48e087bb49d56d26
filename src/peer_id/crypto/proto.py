"""
libp2p-crypto key messages.

Public and private keys travel as the same two-field protobuf shape
(from crypto.proto)::

    message PublicKey {
        required KeyType Type = 1;  // Field 1, varint
        required bytes Data = 2;    // Field 2, length-delimited
    }

    message PrivateKey {
        required KeyType Type = 1;
        required bytes Data = 2;
    }

Wire format::

    [0x08][type_varint][0x12][length_varint][key_bytes]

Data per key type:

    ========== ================================ ==============================
    Type       PublicKey.Data                   PrivateKey.Data
    ========== ================================ ==============================
    RSA        DER SubjectPublicKeyInfo         DER PKCS#1 RSAPrivateKey
    Ed25519    32 raw bytes                     64 bytes (seed || public key)
    Secp256k1  33-byte compressed point         32-byte scalar
    ECDSA      DER SubjectPublicKeyInfo         DER SEC1 ECPrivateKey
    ========== ================================ ==============================

References:
    - https://github.com/libp2p/specs/blob/master/peer-ids/peer-ids.md#keys
    - https://github.com/libp2p/go-libp2p/blob/master/core/crypto/pb/crypto.proto
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Self

from peer_id.codec.protobuf import WireType, encode_bytes_field, encode_varint_field, iter_fields
from peer_id.exceptions import KeyEncodingError, ProtobufDecodeError, UnsupportedKeyTypeError

__all__ = [
    "KeyType",
    "PrivateKeyProto",
    "PublicKeyProto",
]


class KeyType(IntEnum):
    """
    libp2p-crypto key type codes (from crypto.proto KeyType enum).

    These identify the cryptographic algorithm used for the key.
    """

    RSA = 0
    """RSA key (DER-encoded)."""

    ED25519 = 1
    """Ed25519 key (32-byte public key)."""

    SECP256K1 = 2
    """secp256k1 key (33-byte compressed public key)."""

    ECDSA = 3
    """ECDSA key on a NIST curve (ASN.1 DER encoded)."""


_FIELD_TYPE = 1
_FIELD_DATA = 2


@dataclass(frozen=True, slots=True)
class _KeyProto:
    """Shared encoding for the PublicKey and PrivateKey messages."""

    MESSAGE_NAME: ClassVar[str] = "Key"

    key_type: KeyType
    """Key algorithm type."""

    key_data: bytes
    """Key bytes (format depends on key_type)."""

    def encode(self) -> bytes:
        """
        Encode as protobuf wire format.

        Fields are written in tag order and always present, so the
        encoding is deterministic and safe to hash into a peer id.
        """
        return encode_varint_field(_FIELD_TYPE, self.key_type) + encode_bytes_field(
            _FIELD_DATA, self.key_data
        )

    @classmethod
    def decode(cls, data: bytes) -> Self:
        """
        Decode from protobuf wire format.

        Raises:
            UnsupportedKeyTypeError: If the type tag is unknown.
            KeyEncodingError: If the message is malformed or a field is missing.
        """
        key_type: int | None = None
        key_data: bytes | None = None

        try:
            for field_number, wire_type, value in iter_fields(data, cls.MESSAGE_NAME):
                if field_number == _FIELD_TYPE and isinstance(value, int):
                    key_type = value
                elif field_number == _FIELD_DATA and wire_type == WireType.LENGTH_DELIMITED:
                    key_data = bytes(value)
        except ProtobufDecodeError as e:
            raise KeyEncodingError(str(e)) from e

        if key_type is None:
            raise KeyEncodingError(f"{cls.MESSAGE_NAME} is missing the Type field")
        if key_data is None:
            raise KeyEncodingError(f"{cls.MESSAGE_NAME} is missing the Data field")

        try:
            return cls(key_type=KeyType(key_type), key_data=key_data)
        except ValueError:
            raise UnsupportedKeyTypeError(key_type) from None


@dataclass(frozen=True, slots=True)
class PublicKeyProto(_KeyProto):
    """A public key in libp2p-crypto protobuf format."""

    MESSAGE_NAME: ClassVar[str] = "PublicKey"


@dataclass(frozen=True, slots=True)
class PrivateKeyProto(_KeyProto):
    """A private key in libp2p-crypto protobuf format."""

    MESSAGE_NAME: ClassVar[str] = "PrivateKey"
