"""
Self-describing digests (multihash).

Format::

    [code varint][length varint][digest]

The code names the hash function. Code 0x00 ("identity") means the digest
is the payload itself, unhashed. libp2p uses this to embed small public
keys directly in a peer id.

References:
    - https://github.com/multiformats/multihash
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import IntEnum

from peer_id.exceptions import MalformedDigestError, MultibaseError, VarintError

from .multibase import Base58
from .varint import decode_varint, encode_varint

__all__ = [
    "Multihash",
    "MultihashCode",
]


class MultihashCode(IntEnum):
    """
    Multihash function codes.

    See: https://github.com/multiformats/multicodec/blob/master/table.csv
    """

    IDENTITY = 0x00
    """Identity "hash" - no hashing, just wraps the data."""

    SHA2_256 = 0x12
    """SHA-256 (32-byte output)."""


@dataclass(frozen=True, slots=True)
class Multihash:
    """
    A self-describing hash in multihash format.

    Attributes:
        code: Hash function identifier.
        digest: Hash output (or raw data for identity).
    """

    code: MultihashCode | int
    """Hash function used. Codes outside `MultihashCode` are kept as plain ints."""

    digest: bytes
    """Hash output or identity data."""

    @property
    def is_identity(self) -> bool:
        """True when the digest is an embedded payload rather than a hash."""
        return self.code == MultihashCode.IDENTITY

    @property
    def encoded(self) -> bytes:
        """The `[code][length][digest]` byte form."""
        return self.encode()

    def encode(self) -> bytes:
        """
        Encode as multihash bytes.

        Returns:
            Multihash-encoded bytes.
        """
        return encode_varint(self.code) + encode_varint(len(self.digest)) + self.digest

    def to_hex(self) -> str:
        """Return the encoded bytes as lowercase hex."""
        return self.encode().hex()

    def to_base58(self) -> str:
        """Return the encoded bytes as base58btc without a multibase prefix."""
        return Base58.encode(self.encode())

    def traditional(self) -> Multihash:
        """
        Return the hashed form of this multihash.

        An identity multihash is replaced by the SHA-256 multihash of its
        payload. Any other multihash is returned unchanged.
        """
        if self.is_identity:
            return Multihash.sha256(self.digest)
        return self

    @classmethod
    def identity(cls, data: bytes) -> Multihash:
        """
        Create an identity multihash (no hashing).

        Args:
            data: Data to wrap.

        Returns:
            Identity multihash.
        """
        return cls(code=MultihashCode.IDENTITY, digest=data)

    @classmethod
    def sha256(cls, data: bytes) -> Multihash:
        """
        Create a SHA256 multihash.

        Args:
            data: Data to hash.

        Returns:
            SHA256 multihash.
        """
        return cls(code=MultihashCode.SHA2_256, digest=hashlib.sha256(data).digest())

    @classmethod
    def decode(cls, data: bytes) -> Multihash:
        """
        Decode multihash bytes.

        The declared digest length must account for every remaining byte.

        Args:
            data: Encoded multihash.

        Returns:
            Decoded multihash.

        Raises:
            MalformedDigestError: If the header is unreadable or the length
                disagrees with the remaining bytes.
        """
        try:
            code, code_len = decode_varint(data, 0)
            length, length_len = decode_varint(data, code_len)
        except VarintError as e:
            raise MalformedDigestError(str(e)) from e

        digest = bytes(data[code_len + length_len :])
        if len(digest) != length:
            raise MalformedDigestError(
                f"declared digest length {length} but {len(digest)} bytes remain"
            )

        hash_code: MultihashCode | int
        try:
            hash_code = MultihashCode(code)
        except ValueError:
            hash_code = code
        return cls(code=hash_code, digest=digest)

    @classmethod
    def from_hex(cls, s: str) -> Multihash:
        """
        Decode a hex-encoded multihash.

        Raises:
            MalformedDigestError: If the text is not hex or the bytes are malformed.
        """
        try:
            data = bytes.fromhex(s)
        except ValueError as e:
            raise MalformedDigestError(f"invalid hex: {e}") from e
        return cls.decode(data)

    @classmethod
    def from_base58(cls, s: str) -> Multihash:
        """
        Decode a base58btc-encoded multihash (no multibase prefix).

        Raises:
            MalformedDigestError: If the text is not base58 or the bytes are malformed.
        """
        try:
            data = Base58.decode(s)
        except MultibaseError as e:
            raise MalformedDigestError(str(e)) from e
        return cls.decode(data)
