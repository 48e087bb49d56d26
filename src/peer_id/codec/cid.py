"""
Content identifiers (CID).

Two versions exist::

    CIDv0: [multihash]                              text: base58btc, no prefix ("Qm...")
    CIDv1: [version=1][codec varint][multihash]     text: multibase ("bafz...")

CIDv0 has an implicit dag-pb codec. Peer ids are written as CIDv1 with the
libp2p-key codec in base32.

Legacy peer id text is a bare base58btc multihash starting with "Qm"
(SHA-256) or "1" (identity). Both are parsed here as version 0.

References:
    - https://github.com/multiformats/cid
    - https://github.com/libp2p/specs/blob/master/peer-ids/peer-ids.md#string-representation
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from peer_id.exceptions import CodecError, InvalidCidError, VarintError

from . import multibase
from .multibase import Multibase
from .multihash import Multihash, MultihashCode
from .varint import decode_varint, encode_varint

__all__ = [
    "Cid",
    "Multicodec",
]


class Multicodec(IntEnum):
    """Content codecs relevant to peer identifiers."""

    DAG_PB = 0x70
    """MerkleDAG protobuf. Implied by every CIDv0."""

    LIBP2P_KEY = 0x72
    """libp2p public key. The codec of a CIDv1 peer id."""


@dataclass(frozen=True, slots=True)
class Cid:
    """
    A versioned, codec-tagged multihash.

    Attributes:
        version: 0 or 1.
        codec: Content codec. Always dag-pb for version 0.
        multihash: The wrapped self-describing digest.
    """

    version: int
    """CID version."""

    codec: int
    """Multicodec code of the content."""

    multihash: Multihash
    """Wrapped digest."""

    def __post_init__(self) -> None:
        if self.version not in (0, 1):
            raise InvalidCidError(f"Unsupported CID version: {self.version}")
        if self.version == 0 and self.codec != Multicodec.DAG_PB:
            raise InvalidCidError("CIDv0 only supports the dag-pb codec")

    @classmethod
    def v1(cls, multihash: Multihash, codec: int = Multicodec.LIBP2P_KEY) -> Cid:
        """Build a version 1 CID, libp2p-key by default."""
        return cls(version=1, codec=codec, multihash=multihash)

    def encode(self) -> bytes:
        """Return the binary form."""
        if self.version == 0:
            return self.multihash.encode()
        return encode_varint(self.version) + encode_varint(self.codec) + self.multihash.encode()

    def to_string(self, base: Multibase = Multibase.BASE32) -> str:
        """
        Return the text form.

        Version 0 is always bare base58btc; `base` only applies to version 1.
        """
        if self.version == 0:
            return self.multihash.to_base58()
        return multibase.encode(self.encode(), base)

    def __str__(self) -> str:
        return self.to_string()

    @classmethod
    def decode(cls, data: bytes) -> Cid:
        """
        Decode a binary CID.

        Raises:
            InvalidCidError: If the bytes are not a CID.
        """
        # A 34-byte SHA-256 multihash on its own is a CIDv0.
        if len(data) == 34 and data[0] == MultihashCode.SHA2_256 and data[1] == 32:
            return cls(version=0, codec=Multicodec.DAG_PB, multihash=Multihash.decode(data))

        try:
            version, offset = decode_varint(data, 0)
            codec, consumed = decode_varint(data, offset)
        except VarintError as e:
            raise InvalidCidError(f"Truncated CID header: {e}") from e

        if version != 1:
            raise InvalidCidError(f"Unsupported CID version: {version}")

        try:
            multihash = Multihash.decode(data[offset + consumed :])
        except CodecError as e:
            raise InvalidCidError(f"Invalid CID multihash: {e}") from e

        return cls(version=version, codec=codec, multihash=multihash)

    @classmethod
    def parse(cls, text: str) -> Cid:
        """
        Parse a CID from text.

        Accepts multibase CIDv1 text and the bare base58btc forms ("Qm...",
        "1...").

        Raises:
            InvalidCidError: If the text is not a CID.
        """
        if text.startswith(("Qm", "1")):
            try:
                return cls(version=0, codec=Multicodec.DAG_PB, multihash=Multihash.from_base58(text))
            except CodecError as e:
                raise InvalidCidError(f"Invalid base58 CID: {e}") from e

        try:
            data = multibase.decode(text)
        except CodecError as e:
            raise InvalidCidError(f"Invalid CID text: {e}") from e

        return cls.decode(data)
