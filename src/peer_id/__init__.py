"""
libp2p peer identities.

A peer id is a multihash derived from a public key. This package builds
ids from keys and from every persisted form (raw bytes, CID text, marshaled
envelopes, JSON, PEM), and compares embedded and hashed ids as equal.
"""

from .codec import Cid, Multibase, Multicodec, Multihash, MultihashCode
from .config import DEFAULT_CONFIG, IdentityConfig
from .crypto import KeyPair, KeyType
from .exceptions import (
    CodecError,
    EmptyEnvelopeError,
    IdMismatchError,
    InvalidCidError,
    InvalidCodecError,
    InvalidJsonError,
    InvalidPasswordError,
    KeyEncodingError,
    MalformedDigestError,
    MissingKeyError,
    NoKeyPairError,
    NoPrivateKeyError,
    NoPublicKeyError,
    PeerIdError,
    UnsupportedKeyTypeError,
)
from .peer_id import ExportType, PeerId, PeerType, derive_multihash

__all__ = [
    "DEFAULT_CONFIG",
    "Cid",
    "CodecError",
    "EmptyEnvelopeError",
    "ExportType",
    "IdMismatchError",
    "IdentityConfig",
    "InvalidCidError",
    "InvalidCodecError",
    "InvalidJsonError",
    "InvalidPasswordError",
    "KeyEncodingError",
    "KeyPair",
    "KeyType",
    "MalformedDigestError",
    "MissingKeyError",
    "Multibase",
    "Multicodec",
    "Multihash",
    "MultihashCode",
    "NoKeyPairError",
    "NoPrivateKeyError",
    "NoPublicKeyError",
    "PeerId",
    "PeerIdError",
    "PeerType",
    "UnsupportedKeyTypeError",
    "derive_multihash",
]
