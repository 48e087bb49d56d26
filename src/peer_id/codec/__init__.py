"""Self-describing codecs: varint, multibase, multihash, CID and protobuf fields."""

from .cid import Cid, Multicodec
from .multibase import Base58, Multibase
from .multihash import Multihash, MultihashCode
from .varint import decode_varint, encode_varint

__all__ = [
    "Base58",
    "Cid",
    "Multibase",
    "Multicodec",
    "Multihash",
    "MultihashCode",
    "decode_varint",
    "encode_varint",
]
