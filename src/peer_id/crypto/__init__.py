"""Key capability: libp2p-crypto key messages and key pairs."""

from .proto import KeyType, PrivateKeyProto, PublicKeyProto
from .keys import KeyPair, PrivateKey, PublicKey

__all__ = [
    "KeyPair",
    "KeyType",
    "PrivateKey",
    "PrivateKeyProto",
    "PublicKey",
    "PublicKeyProto",
]
