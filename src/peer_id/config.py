"""
Identity policy configuration.

Defaults can be overridden per process through the environment:

    - PEER_ID_DEFAULT_KEY_TYPE: rsa, ed25519, secp256k1 or ecdsa
    - PEER_ID_RSA_BITS: RSA modulus size for generated keys

Invalid values fail at import.
"""

from __future__ import annotations

import os
from typing import Final

from peer_id.base import StrictBaseModel
from peer_id.crypto.keys import DEFAULT_RSA_BITS
from peer_id.crypto.proto import KeyType

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_RSA_BITS",
    "INLINE_KEY_MAX_LENGTH",
    "IdentityConfig",
]

MIN_RSA_BITS: Final = 1024
"""Smallest RSA modulus accepted from the environment."""

INLINE_KEY_MAX_LENGTH: Final = 42
"""Largest marshaled public key that may be embedded in an identity multihash."""

_SUPPORTED_KEY_TYPES: Final[dict[str, KeyType]] = {
    key_type.name.lower(): key_type for key_type in KeyType
}


class IdentityConfig(StrictBaseModel):
    """Policy knobs for generating, deriving and importing peer identities."""

    default_key_type: KeyType = KeyType.RSA
    """Key type used when generating an identity without an explicit type."""

    rsa_bits: int = DEFAULT_RSA_BITS
    """RSA modulus size for generated keys."""

    inline_key_max_length: int = INLINE_KEY_MAX_LENGTH
    """Marshaled public keys up to this length may be embedded."""

    embeddable_key_types: frozenset[KeyType] = frozenset({KeyType.ED25519})
    """Key types eligible for embedding. Everything else is always hashed."""

    validate_id: bool = True
    """Cross-check supplied ids against key-derived ids on import."""


def _env_key_type() -> KeyType:
    raw = os.environ.get("PEER_ID_DEFAULT_KEY_TYPE", "rsa").lower()
    if raw not in _SUPPORTED_KEY_TYPES:
        raise ValueError(
            f"Invalid PEER_ID_DEFAULT_KEY_TYPE environment variable: '{raw}'. "
            f"Supported values: {sorted(_SUPPORTED_KEY_TYPES)}"
        )
    return _SUPPORTED_KEY_TYPES[raw]


def _env_rsa_bits() -> int:
    raw = os.environ.get("PEER_ID_RSA_BITS", str(DEFAULT_RSA_BITS))
    if not raw.isdigit() or int(raw) < MIN_RSA_BITS:
        raise ValueError(
            f"Invalid PEER_ID_RSA_BITS environment variable: '{raw}'. "
            f"Expected an integer of at least {MIN_RSA_BITS}"
        )
    return int(raw)


DEFAULT_CONFIG: Final = IdentityConfig(
    default_key_type=_env_key_type(),
    rsa_bits=_env_rsa_bits(),
)
"""Process-wide defaults, read from the environment at import."""
