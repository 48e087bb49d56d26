"""
Key pairs backing a peer identity.

A `KeyPair` is a closed tagged variant over the four libp2p key types. The
`key_type` tag selects the encoding and signature scheme; the key objects
themselves come from `cryptography`.

Signature schemes follow the libp2p peer-id specification:

    - RSA:        RSASSA-PKCS1-v1_5 with SHA-256
    - Ed25519:    pure Ed25519
    - Secp256k1:  ECDSA with SHA-256, DER-encoded signature
    - ECDSA:      ECDSA with SHA-256, DER-encoded signature

References:
    - https://github.com/libp2p/specs/blob/master/peer-ids/peer-ids.md#how-keys-are-encoded-and-messages-signed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Final

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa

from peer_id.exceptions import (
    InvalidPasswordError,
    KeyEncodingError,
    NoPrivateKeyError,
    UnsupportedKeyTypeError,
)

from .proto import KeyType, PrivateKeyProto, PublicKeyProto

__all__ = [
    "KeyPair",
    "PrivateKey",
    "PublicKey",
]

logger = logging.getLogger(__name__)

type PublicKey = rsa.RSAPublicKey | ed25519.Ed25519PublicKey | ec.EllipticCurvePublicKey
"""Public key objects a key pair can hold."""

type PrivateKey = rsa.RSAPrivateKey | ed25519.Ed25519PrivateKey | ec.EllipticCurvePrivateKey
"""Private key objects a key pair can hold."""

DEFAULT_RSA_BITS: Final = 2048
"""RSA modulus size when none is requested."""

RSA_PUBLIC_EXPONENT: Final = 65537
"""Public exponent for generated RSA keys."""

ED25519_SEED_LENGTH: Final = 32
"""Length of an Ed25519 private seed and of its public key."""

SECP256K1_SCALAR_LENGTH: Final = 32
"""Length of a raw secp256k1 private scalar."""

_ECDSA_CURVES: Final[dict[int, type[ec.EllipticCurve]]] = {
    256: ec.SECP256R1,
    384: ec.SECP384R1,
    521: ec.SECP521R1,
}
"""NIST curves available for ECDSA keys, by size in bits."""

_PUBLIC_KEY_CLASSES = (rsa.RSAPublicKey, ed25519.Ed25519PublicKey, ec.EllipticCurvePublicKey)
_PRIVATE_KEY_CLASSES = (rsa.RSAPrivateKey, ed25519.Ed25519PrivateKey, ec.EllipticCurvePrivateKey)

_UNMARSHAL_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)
"""What `cryptography` raises for bytes it cannot load."""


def _key_type_of(key: PublicKey | PrivateKey) -> KeyType:
    """Classify a `cryptography` key object."""
    if isinstance(key, (rsa.RSAPublicKey, rsa.RSAPrivateKey)):
        return KeyType.RSA
    if isinstance(key, (ed25519.Ed25519PublicKey, ed25519.Ed25519PrivateKey)):
        return KeyType.ED25519
    if isinstance(key, (ec.EllipticCurvePublicKey, ec.EllipticCurvePrivateKey)):
        if isinstance(key.curve, ec.SECP256K1):
            return KeyType.SECP256K1
        if isinstance(key.curve, tuple(_ECDSA_CURVES.values())):
            return KeyType.ECDSA
    raise UnsupportedKeyTypeError(type(key).__name__)


def _encode_public(key: PublicKey) -> bytes:
    """Raw public key bytes as carried in `PublicKey.Data`."""
    if isinstance(key, ed25519.Ed25519PublicKey):
        return key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
    if isinstance(key, ec.EllipticCurvePublicKey) and isinstance(key.curve, ec.SECP256K1):
        return key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint,
        )
    return key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def _encode_private(key: PrivateKey) -> bytes:
    """Raw private key bytes as carried in `PrivateKey.Data`."""
    if isinstance(key, ed25519.Ed25519PrivateKey):
        seed = key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return seed + _encode_public(key.public_key())
    if isinstance(key, ec.EllipticCurvePrivateKey) and isinstance(key.curve, ec.SECP256K1):
        return key.private_numbers().private_value.to_bytes(SECP256K1_SCALAR_LENGTH, "big")
    # PKCS#1 for RSA, SEC1 for ECDSA.
    return key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _decode_public(key_type: KeyType, data: bytes) -> PublicKey:
    """Load `PublicKey.Data` for the given type."""
    match key_type:
        case KeyType.ED25519:
            return ed25519.Ed25519PublicKey.from_public_bytes(data)
        case KeyType.SECP256K1:
            return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), data)
        case KeyType.RSA | KeyType.ECDSA:
            key = serialization.load_der_public_key(data)
            if not isinstance(key, (rsa.RSAPublicKey, ec.EllipticCurvePublicKey)):
                raise KeyEncodingError(f"DER data is not a {key_type.name} public key")
            return key
    raise UnsupportedKeyTypeError(key_type)


def _decode_private(key_type: KeyType, data: bytes) -> PrivateKey:
    """Load `PrivateKey.Data` for the given type."""
    match key_type:
        case KeyType.ED25519:
            # Legacy encodings append a second copy of the public key.
            if len(data) == 3 * ED25519_SEED_LENGTH:
                data = data[: 2 * ED25519_SEED_LENGTH]
            if len(data) not in (ED25519_SEED_LENGTH, 2 * ED25519_SEED_LENGTH):
                raise KeyEncodingError(f"Invalid Ed25519 private key length: {len(data)}")
            private_key = ed25519.Ed25519PrivateKey.from_private_bytes(data[:ED25519_SEED_LENGTH])
            embedded_public = data[ED25519_SEED_LENGTH:]
            if embedded_public and embedded_public != _encode_public(private_key.public_key()):
                raise KeyEncodingError("Ed25519 private key does not match its embedded public key")
            return private_key
        case KeyType.SECP256K1:
            if len(data) != SECP256K1_SCALAR_LENGTH:
                raise KeyEncodingError(f"Expected 32 bytes, got {len(data)}")
            return ec.derive_private_key(int.from_bytes(data, "big"), ec.SECP256K1())
        case KeyType.RSA | KeyType.ECDSA:
            key = serialization.load_der_private_key(data, password=None)
            if not isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
                raise KeyEncodingError(f"DER data is not a {key_type.name} private key")
            return key
    raise UnsupportedKeyTypeError(key_type)


@dataclass(frozen=True, slots=True, eq=False)
class KeyPair:
    """
    A public key, optionally with its private key.

    The public key is always present; a private key implies its public key.

    Attributes:
        key_type: Algorithm tag selecting encoding and signature scheme.
        public_key: The public half.
        private_key: The private half, when held.
    """

    key_type: KeyType
    public_key: PublicKey
    private_key: PrivateKey | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if _key_type_of(self.public_key) != self.key_type:
            raise KeyEncodingError(f"Public key is not a {self.key_type.name} key")
        if self.private_key is None:
            return
        if _key_type_of(self.private_key) != self.key_type:
            raise KeyEncodingError(f"Private key is not a {self.key_type.name} key")
        if _encode_public(self.private_key.public_key()) != _encode_public(self.public_key):
            raise KeyEncodingError("Public key does not belong to the private key")

    @classmethod
    def generate(cls, key_type: KeyType = KeyType.ED25519, *, bits: int | None = None) -> KeyPair:
        """
        Generate a fresh key pair.

        Args:
            key_type: Algorithm to generate.
            bits: RSA modulus size (default 2048) or ECDSA curve size
                (256, 384 or 521; default 256). Ignored for Ed25519 and Secp256k1.

        Returns:
            A key pair holding both halves.
        """
        private_key: PrivateKey
        match key_type:
            case KeyType.RSA:
                private_key = rsa.generate_private_key(
                    public_exponent=RSA_PUBLIC_EXPONENT,
                    key_size=bits or DEFAULT_RSA_BITS,
                )
            case KeyType.ED25519:
                private_key = ed25519.Ed25519PrivateKey.generate()
            case KeyType.SECP256K1:
                private_key = ec.generate_private_key(ec.SECP256K1())
            case KeyType.ECDSA:
                curve = _ECDSA_CURVES.get(bits or 256)
                if curve is None:
                    raise ValueError(f"Unsupported ECDSA curve size: {bits}")
                private_key = ec.generate_private_key(curve())
            case _:
                raise UnsupportedKeyTypeError(key_type)

        key_pair = cls.from_private_key(private_key)
        logger.debug("Generated %s key pair (%d bits)", key_type.name, key_pair.size)
        return key_pair

    @classmethod
    def from_private_key(cls, private_key: PrivateKey) -> KeyPair:
        """Wrap a `cryptography` private key, deriving its public half."""
        return cls(
            key_type=_key_type_of(private_key),
            public_key=private_key.public_key(),
            private_key=private_key,
        )

    @classmethod
    def from_public_key(cls, public_key: PublicKey) -> KeyPair:
        """Wrap a `cryptography` public key."""
        return cls(key_type=_key_type_of(public_key), public_key=public_key)

    @classmethod
    def from_marshaled_public_key(cls, data: bytes) -> KeyPair:
        """
        Load a public-only key pair from a marshaled `PublicKey` message.

        Raises:
            KeyEncodingError: If the message or the key bytes are invalid.
        """
        proto = PublicKeyProto.decode(data)
        try:
            public_key = _decode_public(proto.key_type, proto.key_data)
        except _UNMARSHAL_ERRORS as e:
            raise KeyEncodingError(f"Invalid {proto.key_type.name} public key: {e}") from e
        return cls(key_type=proto.key_type, public_key=public_key)

    @classmethod
    def from_marshaled_private_key(cls, data: bytes) -> KeyPair:
        """
        Load a full key pair from a marshaled `PrivateKey` message.

        Raises:
            KeyEncodingError: If the message or the key bytes are invalid.
        """
        proto = PrivateKeyProto.decode(data)
        try:
            private_key = _decode_private(proto.key_type, proto.key_data)
        except _UNMARSHAL_ERRORS as e:
            raise KeyEncodingError(f"Invalid {proto.key_type.name} private key: {e}") from e
        return cls.from_private_key(private_key)

    @classmethod
    def from_pem(cls, pem: str | bytes, password: str | bytes | None = None) -> KeyPair:
        """
        Load a key pair from PEM text.

        Public key PEMs yield a public-only pair. Encrypted PKCS#8 private
        keys are decrypted with `password`; an empty password counts as none.

        Errors raised by `cryptography` while decrypting (wrong or missing
        password) are propagated unchanged.
        """
        data = pem.encode("ascii") if isinstance(pem, str) else pem

        if b"PRIVATE KEY-----" not in data:
            public_key = serialization.load_pem_public_key(data)
            if not isinstance(public_key, _PUBLIC_KEY_CLASSES):
                raise UnsupportedKeyTypeError(type(public_key).__name__)
            return cls.from_public_key(public_key)

        secret = password.encode("utf-8") if isinstance(password, str) else password
        private_key = serialization.load_pem_private_key(data, password=secret or None)
        if not isinstance(private_key, _PRIVATE_KEY_CLASSES):
            raise UnsupportedKeyTypeError(type(private_key).__name__)
        return cls.from_private_key(private_key)

    @property
    def has_private_key(self) -> bool:
        """Whether the private half is held."""
        return self.private_key is not None

    @property
    def size(self) -> int:
        """RSA modulus size or curve size, in bits."""
        if isinstance(self.public_key, rsa.RSAPublicKey):
            return self.public_key.key_size
        if isinstance(self.public_key, ed25519.Ed25519PublicKey):
            return 8 * ED25519_SEED_LENGTH
        return self.public_key.curve.key_size

    def raw_public_key(self) -> bytes:
        """Public key bytes as carried in `PublicKey.Data`."""
        return _encode_public(self.public_key)

    def raw_private_key(self) -> bytes:
        """Private key bytes as carried in `PrivateKey.Data`."""
        return _encode_private(self._require_private("private key marshaling"))

    def marshal_public_key(self) -> bytes:
        """
        Encode the public key as a libp2p `PublicKey` protobuf.

        Raises:
            KeyEncodingError: If the key cannot be serialized.
        """
        try:
            raw = self.raw_public_key()
        except ValueError as e:
            raise KeyEncodingError(f"Failed to marshal {self.key_type.name} public key: {e}") from e
        return PublicKeyProto(key_type=self.key_type, key_data=raw).encode()

    def marshal_private_key(self) -> bytes:
        """
        Encode the private key as a libp2p `PrivateKey` protobuf.

        Raises:
            NoPrivateKeyError: If only the public half is held.
            KeyEncodingError: If the key cannot be serialized.
        """
        try:
            raw = self.raw_private_key()
        except ValueError as e:
            raise KeyEncodingError(f"Failed to marshal {self.key_type.name} private key: {e}") from e
        return PrivateKeyProto(key_type=self.key_type, key_data=raw).encode()

    def sign(self, message: bytes) -> bytes:
        """
        Sign a message with the scheme for this key type.

        Raises:
            NoPrivateKeyError: If only the public half is held.
        """
        private_key = self._require_private("signing")
        if isinstance(private_key, rsa.RSAPrivateKey):
            return private_key.sign(message, padding.PKCS1v15(), hashes.SHA256())
        if isinstance(private_key, ed25519.Ed25519PrivateKey):
            return private_key.sign(message)
        return private_key.sign(message, ec.ECDSA(hashes.SHA256()))

    def verify(self, signature: bytes, message: bytes) -> bool:
        """
        Verify a signature over a message.

        Returns:
            True if the signature is valid, False otherwise.
        """
        public_key = self.public_key
        try:
            if isinstance(public_key, rsa.RSAPublicKey):
                public_key.verify(signature, message, padding.PKCS1v15(), hashes.SHA256())
            elif isinstance(public_key, ed25519.Ed25519PublicKey):
                public_key.verify(signature, message)
            else:
                public_key.verify(signature, message, ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            return False
        return True

    def export_public_pem(self) -> str:
        """Return the public key as a SubjectPublicKeyInfo PEM."""
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")

    def export_private_pem(self, password: str | None = None) -> str:
        """
        Return the private key as a PKCS#8 PEM.

        With a password the key is encrypted (PBES2). Each call draws a
        fresh salt and IV, so repeated exports differ.

        Raises:
            InvalidPasswordError: If `password` is the empty string.
            NoPrivateKeyError: If only the public half is held.
        """
        if password is not None and not password:
            raise InvalidPasswordError("Password shouldn't be empty")

        private_key = self._require_private("private key export")
        encryption: serialization.KeySerializationEncryption = (
            serialization.BestAvailableEncryption(password.encode("utf-8"))
            if password
            else serialization.NoEncryption()
        )
        return private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=encryption,
        ).decode("ascii")

    def _require_private(self, operation: str) -> PrivateKey:
        if self.private_key is None:
            raise NoPrivateKeyError(operation)
        return self.private_key
