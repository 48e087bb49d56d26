"""
Peer identity: a self-describing digest bound to an optional key pair.

Deriving the id from a public key::

    marshaled = PublicKey{Type, Data}.encode()

    if key type is embeddable and len(marshaled) <= 42:
        id = multihash(identity, marshaled)      # "12D3KooW..." for Ed25519
    else:
        id = multihash(sha2-256, sha256(marshaled))   # "Qm..."

The embedded and hashed forms of one key both name the same peer. Equality
normalizes both sides to the hashed ("traditional") form before comparing.

Text forms:

    - base58btc multihash ("Qm...", "12D3KooW..."), the legacy form
    - CIDv1 with the libp2p-key codec in base32 ("bafz..."), the canonical form

References:
    - https://github.com/libp2p/specs/blob/master/peer-ids/peer-ids.md
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Final

from peer_id.codec import multibase
from peer_id.codec.cid import Cid, Multicodec
from peer_id.codec.multibase import Multibase
from peer_id.codec.multihash import Multihash
from peer_id.config import DEFAULT_CONFIG, IdentityConfig
from peer_id.crypto.keys import KeyPair
from peer_id.crypto.proto import KeyType
from peer_id.envelope import PeerIdEnvelope
from peer_id.exceptions import (
    EmptyEnvelopeError,
    IdMismatchError,
    InvalidCodecError,
    KeyEncodingError,
    NoKeyPairError,
    NoPrivateKeyError,
    NoPublicKeyError,
)
from peer_id.json_form import PeerIdJson, decode_base64, encode_base64

__all__ = [
    "ExportType",
    "PeerId",
    "PeerType",
    "derive_multihash",
]

logger = logging.getLogger(__name__)

_LEGACY_PREFIXES: Final[tuple[str, ...]] = ("Qm", "12D3KooW")
"""Leading characters shared by every hashed and every embedded Ed25519 id."""

_DESCRIPTION_LENGTH: Final = 6
"""Characters of the id kept in human-readable descriptions."""

_PEER_CODECS: Final = frozenset({Multicodec.LIBP2P_KEY, Multicodec.DAG_PB})
"""CID codecs that may wrap a peer id."""


class PeerType(Enum):
    """How much key material an identity carries."""

    ID_ONLY = auto()
    """Only the id; no keys."""

    PUBLIC = auto()
    """The id and its public key."""

    PRIVATE = auto()
    """The id and its full key pair."""


class ExportType(Enum):
    """PEM flavours produced by `PeerId.export_key_pair`."""

    PUBLIC_PEM = auto()
    PRIVATE_PEM = auto()
    ENCRYPTED_PRIVATE_PEM = auto()


def derive_multihash(key_pair: KeyPair, config: IdentityConfig | None = None) -> Multihash:
    """
    Compute the id multihash for a key pair.

    Small keys of an embeddable type are carried verbatim under the identity
    code. Every other key is hashed with SHA-256.

    Args:
        key_pair: Key pair whose public key names the peer.
        config: Embedding policy. Defaults to `DEFAULT_CONFIG`.

    Returns:
        The id multihash.

    Raises:
        KeyEncodingError: If the public key cannot be marshaled.
    """
    config = config or DEFAULT_CONFIG
    marshaled = key_pair.marshal_public_key()
    if (
        key_pair.key_type in config.embeddable_key_types
        and len(marshaled) <= config.inline_key_max_length
    ):
        return Multihash.identity(marshaled)
    return Multihash.sha256(marshaled)


def _decode_text(data: bytes | str, base: Multibase | None) -> bytes:
    if isinstance(data, str):
        return multibase.decode(data, base)
    return data


def _resolve_config(config: IdentityConfig | None, validate_id: bool | None) -> IdentityConfig:
    config = config or DEFAULT_CONFIG
    if validate_id is None or validate_id == config.validate_id:
        return config
    return config.with_updates(validate_id=validate_id)


@dataclass(frozen=True, slots=True, eq=False)
class PeerId:
    """
    A peer identity.

    Immutable once built. Every derived form is computed from `multihash`
    on demand.

    Attributes:
        multihash: The id as a self-describing digest.
        key_pair: The key pair the id was derived from, if known.
        config: Policy used to validate the pairing.
    """

    multihash: Multihash
    key_pair: KeyPair | None = None
    config: IdentityConfig = field(default=DEFAULT_CONFIG, repr=False, kw_only=True)

    def __post_init__(self) -> None:
        if self.key_pair is None:
            return
        if self.multihash.is_identity and self.key_pair.key_type not in self.config.embeddable_key_types:
            raise IdMismatchError(
                f"{self.key_pair.key_type.name} keys cannot be embedded in a peer id"
            )
        derived = derive_multihash(self.key_pair, self.config)
        if derived.traditional() != self.multihash.traditional():
            raise IdMismatchError(
                f"Id {self.multihash.to_base58()} does not match key-derived id {derived.to_base58()}"
            )

    # Constructors

    @classmethod
    def generate(
        cls,
        key_type: KeyType | None = None,
        *,
        bits: int | None = None,
        config: IdentityConfig | None = None,
    ) -> PeerId:
        """
        Generate a fresh key pair and derive its identity.

        Args:
            key_type: Algorithm to generate. Defaults to `config.default_key_type`.
            bits: RSA modulus size or ECDSA curve size.
            config: Policy. Defaults to `DEFAULT_CONFIG`.
        """
        config = config or DEFAULT_CONFIG
        if key_type is None:
            key_type = config.default_key_type
        if bits is None and key_type == KeyType.RSA:
            bits = config.rsa_bits
        return cls.from_key_pair(KeyPair.generate(key_type, bits=bits), config=config)

    @classmethod
    def from_key_pair(cls, key_pair: KeyPair, *, config: IdentityConfig | None = None) -> PeerId:
        """Derive the identity of an existing key pair."""
        config = config or DEFAULT_CONFIG
        return cls(derive_multihash(key_pair, config), key_pair, config=config)

    @classmethod
    def from_hex(cls, text: str) -> PeerId:
        """
        Build an id-only identity from a hex multihash.

        Raises:
            MalformedDigestError: If the text is not a well-formed multihash.
        """
        return cls(Multihash.from_hex(text))

    @classmethod
    def from_bytes(cls, data: bytes, *, config: IdentityConfig | None = None) -> PeerId:
        """
        Build an identity from raw multihash bytes.

        An identity multihash carrying an embeddable public key yields a
        public-only identity. Anything else yields an id-only identity,
        including identity multihashes whose payload is not a usable key.

        Raises:
            MalformedDigestError: If the bytes are not a well-formed multihash.
        """
        return cls._from_multihash(Multihash.decode(data), config or DEFAULT_CONFIG)

    @classmethod
    def from_base58(cls, text: str, *, config: IdentityConfig | None = None) -> PeerId:
        """Build an identity from a legacy base58btc id ("Qm...", "12D3KooW...")."""
        return cls._from_multihash(Multihash.from_base58(text), config or DEFAULT_CONFIG)

    @classmethod
    def from_cid(cls, cid: Cid | str, *, config: IdentityConfig | None = None) -> PeerId:
        """
        Build an identity from a CID.

        Raises:
            InvalidCidError: If the text is not a CID.
            InvalidCodecError: If the CID codec cannot wrap a peer id.
        """
        if isinstance(cid, str):
            cid = Cid.parse(cid)
        if cid.codec not in _PEER_CODECS:
            raise InvalidCodecError(cid.codec, cid.version)
        return cls._from_multihash(cid.multihash, config or DEFAULT_CONFIG)

    @classmethod
    def _from_multihash(cls, multihash: Multihash, config: IdentityConfig) -> PeerId:
        if not multihash.is_identity:
            return cls(multihash, config=config)

        # Best effort: a payload that is not an embeddable key leaves the id opaque.
        try:
            key_pair = KeyPair.from_marshaled_public_key(multihash.digest)
        except KeyEncodingError as e:
            logger.debug("Identity multihash does not embed a public key: %s", e)
            return cls(multihash, config=config)

        if key_pair.key_type not in config.embeddable_key_types:
            logger.debug("Ignoring embedded %s key: type is not embeddable", key_pair.key_type.name)
            return cls(multihash, config=config)
        if derive_multihash(key_pair, config) != multihash:
            logger.debug("Ignoring embedded key: non-canonical encoding")
            return cls(multihash, config=config)

        return cls(multihash, key_pair, config=config)

    @classmethod
    def from_marshaled(
        cls,
        data: bytes | str,
        base: Multibase | None = None,
        *,
        validate_id: bool | None = None,
        config: IdentityConfig | None = None,
    ) -> PeerId:
        """
        Rebuild an identity from a marshaled envelope.

        The private key wins when present. Text input is multibase-decoded
        first, with `base` for unprefixed text.

        Args:
            data: Envelope bytes or text.
            base: Encoding of unprefixed text.
            validate_id: Check the envelope id against the key-derived id.
                Defaults to `config.validate_id`.
            config: Policy. Defaults to `DEFAULT_CONFIG`.

        Raises:
            ProtobufDecodeError: If the envelope is malformed.
            EmptyEnvelopeError: If the envelope carries no key.
            KeyEncodingError: If a key cannot be unmarshaled.
            MalformedDigestError: If the id is checked and is not a multihash.
            IdMismatchError: If the id or public key disagrees with the keys.
        """
        config = _resolve_config(config, validate_id)
        envelope = PeerIdEnvelope.decode(_decode_text(data, base))
        return cls._from_key_material(
            lambda: Multihash.decode(envelope.id),
            envelope.pub_key,
            envelope.priv_key,
            config,
        )

    @classmethod
    def from_marshaled_public_key(
        cls,
        data: bytes | str,
        base: Multibase | None = None,
        *,
        config: IdentityConfig | None = None,
    ) -> PeerId:
        """Derive a public-only identity from a marshaled `PublicKey` message."""
        key_pair = KeyPair.from_marshaled_public_key(_decode_text(data, base))
        return cls.from_key_pair(key_pair, config=config)

    @classmethod
    def from_marshaled_private_key(
        cls,
        data: bytes | str,
        base: Multibase | None = None,
        *,
        config: IdentityConfig | None = None,
    ) -> PeerId:
        """Derive a full identity from a marshaled `PrivateKey` message."""
        key_pair = KeyPair.from_marshaled_private_key(_decode_text(data, base))
        return cls.from_key_pair(key_pair, config=config)

    @classmethod
    def from_pem(
        cls,
        pem: str | bytes,
        password: str | None = None,
        *,
        config: IdentityConfig | None = None,
    ) -> PeerId:
        """
        Derive an identity from a PEM key.

        Decryption errors from `cryptography` are not rewrapped.
        """
        return cls.from_key_pair(KeyPair.from_pem(pem, password), config=config)

    @classmethod
    def from_json(
        cls,
        text: str | bytes,
        *,
        validate_id: bool | None = None,
        config: IdentityConfig | None = None,
    ) -> PeerId:
        """
        Rebuild an identity from its JSON form.

        Without keys the result is built from the id alone.

        Raises:
            InvalidJsonError: If the document or its base64 fields are invalid.
            MalformedDigestError: If `id` is not a base58 multihash.
            IdMismatchError: If the id or public key disagrees with the keys.
        """
        config = _resolve_config(config, validate_id)
        document = PeerIdJson.parse(text)

        if document.pub_key is None and document.priv_key is None:
            return cls._from_multihash(Multihash.from_base58(document.id), config)

        return cls._from_key_material(
            lambda: Multihash.from_base58(document.id),
            decode_base64(document.pub_key, "pubKey") if document.pub_key is not None else None,
            decode_base64(document.priv_key, "privKey") if document.priv_key is not None else None,
            config,
        )

    @classmethod
    def _from_key_material(
        cls,
        supplied_id: Callable[[], Multihash],
        pub_key: bytes | None,
        priv_key: bytes | None,
        config: IdentityConfig,
    ) -> PeerId:
        """
        Build from key material.

        `supplied_id` is only decoded when `config.validate_id` is set, so an
        unchecked id may be empty or garbage.
        """
        if priv_key is not None:
            key_pair = KeyPair.from_marshaled_private_key(priv_key)
            if pub_key is not None:
                claimed = KeyPair.from_marshaled_public_key(pub_key)
                if claimed.raw_public_key() != key_pair.raw_public_key():
                    raise IdMismatchError("Public key does not belong to the private key")
        elif pub_key is not None:
            key_pair = KeyPair.from_marshaled_public_key(pub_key)
        else:
            raise EmptyEnvelopeError()

        peer = cls.from_key_pair(key_pair, config=config)
        if not config.validate_id:
            return peer

        supplied = supplied_id()
        if supplied.traditional() != peer.multihash.traditional():
            raise IdMismatchError(
                f"Supplied id {supplied.to_base58()} does not match key-derived id {peer.to_base58()}"
            )
        return peer

    # Accessors

    @property
    def id(self) -> bytes:
        """The multihash bytes."""
        return self.multihash.encode()

    @property
    def peer_type(self) -> PeerType:
        if self.key_pair is None:
            return PeerType.ID_ONLY
        if self.key_pair.has_private_key:
            return PeerType.PRIVATE
        return PeerType.PUBLIC

    @property
    def key_type(self) -> KeyType | None:
        return self.key_pair.key_type if self.key_pair is not None else None

    def to_bytes(self) -> bytes:
        return self.id

    def to_base58(self) -> str:
        """Legacy base58btc form."""
        return self.multihash.to_base58()

    def to_hex(self) -> str:
        return self.multihash.to_hex()

    def to_traditional_base58(self) -> str:
        """Base58 of the hashed form, even for an embedded key."""
        return self.multihash.traditional().to_base58()

    def to_cid(self) -> Cid:
        """CIDv1 with the libp2p-key codec."""
        return Cid.v1(self.multihash, Multicodec.LIBP2P_KEY)

    def to_cid_string(self, base: Multibase = Multibase.BASE32) -> str:
        """CIDv1 text, base32 unless another base is given."""
        return self.to_cid().to_string(base)

    @property
    def description(self) -> str:
        """Short form for logs, e.g. `<peer.ID nTkjDT>`."""
        return f"<peer.ID {self.short_description}>"

    @property
    def short_description(self) -> str:
        """Six characters of the base58 id, past any shared prefix."""
        text = self.to_base58()
        for prefix in _LEGACY_PREFIXES:
            if text.startswith(prefix):
                text = text[len(prefix) :]
                break
        return text[:_DESCRIPTION_LENGTH]

    # Exporters

    def marshal_public_key(self) -> bytes:
        """
        Raises:
            NoPublicKeyError: If the identity carries no key.
        """
        if self.key_pair is None:
            raise NoPublicKeyError("public key marshaling")
        return self.key_pair.marshal_public_key()

    def marshal_private_key(self) -> bytes:
        """
        Raises:
            NoPrivateKeyError: If the identity carries no private key.
        """
        if self.key_pair is None or not self.key_pair.has_private_key:
            raise NoPrivateKeyError("private key marshaling")
        return self.key_pair.marshal_private_key()

    def _envelope(self, include_private_key: bool) -> PeerIdEnvelope:
        if self.key_pair is None:
            return PeerIdEnvelope(id=self.id)
        priv_key = None
        if include_private_key and self.key_pair.has_private_key:
            priv_key = self.key_pair.marshal_private_key()
        return PeerIdEnvelope(
            id=self.id,
            pub_key=self.key_pair.marshal_public_key(),
            priv_key=priv_key,
        )

    def marshal(self, include_private_key: bool = False) -> bytes:
        """
        Encode as a `PeerIdProto` envelope.

        The private key is only written when asked for and held. An id-only
        identity marshals to an envelope that cannot be decoded back.
        """
        return self._envelope(include_private_key).encode()

    def to_json(self, include_private_key: bool = False) -> str:
        """Encode as the `{id, pubKey, privKey}` JSON document."""
        envelope = self._envelope(include_private_key)
        return PeerIdJson(
            id=self.to_base58(),
            pub_key=encode_base64(envelope.pub_key) if envelope.pub_key is not None else None,
            priv_key=encode_base64(envelope.priv_key) if envelope.priv_key is not None else None,
        ).dump()

    def export_key_pair(self, export_type: ExportType, password: str | None = None) -> str:
        """
        Export the key pair as PEM.

        Raises:
            NoKeyPairError: If the identity carries no key.
            InvalidPasswordError: If encrypting without a non-empty password.
            NoPrivateKeyError: If a private export is requested without one.
        """
        if self.key_pair is None:
            raise NoKeyPairError("PEM export")

        match export_type:
            case ExportType.PUBLIC_PEM:
                return self.key_pair.export_public_pem()
            case ExportType.PRIVATE_PEM:
                return self.key_pair.export_private_pem()
            case ExportType.ENCRYPTED_PRIVATE_PEM:
                return self.key_pair.export_private_pem(password or "")

    # Signatures

    def sign(self, message: bytes) -> bytes:
        """
        Raises:
            NoPrivateKeyError: If the identity carries no private key.
        """
        if self.key_pair is None or not self.key_pair.has_private_key:
            raise NoPrivateKeyError("signing")
        return self.key_pair.sign(message)

    def verify(self, signature: bytes, message: bytes) -> bool:
        """
        Check a signature against this peer's public key.

        Returns False for an invalid signature.

        Raises:
            NoPublicKeyError: If the identity carries no key.
        """
        if self.key_pair is None:
            raise NoPublicKeyError("signature verification")
        return self.key_pair.verify(signature, message)

    # Comparison

    def is_equivalent(self, other: PeerId) -> bool:
        """Same id bytes, or same id once embedded keys are hashed."""
        return self.id == other.id or self.multihash.traditional() == other.multihash.traditional()

    def __eq__(self, other: object) -> bool:
        # Raw bytes compare against the literal id only, so an embedded id equal
        # to its bytes does not share their hash.
        if isinstance(other, (bytes, bytearray, memoryview)):
            return self.id == bytes(other)
        if isinstance(other, PeerId):
            return self.is_equivalent(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.multihash.traditional().encode())

    def __str__(self) -> str:
        return self.to_base58()

    def __repr__(self) -> str:
        return f"PeerId({self.to_base58()!r}, type={self.peer_type.name})"
