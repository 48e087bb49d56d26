"""Exception hierarchy for peer identities and their codecs."""

from __future__ import annotations


class PeerIdError(Exception):
    """
    Base exception for all peer identity errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class CodecError(PeerIdError, ValueError):
    """Base class for errors raised while decoding wire or text formats."""


class VarintError(CodecError):
    """Raised when varint encoding or decoding fails."""


class MultibaseError(CodecError):
    """Raised when base-N text cannot be decoded."""


class MalformedDigestError(CodecError):
    """
    Raised when self-describing digest bytes fail validation.

    Attributes:
        detail: Description of what went wrong.
    """

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Malformed multihash: {detail}")


class InvalidCidError(CodecError):
    """Raised when a content identifier cannot be parsed."""


class InvalidCodecError(InvalidCidError):
    """
    Raised when a CID uses a codec that cannot name a peer.

    Attributes:
        codec: The codec found in the CID.
        version: The CID version.
    """

    def __init__(self, codec: int, version: int) -> None:
        self.codec = codec
        self.version = version
        super().__init__(
            f"Invalid CID codec 0x{codec:x} (v{version}), must be either 'v0 dag-pb' or 'v1 libp2p-key'"
        )


class ProtobufDecodeError(CodecError):
    """
    Raised when protobuf bytes are malformed.

    Attributes:
        message_name: The message being decoded.
        detail: Description of what went wrong.
    """

    def __init__(self, message_name: str, detail: str) -> None:
        self.message_name = message_name
        self.detail = detail
        super().__init__(f"Failed to decode {message_name}: {detail}")


class KeyEncodingError(PeerIdError):
    """Raised when marshaling or unmarshaling a key fails."""


class UnsupportedKeyTypeError(KeyEncodingError):
    """
    Raised for key algorithms outside the supported set.

    Attributes:
        key_type: The offending type tag or key class name.
    """

    def __init__(self, key_type: object) -> None:
        self.key_type = key_type
        super().__init__(f"Unsupported key type: {key_type}")


class MissingKeyError(PeerIdError):
    """Base class for operations that need key material this identity lacks."""


class NoKeyPairError(MissingKeyError):
    """Raised when an operation requires a key pair and none is present."""

    def __init__(self, operation: str = "this operation") -> None:
        super().__init__(f"No underlying key pair available for {operation}")


class NoPublicKeyError(MissingKeyError):
    """Raised when an operation requires a public key and none is present."""

    def __init__(self, operation: str = "this operation") -> None:
        super().__init__(f"A public key is required for {operation}")


class NoPrivateKeyError(MissingKeyError):
    """Raised when an operation requires a private key and none is present."""

    def __init__(self, operation: str = "this operation") -> None:
        super().__init__(f"A private key is required for {operation}")


class InvalidPasswordError(PeerIdError):
    """Raised when an empty password is supplied for encryption."""


class EmptyEnvelopeError(PeerIdError):
    """Raised when a marshaled peer id carries neither a public nor a private key."""

    def __init__(self) -> None:
        super().__init__("No public or private key found in marshaled data")


class IdMismatchError(PeerIdError):
    """Raised when a supplied id does not match the id derived from its key material."""


class InvalidJsonError(PeerIdError):
    """Raised when the JSON form of a peer id cannot be parsed."""
