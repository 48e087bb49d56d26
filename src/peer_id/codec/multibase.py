"""
Base-N text encodings and the multibase prefix table.

Multibase prepends a single character naming the encoding, so text can be
decoded without external context::

    'z' + base58btc(data)     -> "zQm..."
    'b' + base32(data)        -> "bafzbei..."
    'f' + base16(data)        -> "f1220..."

Text produced without the prefix (legacy peer ids, JSON fields) must be
decoded with an explicit base.

References:
    - https://github.com/multiformats/multibase
    - https://datatracker.ietf.org/doc/html/rfc4648
"""

from __future__ import annotations

import base64
import binascii
from enum import Enum
from typing import Final

from peer_id.exceptions import MultibaseError

__all__ = [
    "Base58",
    "Multibase",
    "decode",
    "encode",
]


class Base58:
    """
    Base58 encoding/decoding (Bitcoin-style alphabet).

    Base58 excludes visually ambiguous characters (0, O, I, l), which is why
    legacy peer ids ("Qm...", "12D3KooW...") use it.
    """

    ALPHABET: Final[str] = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
    """Base58 alphabet (Bitcoin style, excludes 0, O, I, l)."""

    @classmethod
    def encode(cls, data: bytes) -> str:
        """
        Encode bytes as Base58 string.

        Leading zero bytes become leading '1' characters.

        Args:
            data: Bytes to encode.

        Returns:
            Base58-encoded string.
        """
        leading_zeros = len(data) - len(data.lstrip(b"\x00"))

        num = int.from_bytes(data, "big")
        result: list[str] = []

        while num > 0:
            num, remainder = divmod(num, 58)
            result.append(cls.ALPHABET[remainder])

        result.extend([cls.ALPHABET[0]] * leading_zeros)
        return "".join(reversed(result))

    @classmethod
    def decode(cls, s: str) -> bytes:
        """
        Decode Base58 string to bytes.

        Leading '1' characters become leading zero bytes.

        Args:
            s: Base58-encoded string.

        Returns:
            Decoded bytes.

        Raises:
            MultibaseError: If string contains invalid characters.
        """
        leading_ones = len(s) - len(s.lstrip(cls.ALPHABET[0]))

        num = 0
        for char in s:
            index = cls.ALPHABET.find(char)
            if index < 0:
                raise MultibaseError(f"Invalid Base58 character: {char!r}")
            num = num * 58 + index

        if num == 0:
            result = b""
        else:
            result = num.to_bytes((num.bit_length() + 7) // 8, "big")

        return b"\x00" * leading_ones + result


class Multibase(Enum):
    """
    Supported multibase encodings, valued by their prefix character.

    Only the encodings a peer id can realistically travel in are listed.
    """

    BASE16 = "f"
    """Lowercase hexadecimal."""

    BASE16_UPPER = "F"
    """Uppercase hexadecimal."""

    BASE32 = "b"
    """RFC 4648 base32, lowercase, no padding. Default for CIDv1."""

    BASE32_UPPER = "B"
    """RFC 4648 base32, uppercase, no padding."""

    BASE32_PAD = "c"
    """RFC 4648 base32, lowercase, with padding."""

    BASE32_PAD_UPPER = "C"
    """RFC 4648 base32, uppercase, with padding."""

    BASE58_BTC = "z"
    """Bitcoin base58."""

    BASE64 = "m"
    """RFC 4648 base64, no padding."""

    BASE64_PAD = "M"
    """RFC 4648 base64, with padding."""

    BASE64_URL = "u"
    """RFC 4648 URL-safe base64, no padding."""

    BASE64_URL_PAD = "U"
    """RFC 4648 URL-safe base64, with padding."""

    @property
    def prefix(self) -> str:
        """The multibase prefix character."""
        return self.value

    @classmethod
    def from_prefix(cls, prefix: str) -> Multibase:
        """
        Look up an encoding by its prefix character.

        Raises:
            MultibaseError: If the prefix is unknown.
        """
        try:
            return cls(prefix)
        except ValueError:
            raise MultibaseError(f"Unknown multibase prefix: {prefix!r}") from None


def _pad(text: str, block: int) -> str:
    """Restore stripped '=' padding to a multiple of `block` characters."""
    return text + "=" * (-len(text) % block)


def encode(data: bytes, base: Multibase, *, prefix: bool = True) -> str:
    """
    Encode bytes in the given base.

    Args:
        data: Bytes to encode.
        base: Target encoding.
        prefix: Whether to prepend the multibase prefix character.

    Returns:
        Encoded text.
    """
    match base:
        case Multibase.BASE16:
            body = data.hex()
        case Multibase.BASE16_UPPER:
            body = data.hex().upper()
        case Multibase.BASE32 | Multibase.BASE32_UPPER | Multibase.BASE32_PAD | Multibase.BASE32_PAD_UPPER:
            body = base64.b32encode(data).decode("ascii")
            if base in (Multibase.BASE32, Multibase.BASE32_UPPER):
                body = body.rstrip("=")
            if base in (Multibase.BASE32, Multibase.BASE32_PAD):
                body = body.lower()
        case Multibase.BASE58_BTC:
            body = Base58.encode(data)
        case Multibase.BASE64 | Multibase.BASE64_PAD:
            body = base64.b64encode(data).decode("ascii")
            if base is Multibase.BASE64:
                body = body.rstrip("=")
        case Multibase.BASE64_URL | Multibase.BASE64_URL_PAD:
            body = base64.urlsafe_b64encode(data).decode("ascii")
            if base is Multibase.BASE64_URL:
                body = body.rstrip("=")

    return base.prefix + body if prefix else body


def decode(text: str, base: Multibase | None = None) -> bytes:
    """
    Decode base-N text.

    With no explicit base, the first character is read as a multibase prefix.
    With an explicit base, the whole text is decoded in that base and no
    prefix is expected.

    Padding is optional on input for every base64 and base32 variant.

    Args:
        text: Encoded text.
        base: Encoding override for text without a multibase prefix.

    Returns:
        Decoded bytes.

    Raises:
        MultibaseError: If the prefix is unknown or the text is invalid.
    """
    if base is None:
        if not text:
            raise MultibaseError("Empty multibase string")
        base = Multibase.from_prefix(text[0])
        text = text[1:]

    try:
        match base:
            case Multibase.BASE16 | Multibase.BASE16_UPPER:
                return bytes.fromhex(text)
            case Multibase.BASE32 | Multibase.BASE32_UPPER | Multibase.BASE32_PAD | Multibase.BASE32_PAD_UPPER:
                return base64.b32decode(_pad(text.upper(), 8))
            case Multibase.BASE58_BTC:
                return Base58.decode(text)
            case Multibase.BASE64 | Multibase.BASE64_PAD:
                return base64.b64decode(_pad(text, 4), validate=True)
            case Multibase.BASE64_URL | Multibase.BASE64_URL_PAD:
                return base64.b64decode(_pad(text, 4), altchars=b"-_", validate=True)
    except MultibaseError:
        raise
    except (binascii.Error, ValueError) as e:
        raise MultibaseError(f"Invalid {base.name.lower()} text: {e}") from e

    raise MultibaseError(f"Unsupported multibase encoding: {base}")
