"""
JSON persisted form of a peer id.

    {"id": "<base58 multihash>", "pubKey": "<base64>", "privKey": "<base64>"}

`pubKey` and `privKey` hold marshaled key messages in standard base64. They
are omitted when absent. Both padded and unpadded base64 are accepted.
"""

from __future__ import annotations

import base64
import binascii

from pydantic import ValidationError

from peer_id.base import StrictBaseModel
from peer_id.exceptions import InvalidJsonError

__all__ = [
    "PeerIdJson",
    "decode_base64",
    "encode_base64",
]


class PeerIdJson(StrictBaseModel):
    """The `{id, pubKey, privKey}` document."""

    id: str
    """Base58btc multihash."""

    pub_key: str | None = None
    """Base64 marshaled public key."""

    priv_key: str | None = None
    """Base64 marshaled private key."""

    @classmethod
    def parse(cls, text: str | bytes) -> PeerIdJson:
        """
        Parse a JSON document.

        Raises:
            InvalidJsonError: If the text is not a valid peer id document.
        """
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise InvalidJsonError(f"Invalid peer id JSON: {e}") from e

    def dump(self) -> str:
        """Serialize with camelCase keys, leaving out absent keys."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


def encode_base64(data: bytes) -> str:
    """Standard padded base64."""
    return base64.b64encode(data).decode("ascii")


def decode_base64(text: str, field_name: str) -> bytes:
    """
    Decode standard base64, padded or not.

    Raises:
        InvalidJsonError: If the text is not base64.
    """
    try:
        return base64.b64decode(text + "=" * (-len(text) % 4), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidJsonError(f"Invalid base64 in '{field_name}': {e}") from e
