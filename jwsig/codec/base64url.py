"""Unpadded base64url encoding (RFC 7515 section 2)."""

import base64
import binascii
import re

from jwsig.core.exceptions import DecodeError

_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


def encode(data: bytes) -> str:
    """Encode bytes as base64url without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode(text: str | bytes) -> bytes:
    """Decode unpadded base64url text.

    Raises
    ------
    DecodeError
        If the input contains characters outside the URL-safe alphabet
        (padding included), has a length no encoding can produce, or sets
        the unused low bits of its last character.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("ascii")
        except UnicodeDecodeError as e:
            raise DecodeError("Invalid base64url: non-ASCII input") from e
    if not isinstance(text, str):
        raise DecodeError(
            f"Invalid base64url: expected text, got {type(text).__name__}"
        )
    if not _ALPHABET.fullmatch(text):
        raise DecodeError("Invalid base64url: illegal character")
    if len(text) % 4 == 1:
        raise DecodeError("Invalid base64url: impossible length")
    padded = text + "=" * (-len(text) % 4)
    try:
        data = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64url: {e}") from e
    # Only one spelling of a byte string is accepted.
    if encode(data) != text:
        raise DecodeError("Invalid base64url: non-zero trailing bits")
    return data
