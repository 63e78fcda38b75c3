"""
base32.py — RFC 4648 base32 for secret keys.

The otpauth format drops the trailing ``=`` padding, so decoding restores it
and encoding strips it.
"""

import base64
import binascii

from .errors import INVALID_SECRET_VALUE, DecodeError
from .validated import Validated


def base32_decode(text: str) -> Validated[bytes]:
    """
    Decode a base32 secret into raw key bytes.

    - Case-insensitive; spaces and dashes (as printed by many issuers) are ignored.
    - Missing padding is added back before decoding.

    >>> base32_decode("JBSWY3DPEHPK3PXP").value
    b'Hello!\\xde\\xad\\xbe\\xef'
    """
    secret = "".join(text.split()).replace("-", "").rstrip("=").upper()
    missing_padding = len(secret) % 8
    if missing_padding != 0:
        secret += "=" * (8 - missing_padding)
    try:
        return Validated.valid(base64.b32decode(secret, casefold=True))
    except (binascii.Error, ValueError):
        return Validated.invalid(DecodeError(INVALID_SECRET_VALUE, text))


def base32_encode(key: bytes) -> str:
    """Encode key bytes as unpadded upper-case base32."""
    return base64.b32encode(key).decode("ascii").rstrip("=")
