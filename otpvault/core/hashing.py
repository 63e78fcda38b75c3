"""
hashing.py — HMAC + RFC 4226 dynamic truncation.

    offset = last_byte & 0x0F
    value  = big-endian uint32 of digest[offset:offset + 4]

The value returned here is the raw 32 bits; masking to 31 bits happens when
the passcode text is derived (see ``generator.passcode_text``).
"""

import hashlib
import hmac
import struct

from .token import Algorithm

_DIGESTS = {
    Algorithm.SHA1: hashlib.sha1,
    Algorithm.SHA256: hashlib.sha256,
    Algorithm.SHA512: hashlib.sha512,
}


def int_to_bytes(i: int) -> bytes:
    """
    Moving factor as 8-byte big-endian, as RFC 4226 requires.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    return struct.pack(">Q", i)


def dynamic_truncate(hmac_digest: bytes) -> int:
    offset = hmac_digest[-1] & 0x0F
    return struct.unpack(">I", hmac_digest[offset:offset + 4])[0]


class Hashing:
    """HMAC truncation for one algorithm: ``Hashing(alg).run(message, key) -> uint32``."""

    def __init__(self, algorithm: Algorithm) -> None:
        self.algorithm = algorithm
        self._digest = _DIGESTS[algorithm]

    def run(self, message: bytes, key: bytes) -> int:
        digest = hmac.new(key, message, self._digest).digest()
        return dynamic_truncate(digest)
