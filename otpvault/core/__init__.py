"""
otpvault.core
=============

Passcode generation (HOTP/TOTP, RFC 4226 & RFC 6238), the otpauth:// URI
codec, and the in-memory token collection.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP (HMAC-based One-Time Password):
  code = (Truncate(HMAC(key, counter)) & 0x7FFFFFFF) mod 10^digits
  → the counter advances by one on every generation.

- TOTP (Time-based One-Time Password):
  HOTP with counter = floor(timestamp / period)
  → default period 30 seconds; nothing is consumed.

- Dynamic Truncation:
  4 bytes read big-endian at offset (last byte & 0x0F) of the HMAC digest.

──────────────────────────────────────────────
Results
──────────────────────────────────────────────
Fallible operations return ``Validated`` values instead of raising:
``flat_map`` for dependent steps (first error wins), ``zip`` for independent
ones (errors accumulate).

──────────────────────────────────────────────
Quick example
──────────────────────────────────────────────
>>> from otpvault.core import decode_uri, TokenCollection, OTP
>>> import uuid
>>> token = decode_uri("otpauth://totp/Example:alice@google.com?secret=JBSWY3DPEHPK3PXP").value
>>> collection = TokenCollection(clock=lambda: 0)
>>> collection.load_or_add([OTP(id=uuid.uuid4(), secret_ref="ref", token=token)])
>>> [p.text for p in collection.visible_passcodes()]   # doctest: +SKIP
"""

from .collection import TokenCollection
from .errors import DecodeError, EncodeError, OTPError, ReferenceListError, StoreError, UnknownTokenError
from .factory import OTPFactory
from .generator import HOTPGenerator, TOTPGenerator, make_generator, passcode_text
from .hashing import Hashing, dynamic_truncate, int_to_bytes
from .logger import Logging, configure_logging
from .token import OTP, Algorithm, Counter, Passcode, TimeStep, Token
from .token_uri import TokenCoding, decode as decode_uri, encode as encode_uri, otpauth_url
from .validated import Validated, zip as zip_validated, zip_with

__all__ = [
    "Algorithm",
    "Counter",
    "DecodeError",
    "EncodeError",
    "HOTPGenerator",
    "Hashing",
    "Logging",
    "OTP",
    "OTPError",
    "OTPFactory",
    "Passcode",
    "ReferenceListError",
    "StoreError",
    "TOTPGenerator",
    "TimeStep",
    "Token",
    "TokenCoding",
    "TokenCollection",
    "UnknownTokenError",
    "Validated",
    "configure_logging",
    "decode_uri",
    "dynamic_truncate",
    "encode_uri",
    "int_to_bytes",
    "make_generator",
    "otpauth_url",
    "passcode_text",
    "zip_validated",
    "zip_with",
]
