"""
token_uri.py — otpauth:// URI codec for Token.

URI format (Google Authenticator key-uri format):

    otpauth://totp/{issuer}:{account}?secret=BASE32&issuer=...&algorithm=SHA1&digits=6&period=30
    otpauth://hotp/{issuer}:{account}?secret=BASE32&issuer=...&algorithm=SHA1&digits=6&counter=0

Decoding
--------
- host must be ``hotp`` or ``totp``                 -> else "invalid token type"
- ``secret`` is required base32                     -> else "invalid secret value"
- ``counter`` is required for hotp (0 <= n < 2^64)  -> else "invalid counter value"
- ``period`` (totp) defaults to 30, also when unreadable or not positive
- ``algorithm`` is matched case-insensitively; unknown values fall back to SHA1
- ``digits`` defaults to 6 when unreadable; outside 1..9 -> "invalid digits value"
- an issuer prefix in the label wins over the ``issuer`` parameter
- a ":" inside issuer or account is written as ``%3A``; the first literal ``:``
  of the label is the separator

Type and secret are validated independently, so a URI missing both reports
both errors.

Encoding
--------
Query items are always written in the order secret, issuer, algorithm,
digits, counter|period.
"""

from typing import Dict, Tuple
from urllib.parse import parse_qsl, quote, unquote, urlsplit

from .. import config
from .base32 import base32_decode, base32_encode
from .errors import (
    INVALID_COUNTER_VALUE,
    INVALID_SECRET_VALUE,
    INVALID_TOKEN_TYPE,
    INVALID_URL,
    DecodeError,
    EncodeError,
)
from .token import Algorithm, Counter, TimeStep, Token, TokenType, validate_digits
from .validated import Validated, zip as zip_validated

SCHEME = "otpauth"
MAX_COUNTER = 2 ** 64 - 1

# RFC 3986 pchar / query characters left as-is; ":" is escaped inside label parts
_PATH_SAFE = "!$'()*,;@-._~"
_QUERY_SAFE = "!$'()*,;:@/?-._~"


def _parse_int(text):
    try:
        return int(text)
    except (TypeError, ValueError):
        return None


# --- Decoding ------------------------------------------------------------------
def _make_type(host: str, query: Dict[str, str]) -> Validated[TokenType]:
    if host == "hotp":
        counter = _parse_int(query.get("counter"))
        if counter is None or not 0 <= counter <= MAX_COUNTER:
            return Validated.invalid(DecodeError(INVALID_COUNTER_VALUE, query.get("counter", "")))
        return Validated.valid(Counter(counter))
    if host == "totp":
        period = _parse_int(query.get("period"))
        if period is None or period <= 0:
            period = config.DEFAULT_PERIOD
        return Validated.valid(TimeStep(period))
    return Validated.invalid(DecodeError(INVALID_TOKEN_TYPE, host))


def _make_secret(query: Dict[str, str]) -> Validated[bytes]:
    if "secret" not in query:
        return Validated.invalid(DecodeError(INVALID_SECRET_VALUE))
    return base32_decode(query["secret"])


def _make_issuer_and_account(path: str, query: Dict[str, str]) -> Tuple[str, str]:
    raw = path[1:] if path.startswith("/") else path
    # A literal ":" separates issuer from account; one inside either part is escaped
    if ":" in raw:
        issuer, account = (unquote(part) for part in raw.split(":", 1))
    else:
        label = unquote(raw)
        if ":" not in label:
            return query.get("issuer", ""), label
        issuer, account = label.split(":", 1)
    return issuer or query.get("issuer", ""), account


def _make_digits(query: Dict[str, str]) -> Validated[int]:
    digits = _parse_int(query.get("digits"))
    if digits is None:
        return Validated.valid(config.DEFAULT_DIGITS)
    return validate_digits(digits)


def decode(text: str) -> Validated[Token]:
    """Parse otpauth URI text into a Token."""
    try:
        parts = urlsplit(text.strip())
    except (AttributeError, ValueError):
        return Validated.invalid(DecodeError(INVALID_URL, str(text)))
    if parts.scheme.lower() != SCHEME:
        return Validated.invalid(DecodeError(INVALID_URL, text))

    # Duplicate parameters: the last one wins
    query = dict(parse_qsl(parts.query, keep_blank_values=True))

    def build(fields) -> Token:
        token_type, key, digits = fields
        issuer, account = _make_issuer_and_account(parts.path, query)
        return Token(
            type=token_type,
            key=key,
            algorithm=Algorithm.parse(query.get("algorithm")) or Algorithm.SHA1,
            digits=digits,
            issuer=issuer,
            account=account,
        )

    return zip_validated(
        _make_type(parts.netloc, query),
        _make_secret(query),
        _make_digits(query),
    ).map(build)


# --- Encoding ------------------------------------------------------------------
def encode(token: Token) -> Validated[str]:
    """Render a Token as otpauth URI text."""
    if isinstance(token.type, Counter):
        host, last = "hotp", ("counter", str(token.type.counter))
    else:
        host, last = "totp", ("period", str(token.type.period))
    items = [
        ("secret", base32_encode(token.key)),
        ("issuer", token.issuer),
        ("algorithm", token.algorithm.value),
        ("digits", str(token.digits)),
        last,
    ]
    try:
        label = f"{quote(token.issuer, safe=_PATH_SAFE)}:{quote(token.account, safe=_PATH_SAFE)}"
        query = "&".join(f"{name}={quote(value, safe=_QUERY_SAFE)}" for name, value in items)
    except UnicodeEncodeError:
        return Validated.invalid(EncodeError(token))
    return Validated.valid(f"{SCHEME}://{host}/{label}?{query}")


class TokenCoding:
    """Pairs a decode and an encode function; the factory and session take one of these."""

    def __init__(self, decode=decode, encode=encode) -> None:
        self.decode = decode
        self.encode = encode


otpauth_url = TokenCoding()
