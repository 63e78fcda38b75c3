"""
token.py — value types: Token, OTP (stored unit) and Passcode.

Token
    Secret key plus generation parameters. Immutable; a change means building
    a new Token.
OTP
    A Token bound to a collection id and the secret store's reference. Two OTPs
    are equal when their ids are equal, whatever their contents.
Passcode
    What the user sees: labels plus the zero-padded code text.
"""

import enum
from dataclasses import dataclass, field, replace
from typing import Optional, Union
from uuid import UUID

from .. import config
from .errors import INVALID_DIGITS_VALUE, DecodeError
from .validated import Validated


class Algorithm(enum.Enum):
    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["Algorithm"]:
        """Case-insensitive lookup; None for anything unknown."""
        if text is None:
            return None
        try:
            return cls(text.upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class Counter:
    """HOTP moving factor source: the next counter value to hash."""
    counter: int = config.DEFAULT_COUNTER


@dataclass(frozen=True)
class TimeStep:
    """TOTP moving factor source: the step length in seconds."""
    period: int = config.DEFAULT_PERIOD


TokenType = Union[Counter, TimeStep]


@dataclass(frozen=True)
class Token:
    type: TokenType
    key: bytes = field(repr=False)
    algorithm: Algorithm = Algorithm.SHA1
    digits: int = config.DEFAULT_DIGITS
    issuer: str = ""
    account: str = ""

    @property
    def is_counter(self) -> bool:
        return isinstance(self.type, Counter)

    def with_type(self, token_type: TokenType) -> "Token":
        return replace(self, type=token_type)

    def with_labels(self, issuer: str, account: str) -> "Token":
        return replace(self, issuer=issuer, account=account)


def validate_digits(digits: int) -> Validated[int]:
    if config.MIN_DIGITS <= digits <= config.MAX_DIGITS:
        return Validated.valid(digits)
    return Validated.invalid(DecodeError(INVALID_DIGITS_VALUE, str(digits)))


@dataclass(frozen=True, eq=False)
class OTP:
    id: UUID
    secret_ref: str
    token: Token

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OTP):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class Passcode:
    id: UUID
    issuer: str
    account: str
    text: str
    is_counter: bool
