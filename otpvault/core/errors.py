"""
Error values carried inside ``Validated`` results.

These are exception classes so they print and compare naturally, but the core
never raises them: they travel as data and are logged at the edges.
"""

# Decode reasons (fixed strings, checked by callers and tests)
INVALID_URL = "invalid url"
INVALID_TOKEN_TYPE = "invalid token type"
INVALID_COUNTER_VALUE = "invalid counter value"
INVALID_SECRET_VALUE = "invalid secret value"
INVALID_DIGITS_VALUE = "invalid digits value"


class OTPError(Exception):
    """Base class for every error value in otpvault."""


class DecodeError(OTPError):
    """Malformed URI, missing/invalid required parameter, or undecodable secret."""

    def __init__(self, reason: str, source: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.source = source


class EncodeError(OTPError):
    """The token could not be rendered as URI text."""

    def __init__(self, token) -> None:
        super().__init__("encode failure")
        self.token = token


class StoreError(OTPError):
    """Opaque failure reported by the secret store."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class ReferenceListError(OTPError):
    """The persisted reference list has an unexpected format."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class UnknownTokenError(OTPError):
    """No suitable entry for this id in the token collection."""

    def __init__(self, token_id) -> None:
        super().__init__(f"unknown token {token_id}")
        self.token_id = token_id
