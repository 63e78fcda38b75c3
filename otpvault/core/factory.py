"""
Builds OTPs backed by the secret store.

Every path is a chain of dependent steps, so the first failure is the result:

    add_from_fields:  base32 secret -> Token -> URI text -> store.create -> OTP
    add_from_uri:     URI text -> Token -> store.create(raw text) -> OTP
    load_from_store:  store.read(ref) -> URI text -> Token -> OTP (same ref)
"""

from uuid import UUID

from .base32 import base32_decode
from .token import OTP, Algorithm, Token, TokenType, validate_digits
from .token_uri import TokenCoding, otpauth_url
from .validated import Validated


class OTPFactory:
    """
    ``store`` is any object with ``create(account, service, value)`` and
    ``read(ref)`` returning Validated results (see ``database.db_manager``).
    """

    def __init__(self, store, token_coding: TokenCoding = otpauth_url) -> None:
        self.store = store
        self.token_coding = token_coding

    def add_from_fields(
        self,
        issuer: str,
        account: str,
        key: str,
        type: TokenType,
        algorithm: Algorithm,
        digits: int,
        id: UUID,
    ) -> Validated[OTP]:
        def persist(token: Token) -> Validated[OTP]:
            return (
                self.token_coding.encode(token)
                .flat_map(lambda uri: self.store.create(token.account, token.issuer, uri))
                .map(lambda ref: OTP(id=id, secret_ref=ref, token=token))
            )

        return (
            base32_decode(key)
            .flat_map(lambda raw: validate_digits(digits).map(lambda d: Token(
                type=type,
                key=raw,
                algorithm=algorithm,
                digits=d,
                issuer=issuer,
                account=account,
            )))
            .flat_map(persist)
        )

    def add_from_uri(self, uri: str, id: UUID) -> Validated[OTP]:
        return self.token_coding.decode(uri).flat_map(
            lambda token: self.store.create(token.account, token.issuer, uri).map(
                lambda ref: OTP(id=id, secret_ref=ref, token=token)
            )
        )

    def load_from_store(self, secret_ref: str, id: UUID) -> Validated[OTP]:
        return (
            self.store.read(secret_ref)
            .flat_map(self.token_coding.decode)
            .map(lambda token: OTP(id=id, secret_ref=secret_ref, token=token))
        )
