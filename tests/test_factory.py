from otpvault.core.errors import DecodeError, StoreError
from otpvault.core.factory import OTPFactory
from otpvault.core.token import Algorithm, Counter, TimeStep
from otpvault.core.token_uri import TokenCoding, decode, encode
from otpvault.core.validated import Validated

from conftest import UUID1

URI = "otpauth://totp/Example:alice@google.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"


def test_add_from_fields_stores_encoded_uri(store):
    factory = OTPFactory(store)
    otp = factory.add_from_fields(
        issuer="Example",
        account="alice@google.com",
        key="JBSWY3DPEHPK3PXP",
        type=TimeStep(30),
        algorithm=Algorithm.SHA1,
        digits=6,
        id=UUID1,
    ).value
    assert otp.id == UUID1
    assert otp.secret_ref == "ref-1"
    assert otp.token.key == b"Hello!\xde\xad\xbe\xef"
    assert store.calls == [(
        "create",
        "alice@google.com",
        "Example",
        "otpauth://totp/Example:alice@google.com"
        "?secret=JBSWY3DPEHPK3PXP&issuer=Example&algorithm=SHA1&digits=6&period=30",
    )]


def test_add_from_fields_bad_secret_never_reaches_store(store):
    result = OTPFactory(store).add_from_fields("a", "b", "!!!", Counter(0), Algorithm.SHA1, 6, UUID1)
    assert isinstance(result.errors[0], DecodeError)
    assert result.errors[0].reason == "invalid secret value"
    assert store.calls == []


def test_add_from_fields_bad_digits(store):
    result = OTPFactory(store).add_from_fields("a", "b", "JBSWY3DPEHPK3PXP", Counter(0), Algorithm.SHA1, 12, UUID1)
    assert result.errors[0].reason == "invalid digits value"
    assert store.calls == []


def test_add_from_fields_encode_failure_is_reported(store):
    failing = TokenCoding(decode=decode, encode=lambda token: Validated.invalid(ValueError("nope")))
    result = OTPFactory(store, failing).add_from_fields("a", "b", "JBSWY3DPEHPK3PXP", TimeStep(30), Algorithm.SHA1, 6, UUID1)
    assert str(result.errors[0]) == "nope"
    assert store.calls == []


def test_add_from_uri_stores_the_text_as_given(store):
    otp = OTPFactory(store).add_from_uri(URI, UUID1).value
    assert otp.token.issuer == "Example"
    assert store.items[otp.secret_ref] == URI


def test_add_from_uri_store_failure(store):
    store.fail.add("create")
    result = OTPFactory(store).add_from_uri(URI, UUID1)
    assert isinstance(result.errors[0], StoreError)


def test_add_from_uri_decode_failure(store):
    result = OTPFactory(store).add_from_uri("otpauth://hotp/a?secret=JBSWY3DPEHPK3PXP", UUID1)
    assert result.errors[0].reason == "invalid counter value"
    assert store.calls == []


def test_load_from_store_keeps_ref(store):
    store.items["saved"] = URI
    otp = OTPFactory(store).load_from_store("saved", UUID1).value
    assert otp.secret_ref == "saved"
    assert otp.token.account == "alice@google.com"


def test_load_from_store_failures(store):
    factory = OTPFactory(store)
    assert isinstance(factory.load_from_store("missing", UUID1).errors[0], StoreError)

    store.items["garbage"] = "not a uri"
    assert factory.load_from_store("garbage", UUID1).errors[0].reason == "invalid url"


def test_uses_injected_codec(store):
    seen = []

    def spy_encode(token):
        seen.append(token)
        return encode(token)

    OTPFactory(store, TokenCoding(encode=spy_encode)).add_from_fields(
        "a", "b", "JBSWY3DPEHPK3PXP", TimeStep(30), Algorithm.SHA1, 6, UUID1
    )
    assert len(seen) == 1
