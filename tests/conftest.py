import uuid

import pytest

from otpvault.core.collection import TokenCollection
from otpvault.core.errors import StoreError
from otpvault.core.logger import Logging
from otpvault.core.token import OTP, Algorithm, TimeStep, Token
from otpvault.core.validated import Validated
from otpvault.backend.session import Session

RFC_KEY = b"12345678901234567890"
RFC_KEY_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"

UUID1 = uuid.UUID("00000000-0000-0000-0000-000000000000")
UUID2 = uuid.UUID("11111111-0000-0000-0000-000000000000")


class FakeSecretStore:
    """Dict-backed secret store that records calls and can be told to fail."""

    def __init__(self):
        self.items = {}
        self.calls = []
        self.fail = set()
        self._next = 0

    def _new_ref(self):
        self._next += 1
        return f"ref-{self._next}"

    def create(self, account, service, value):
        self.calls.append(("create", account, service, value))
        if "create" in self.fail:
            return Validated.invalid(StoreError("create refused"))
        ref = self._new_ref()
        self.items[ref] = value
        return Validated.valid(ref)

    def read(self, ref):
        self.calls.append(("read", ref))
        if ref not in self.items:
            return Validated.invalid(StoreError(f"no secret for reference {ref}"))
        return Validated.valid(self.items[ref])

    def update(self, ref, account, service, new_value):
        self.calls.append(("update", ref, account, service, new_value))
        if "update" in self.fail or ref not in self.items:
            return Validated.invalid(StoreError("update refused"))
        del self.items[ref]
        new_ref = self._new_ref()
        self.items[new_ref] = new_value
        return Validated.valid(new_ref)

    def delete(self, ref):
        self.calls.append(("delete", ref))
        if "delete" in self.fail or ref not in self.items:
            return Validated.invalid(StoreError("delete refused"))
        del self.items[ref]
        return Validated.valid(None)


class FakeReferenceList:

    def __init__(self, refs=None, error=None):
        self.refs = list(refs or [])
        self.error = error
        self.saved = []

    def get(self):
        if self.error is not None:
            return Validated.invalid(self.error)
        return Validated.valid(list(self.refs))

    def set(self, refs):
        self.refs = list(refs)
        self.saved.append(list(refs))


def make_token(type=TimeStep(30), key=b"", issuer="GitHub", account="david@gofake1.net",
               algorithm=Algorithm.SHA1, digits=6):
    return Token(type=type, key=key, algorithm=algorithm, digits=digits, issuer=issuer, account=account)


def make_otp(token_id=UUID1, ref="ref", **kwargs):
    return OTP(id=token_id, secret_ref=ref, token=make_token(**kwargs))


def sequential_ids():
    counter = iter(range(1, 10_000))
    return lambda: uuid.UUID(int=next(counter))


@pytest.fixture
def store():
    return FakeSecretStore()


@pytest.fixture
def refs():
    return FakeReferenceList()


@pytest.fixture
def messages():
    return []


@pytest.fixture
def collection():
    return TokenCollection(clock=lambda: 0)


@pytest.fixture
def session(store, refs, collection, messages):
    return Session(
        store=store,
        refs=refs,
        collection=collection,
        log=Logging(messages.append),
        make_id=sequential_ids(),
    )
