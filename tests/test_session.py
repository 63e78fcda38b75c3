import io
import uuid

import pyotp

from otpvault.backend.scanner import StaticScanner, TextScanner
from otpvault.backend.session import Session
from otpvault.core.collection import TokenCollection
from otpvault.core.errors import ReferenceListError, StoreError, UnknownTokenError
from otpvault.core.logger import Logging
from otpvault.core.token import Counter, TimeStep
from otpvault.core.validated import Validated

from conftest import RFC_KEY_B32, FakeReferenceList, sequential_ids

URI = "otpauth://totp/Example:alice@google.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"
FIRST_ID = uuid.UUID(int=1)
SECOND_ID = uuid.UUID(int=2)


def add_two(session):
    first = session.add_token("GitHub", "david@gofake1.net", RFC_KEY_B32).value
    second = session.add_token("Slack", "david@gofake1.net", "JBSWY3DPEHPK3PXP", type="hotp").value
    return first, second


def test_add_token(session, store, refs):
    otp = session.add_token("Example", "alice@google.com", "JBSWY3DPEHPK3PXP").value
    assert otp.id == FIRST_ID
    assert otp.token.type == TimeStep(30)
    assert store.items[otp.secret_ref].startswith("otpauth://totp/Example:alice@google.com?")
    assert refs.saved == [[otp.secret_ref]]
    assert [p.id for p in session.passcodes()] == [FIRST_ID]


def test_add_counter_token(session):
    otp = session.add_token("ACME", "bob", "JBSWY3DPEHPK3PXP", type="hotp").value
    assert session.collection.ids == [(otp.id, "hotp")]
    # the first displayed passcode consumed counter 0
    assert session.collection.lookup(otp.id).token.type == Counter(1)


def test_add_token_requires_fields(session, store, refs, messages):
    result = session.add_token("", "bob", "")
    assert [str(e) for e in result.errors] == ["issuer is required", "key is required"]
    assert store.calls == []
    assert refs.saved == []
    assert len(messages) == 1


def test_add_token_rejects_unknown_type(session, store):
    result = session.add_token("ACME", "bob", "JBSWY3DPEHPK3PXP", type="motp")
    assert isinstance(result.errors[0], ValueError)
    assert store.calls == []


def test_add_from_uri_store_failure_leaves_collection_alone(session, store, refs, messages):
    store.fail.add("create")
    result = session.add_from_uri(URI)
    assert isinstance(result.errors[0], StoreError)
    assert len(session.collection) == 0
    assert refs.saved == []
    assert "StoreError" in messages[0]


def test_add_from_uri_decode_failure(session, messages):
    result = session.add_from_uri("otpauth://xotp/a")
    assert [e.reason for e in result.errors] == ["invalid token type", "invalid secret value"]
    assert "invalid token type" in messages[0]


def test_setup_loads_stored_tokens_in_order(store, messages):
    store.items.update({"b": URI, "bad": "garbage", "a": URI.replace("Example:", "Other:")})
    refs = FakeReferenceList(["a", "bad", "b"])
    session = Session(store, refs, TokenCollection(clock=lambda: 0), Logging(messages.append), sequential_ids())

    loaded = session.setup().value
    assert [otp.secret_ref for otp in loaded] == ["a", "b"]
    assert [p.issuer for p in session.passcodes()] == ["Other", "Example"]
    assert len(messages) == 1
    assert "invalid url" in messages[0]


def test_setup_with_unreadable_reference_list(store, messages):
    refs = FakeReferenceList(error=ReferenceListError("broken"))
    session = Session(store, refs, log=Logging(messages.append))
    result = session.setup()
    assert isinstance(result.errors[0], ReferenceListError)
    assert len(session.collection) == 0
    assert messages == ["ReferenceListError: broken"]


def test_update_time_and_filter(session):
    add_two(session)
    codes = session.update_time(59)
    assert codes[0].text == "287082"

    assert [p.issuer for p in session.update_filter_text("slack")] == ["Slack"]
    assert len(session.update_filter_text("")) == 2


def test_increment_counter(session, messages):
    first, second = add_two(session)
    before = session.passcodes()[1].text
    after = session.increment_counter(second.id).value
    assert after.text != before
    assert session.passcodes()[1] == after

    result = session.increment_counter(first.id)
    assert isinstance(result.errors[0], UnknownTokenError)
    assert len(messages) == 1


def test_increment_counter_is_saved(session, store, refs, messages):
    _, second = add_two(session)
    passcode = session.increment_counter(second.id).value
    assert passcode.text == pyotp.HOTP("JBSWY3DPEHPK3PXP").at(1)

    new_ref = session.collection.lookup(second.id).secret_ref
    assert new_ref != second.secret_ref
    assert second.secret_ref not in store.items
    assert "counter=1" in store.items[new_ref]
    assert refs.saved[-1][1] == new_ref

    reloaded = Session(store, refs, TokenCollection(clock=lambda: 0), Logging(messages.append), sequential_ids())
    reloaded.setup()
    assert reloaded.passcodes()[1].text == passcode.text


def test_increment_counter_store_failure(session, store, refs, messages):
    _, second = add_two(session)
    before = session.passcodes()[1]
    saves = len(refs.saved)
    store.fail.add("update")

    result = session.increment_counter(second.id)
    assert isinstance(result.errors[0], StoreError)
    assert session.passcodes()[1] == before
    assert session.collection.lookup(second.id).token.type == Counter(1)
    assert len(refs.saved) == saves
    assert "StoreError" in messages[0]


def test_edit_token_replaces_reference(session, store, refs):
    first, second = add_two(session)
    edited = session.edit_token(first.id, "GitLab", "someone").value
    assert edited.id == first.id
    assert edited.secret_ref not in (first.secret_ref, second.secret_ref)
    assert first.secret_ref not in store.items
    assert "otpauth://totp/GitLab:someone?" in store.items[edited.secret_ref]
    assert refs.saved[-1] == [edited.secret_ref, second.secret_ref]

    passcode = session.passcodes()[0]
    assert (passcode.issuer, passcode.account) == ("GitLab", "someone")


def test_edit_token_store_failure(session, store, refs, messages):
    first, _ = add_two(session)
    store.fail.add("update")
    saves = len(refs.saved)
    result = session.edit_token(first.id, "GitLab", "someone")
    assert isinstance(result.errors[0], StoreError)
    assert session.collection.lookup(first.id).token.issuer == "GitHub"
    assert len(refs.saved) == saves
    assert messages


def test_edit_unknown_token(session):
    result = session.edit_token(uuid.UUID(int=99), "a", "b")
    assert isinstance(result.errors[0], UnknownTokenError)


def test_move(session, refs):
    first, second = add_two(session)
    passcodes = session.move([1], 0).value
    assert [p.id for p in passcodes] == [second.id, first.id]
    assert refs.saved[-1] == [second.secret_ref, first.secret_ref]


def test_move_bad_offsets(session, refs, messages):
    first, second = add_two(session)
    saves = len(refs.saved)
    result = session.move([0, 5], 3)
    assert [e.args for e in result.errors] == [("no token at offset 5",), ("destination 3 out of range",)]
    assert all(isinstance(e, IndexError) for e in result.errors)
    assert [p.id for p in session.passcodes()] == [first.id, second.id]
    assert len(refs.saved) == saves
    assert messages

    assert session.move([0], 2).is_valid
    assert [p.id for p in session.passcodes()] == [second.id, first.id]


def test_delete(session, store, refs):
    first, second = add_two(session)
    removed = session.delete([first.id]).value
    assert removed == [first]
    assert first.secret_ref not in store.items
    assert session.collection.ids == [(second.id, "hotp")]
    assert refs.saved[-1] == [second.secret_ref]


def test_delete_keeps_tokens_the_store_refuses(session, store, refs, messages):
    first, _ = add_two(session)
    store.fail.add("delete")
    saves = len(refs.saved)
    result = session.delete([first.id])
    assert isinstance(result.errors[0], StoreError)
    assert first.id in session.collection
    assert len(refs.saved) == saves
    assert messages


def test_delete_removes_what_it_can(session, refs):
    first, second = add_two(session)
    unknown = uuid.UUID(int=99)
    result = session.delete([unknown, second.id])
    assert isinstance(result.errors[0], UnknownTokenError)
    assert session.collection.ids == [(first.id, "totp")]
    assert refs.saved[-1] == [first.secret_ref]


def test_delete_offsets(session):
    first, second = add_two(session)
    assert session.delete_offsets([5]).errors[0].args == ("no token at offset 5",)
    assert len(session.collection) == 2
    assert session.delete_offsets([0]).value == [first]
    assert [p.id for p in session.passcodes()] == [second.id]


def test_scan_adds_scanned_uri(session):
    otp = session.scan(StaticScanner(URI)).value
    assert otp.token.account == "alice@google.com"
    assert len(session.collection) == 1


def test_scan_reads_one_line_from_stream(session):
    session.scan(TextScanner(io.StringIO(URI + "\nsomething else\n")))
    assert [p.issuer for p in session.passcodes()] == ["Example"]


def test_scan_nothing_captured(session, store):
    assert session.scan(StaticScanner("  ")) == Validated.valid(None)
    assert session.scan(TextScanner(io.StringIO(""))) == Validated.valid(None)
    assert store.calls == []


def test_static_scanner_is_one_shot():
    scanner = StaticScanner(URI)
    assert scanner.scan().value == URI
    assert scanner.scan().value is None


def test_provisioning_uri_and_qr_code(session):
    first, _ = add_two(session)
    uri = session.provisioning_uri(first.id).value
    assert uri == (
        "otpauth://totp/GitHub:david@gofake1.net"
        f"?secret={RFC_KEY_B32}&issuer=GitHub&algorithm=SHA1&digits=6&period=30"
    )
    assert session.qr_code(first.id).value.startswith("data:image/png;base64,")
    assert isinstance(session.provisioning_uri(uuid.UUID(int=99)).errors[0], UnknownTokenError)


def test_edited_labels_with_colon_survive_reload(session, store, refs, messages):
    first, _ = add_two(session)
    session.edit_token(first.id, "ACME:EU", "bob")

    reloaded = Session(store, refs, TokenCollection(clock=lambda: 0), Logging(messages.append), sequential_ids())
    reloaded.setup()
    passcode = reloaded.passcodes()[0]
    assert (passcode.issuer, passcode.account) == ("ACME:EU", "bob")
