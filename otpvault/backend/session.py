"""
session.py — application event handlers around one TokenCollection.

One ``Session`` owns the collection for the lifetime of the application and
is passed to whoever needs it (Flask app, CLI). Each handler runs to
completion:

1. talk to the secret store (if needed),
2. mutate the collection,
3. persist ``collection.current_refs()`` to the reference list.

A failure at step 1 is logged and the handler returns the invalid result with
the collection untouched.
"""

import logging
import uuid
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from .. import config
from ..core.collection import TokenCollection
from ..core.errors import UnknownTokenError
from ..core.factory import OTPFactory
from ..core.generator import Timestamp
from ..core.logger import Logging
from ..core.token import OTP, Algorithm, Counter, Passcode, TimeStep
from ..core.token_uri import TokenCoding, otpauth_url
from ..core.validated import Validated
from .qr import qr_code_data_uri

logger = logging.getLogger(__name__)

TOKEN_TYPES = {
    "hotp": lambda: Counter(config.DEFAULT_COUNTER),
    "totp": lambda: TimeStep(config.DEFAULT_PERIOD),
}


class Session:

    def __init__(
        self,
        store,
        refs,
        collection: Optional[TokenCollection] = None,
        log: Optional[Logging] = None,
        make_id: Callable[[], UUID] = uuid.uuid4,
        token_coding: TokenCoding = otpauth_url,
    ) -> None:
        self.store = store
        self.refs = refs
        self.collection = collection if collection is not None else TokenCollection()
        self.log = log if log is not None else Logging.to_logger()
        self.make_id = make_id
        self.token_coding = token_coding
        self.factory = OTPFactory(store, token_coding)

    def _persist_refs(self) -> None:
        self.refs.set(self.collection.current_refs())

    def _failed(self, result: Validated) -> Validated:
        self.log.errors(result.errors)
        return result

    # --- Startup -------------------------------------------------------------
    def setup(self) -> Validated[List[OTP]]:
        """Load every stored reference; unreadable entries are logged and skipped."""
        stored = self.refs.get()
        if not stored.is_valid:
            return self._failed(stored)

        loaded = []
        for ref in stored.value:
            result = self.factory.load_from_store(ref, self.make_id())
            if result.is_valid:
                loaded.append(result.value)
            else:
                self.log.errors(result.errors)
        self.collection.load_or_add(loaded)
        logger.info("Loaded %d of %d stored tokens", len(loaded), len(stored.value))
        return Validated.valid(loaded)

    # --- Display ---------------------------------------------------------------
    def passcodes(self) -> List[Passcode]:
        return self.collection.visible_passcodes()

    def update_time(self, now: Timestamp) -> List[Passcode]:
        self.collection.retick(now)
        return self.passcodes()

    def update_filter_text(self, text: str) -> List[Passcode]:
        self.collection.filter_text = text
        return self.passcodes()

    def increment_counter(self, token_id: UUID) -> Validated[Passcode]:
        """
        Show the next counter passcode.

        The stored URI is first rewritten with that passcode's counter, so a
        later session resumes from it; if the store refuses, nothing advances.
        """
        otp = self.collection.lookup(token_id)
        if otp is None or not otp.token.is_counter:
            return self._failed(Validated.invalid(UnknownTokenError(token_id)))
        token = otp.token
        stored = self.token_coding.encode(token).flat_map(
            lambda uri: self.store.update(otp.secret_ref, token.account, token.issuer, uri)
        )
        if not stored.is_valid:
            return self._failed(stored)
        result = self.collection.advance_counter(token_id).flat_map(
            lambda passcode: self.collection.rebind(token_id, stored.value).map(lambda _: passcode)
        )
        self._persist_refs()
        return result

    # --- Adding ------------------------------------------------------------------
    def _add(self, result: Validated[OTP]) -> Validated[OTP]:
        if not result.is_valid:
            return self._failed(result)
        self.collection.load_or_add([result.value])
        self._persist_refs()
        return result

    def add_token(
        self,
        issuer: str,
        account: str,
        key: str,
        type: str = "totp",
        algorithm: Algorithm = Algorithm.SHA1,
        digits: int = config.DEFAULT_DIGITS,
    ) -> Validated[OTP]:
        """Manual entry; issuer, account and key must all be filled in."""
        missing = [name for name, value in (("issuer", issuer), ("account", account), ("key", key)) if not value]
        if missing:
            return self._failed(Validated.of_errors([ValueError(f"{name} is required") for name in missing]))
        if type not in TOKEN_TYPES:
            return self._failed(Validated.invalid(ValueError(f"type must be one of {sorted(TOKEN_TYPES)}")))
        return self._add(self.factory.add_from_fields(
            issuer=issuer,
            account=account,
            key=key,
            type=TOKEN_TYPES[type](),
            algorithm=algorithm,
            digits=digits,
            id=self.make_id(),
        ))

    def add_from_uri(self, uri: str) -> Validated[OTP]:
        return self._add(self.factory.add_from_uri(uri, self.make_id()))

    def scan(self, scanner) -> Validated[Optional[OTP]]:
        """Add whatever the scanner captured; nothing captured is not an error."""
        scanned = scanner.scan()
        if not scanned.is_valid:
            return self._failed(scanned)
        if scanned.value is None:
            return Validated.valid(None)
        return self.add_from_uri(scanned.value)

    # --- Editing -----------------------------------------------------------------
    def edit_token(self, token_id: UUID, issuer: str, account: str) -> Validated[OTP]:
        """Relabel a token; the store hands back a new reference which replaces the old one."""
        otp = self.collection.lookup(token_id)
        if otp is None:
            return self._failed(Validated.invalid(UnknownTokenError(token_id)))
        new_token = otp.token.with_labels(issuer, account)
        result = (
            self.token_coding.encode(new_token)
            .flat_map(lambda uri: self.store.update(otp.secret_ref, account, issuer, uri))
            .flat_map(lambda ref: self.collection.replace(OTP(id=token_id, secret_ref=ref, token=new_token)))
        )
        if not result.is_valid:
            return self._failed(result)
        self._persist_refs()
        return result

    def move(self, source_offsets: Iterable[int], destination: int) -> Validated[List[Passcode]]:
        """Offsets are positions in the full order; ``destination`` may be one past the end."""
        sources = list(source_offsets)
        size = len(self.collection)
        errors = [IndexError(f"no token at offset {o}") for o in sources if not 0 <= o < size]
        if not 0 <= destination <= size:
            errors.append(IndexError(f"destination {destination} out of range"))
        if errors:
            return self._failed(Validated.of_errors(errors))
        self.collection.reorder(sources, destination)
        self._persist_refs()
        return Validated.valid(self.passcodes())

    # --- Deleting ------------------------------------------------------------------
    def delete(self, token_ids: Iterable[UUID]) -> Validated[List[OTP]]:
        """
        Delete secrets, then drop the tokens whose secrets are gone.

        Ids the collection does not hold, and secrets the store refuses to
        delete, are logged and stay as they are.
        """
        errors = []
        offsets = []
        for token_id in token_ids:
            offset = self.collection.offset_of(token_id)
            if offset is None:
                errors.append(UnknownTokenError(token_id))
                continue
            deleted = self.store.delete(self.collection.lookup(token_id).secret_ref)
            if deleted.is_valid:
                offsets.append(offset)
            else:
                errors.extend(deleted.errors)

        removed = self.collection.remove(offsets)
        if offsets:
            self._persist_refs()
        if errors:
            return self._failed(Validated.of_errors(errors))
        return removed

    def delete_offsets(self, offsets: Iterable[int]) -> Validated[List[OTP]]:
        """Delete by position in the full (unfiltered) order."""
        order = [token_id for token_id, _ in self.collection.ids]
        bad = [o for o in offsets if not 0 <= o < len(order)]
        if bad:
            return self._failed(Validated.of_errors([IndexError(f"no token at offset {o}") for o in bad]))
        return self.delete([order[o] for o in offsets])

    # --- Export --------------------------------------------------------------------
    def provisioning_uri(self, token_id: UUID) -> Validated[str]:
        otp = self.collection.lookup(token_id)
        if otp is None:
            return Validated.invalid(UnknownTokenError(token_id))
        return self.token_coding.encode(otp.token)

    def qr_code(self, token_id: UUID) -> Validated[str]:
        return self.provisioning_uri(token_id).map(qr_code_data_uri)
