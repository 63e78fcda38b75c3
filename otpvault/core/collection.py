"""
collection.py — the in-memory token collection (list model).

Three structures are kept consistent:

- ``_order``       ids in display / persistence order
- ``_generators``  id -> HOTPGenerator | TOTPGenerator (the generator's
                   ``kind`` is the entry's tag, so the two token kinds can
                   never overlap)
- ``_cache``       id -> Passcode, regenerated after every change to an id

Every id in ``_order`` has exactly one generator and one cached passcode.
The collection never talks to the secret store; callers persist
``current_refs()`` after structural changes.
"""

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from .errors import UnknownTokenError
from .generator import Generator, HOTPGenerator, Timestamp, TOTPGenerator, make_generator
from .token import OTP, Passcode
from .validated import Validated

logger = logging.getLogger(__name__)


class TokenCollection:

    def __init__(self, clock: Callable[[], Timestamp] = time.time) -> None:
        self.clock = clock
        self.filter_text = ""
        self._order: List[UUID] = []
        self._generators: Dict[UUID, Generator] = {}
        self._cache: Dict[UUID, Passcode] = {}

    # --- Views ---------------------------------------------------------------
    @property
    def ids(self) -> List[Tuple[UUID, str]]:
        """(id, kind) pairs in order; kind is "hotp" or "totp"."""
        return [(i, self._generators[i].kind) for i in self._order]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, token_id: UUID) -> bool:
        return token_id in self._generators

    def lookup(self, token_id: UUID) -> Optional[OTP]:
        generator = self._generators.get(token_id)
        return generator.otp if generator is not None else None

    def offset_of(self, token_id: UUID) -> Optional[int]:
        try:
            return self._order.index(token_id)
        except ValueError:
            return None

    def current_refs(self) -> List[str]:
        return [self._generators[i].otp.secret_ref for i in self._order]

    def visible_passcodes(self, filter_text: Optional[str] = None) -> List[Passcode]:
        """
        Cached passcodes in order. A non-empty filter keeps entries whose issuer
        or account contains it, ignoring case.
        """
        text = self.filter_text if filter_text is None else filter_text
        if not text:
            return [self._cache[i] for i in self._order]
        needle = text.casefold()
        visible = []
        for i in self._order:
            token = self._generators[i].otp.token
            if needle in token.issuer.casefold() or needle in token.account.casefold():
                visible.append(self._cache[i])
        return visible

    # --- Mutations -------------------------------------------------------------
    def _install(self, generator: Generator) -> None:
        token_id = generator.otp.id
        self._generators[token_id] = generator
        if isinstance(generator, HOTPGenerator):
            self._cache[token_id] = generator.generate()
        else:
            self._cache[token_id] = generator.generate(self.clock())

    def load_or_add(self, otps: Iterable[OTP]) -> None:
        """Append in order; each counter token is advanced once by its first passcode."""
        for otp in otps:
            if otp.id in self._generators:
                logger.warning("Token %s is already in the collection, skipping", otp.id)
                continue
            self._install(make_generator(otp))
            self._order.append(otp.id)

    def advance_counter(self, token_id: UUID) -> Validated[Passcode]:
        generator = self._generators.get(token_id)
        if not isinstance(generator, HOTPGenerator):
            return Validated.invalid(UnknownTokenError(token_id))
        self._cache[token_id] = generator.generate()
        return Validated.valid(self._cache[token_id])

    def retick(self, now: Timestamp) -> None:
        """Regenerate every time-based passcode for ``now``; counters are left alone."""
        for token_id, generator in self._generators.items():
            if isinstance(generator, TOTPGenerator):
                self._cache[token_id] = generator.generate(now)

    def replace(self, otp: OTP) -> Validated[OTP]:
        """Swap in an edited OTP for an id already held, keyed by its (new) token type."""
        if otp.id not in self._generators:
            return Validated.invalid(UnknownTokenError(otp.id))
        self._install(make_generator(otp))
        return Validated.valid(self._generators[otp.id].otp)

    def rebind(self, token_id: UUID, secret_ref: str) -> Validated[OTP]:
        """Point an id at a new secret reference; generator state and cached passcode are kept."""
        generator = self._generators.get(token_id)
        if generator is None:
            return Validated.invalid(UnknownTokenError(token_id))
        otp = generator.otp
        generator.otp = OTP(id=otp.id, secret_ref=secret_ref, token=otp.token)
        return Validated.valid(generator.otp)

    def reorder(self, source_offsets: Iterable[int], destination: int) -> None:
        """
        Move the ids at ``source_offsets`` so they sit before the element that
        was at ``destination`` (``len`` moves them to the end), keeping their
        relative order.
        """
        sources = sorted(set(source_offsets))
        moving = [self._order[i] for i in sources]
        remaining = [token_id for i, token_id in enumerate(self._order) if i not in sources]
        insert_at = destination - sum(1 for i in sources if i < destination)
        insert_at = max(0, min(insert_at, len(remaining)))
        self._order = remaining[:insert_at] + moving + remaining[insert_at:]

    def remove(self, offsets: Sequence[int]) -> Validated[List[OTP]]:
        """Drop the ids at ``offsets`` from all three structures; nothing changes if any offset is bad."""
        unique = sorted(set(offsets))
        bad = [o for o in unique if not 0 <= o < len(self._order)]
        if bad:
            return Validated.of_errors([IndexError(f"no token at offset {o}") for o in bad])
        removed = []
        for offset in unique:
            token_id = self._order[offset]
            removed.append(self._generators.pop(token_id).otp)
            self._cache.pop(token_id, None)
        self._order = [i for n, i in enumerate(self._order) if n not in unique]
        return Validated.valid(removed)
