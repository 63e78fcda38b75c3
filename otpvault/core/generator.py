"""
generator.py — passcode generators for counter (HOTP) and time (TOTP) tokens.

Both share one derivation:

    value   = truncate(HMAC(key, factor)) & 0x7FFFFFFF
    display = value mod 10^digits, zero-padded to ``digits`` characters

HOTPGenerator is stateful: every ``generate()`` hashes the current counter and
then replaces its OTP with one whose counter is one higher. TOTPGenerator is a
pure function of (token, time).
"""

import datetime
from typing import Union

from .hashing import Hashing, int_to_bytes
from .token import OTP, Counter, Passcode, TimeStep

COUNTER_MASK = 0xFFFFFFFFFFFFFFFF

Timestamp = Union[int, float, datetime.datetime]


def passcode_text(truncated: int, digits: int) -> str:
    value = truncated & 0x7FFFFFFF
    return str(value % (10 ** digits)).zfill(digits)


def _generate(otp: OTP, factor: int, is_counter: bool) -> Passcode:
    token = otp.token
    truncated = Hashing(token.algorithm).run(int_to_bytes(factor), token.key)
    return Passcode(
        id=otp.id,
        issuer=token.issuer,
        account=token.account,
        text=passcode_text(truncated, token.digits),
        is_counter=is_counter,
    )


def _seconds(now: Timestamp) -> float:
    if isinstance(now, datetime.datetime):
        return now.timestamp()
    return now


class HOTPGenerator:
    kind = "hotp"

    def __init__(self, otp: OTP) -> None:
        if not isinstance(otp.token.type, Counter):
            raise TypeError("HOTPGenerator needs a counter-based token")
        self.otp = otp

    @property
    def counter(self) -> int:
        return self.otp.token.type.counter

    def generate(self) -> Passcode:
        """Passcode for the current counter; advances the counter by one."""
        otp = self.otp
        passcode = _generate(otp, self.counter, True)
        next_type = Counter((self.counter + 1) & COUNTER_MASK)
        self.otp = OTP(id=otp.id, secret_ref=otp.secret_ref, token=otp.token.with_type(next_type))
        return passcode


class TOTPGenerator:
    kind = "totp"

    def __init__(self, otp: OTP) -> None:
        if not isinstance(otp.token.type, TimeStep):
            raise TypeError("TOTPGenerator needs a time-based token")
        self.otp = otp

    @property
    def period(self) -> int:
        return self.otp.token.type.period

    def timecode(self, now: Timestamp) -> int:
        return int(_seconds(now) // self.period)

    def generate(self, now: Timestamp) -> Passcode:
        return _generate(self.otp, self.timecode(now), False)


Generator = Union[HOTPGenerator, TOTPGenerator]


def make_generator(otp: OTP) -> Generator:
    if isinstance(otp.token.type, Counter):
        return HOTPGenerator(otp)
    return TOTPGenerator(otp)
